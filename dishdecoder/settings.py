"""
Settings Module for Dish Decoder

Provides persistent storage for recognition preferences using JSON.
Settings are stored in config.json in the working directory.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from dishdecoder.ocr import (
    DARK_BACKGROUND_THRESHOLD,
    DEFAULT_LANGUAGES,
    UPSCALE_FACTOR,
    DebugImageSink,
    TaskOrchestrator,
    engine_factory,
)

logger = logging.getLogger(__name__)

# Settings file location (working directory)
SETTINGS_FILE = Path("config.json")

# Default settings
DEFAULT_SETTINGS: Dict[str, Any] = {
    "debug_enabled": False,
    "engine": "tesseract",
    "languages": list(DEFAULT_LANGUAGES),
    "upscale_factor": UPSCALE_FACTOR,
    "dark_background_threshold": DARK_BACKGROUND_THRESHOLD,
    "tesseract_cmd": None,
    "timeout_s": 0,
}


def load_settings(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load settings from config.json.

    Args:
        path: Settings file (default: SETTINGS_FILE)

    Returns:
        Settings dictionary. Returns defaults if file missing or invalid.
    """
    path = Path(path) if path is not None else SETTINGS_FILE
    if not path.exists():
        logger.debug("Settings file not found, using defaults")
        return DEFAULT_SETTINGS.copy()

    try:
        with open(path, 'r', encoding='utf-8') as f:
            settings = json.load(f)
        if not isinstance(settings, dict):
            raise ValueError("settings root must be an object")

        # Merge with defaults to handle missing keys
        result = DEFAULT_SETTINGS.copy()
        result.update(settings)
        logger.debug(f"Settings loaded: {result}")
        return result

    except (json.JSONDecodeError, ValueError, IOError) as e:
        logger.warning(f"Failed to load settings: {e}, using defaults")
        return DEFAULT_SETTINGS.copy()


def save_settings(settings: Dict[str, Any], path: Optional[Path] = None) -> None:
    """
    Save settings to config.json.

    Args:
        settings: Settings dictionary to save
        path: Settings file (default: SETTINGS_FILE)
    """
    path = Path(path) if path is not None else SETTINGS_FILE
    try:
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(settings, f, indent=2)
        logger.debug(f"Settings saved: {settings}")
    except IOError as e:
        logger.error(f"Failed to save settings: {e}")


def build_orchestrator(settings: Dict[str, Any]) -> TaskOrchestrator:
    """
    Create a TaskOrchestrator configured from a settings dictionary.

    Args:
        settings: Dictionary as returned by load_settings()
    """
    engine_options: Dict[str, Any] = {"timeout_s": settings.get("timeout_s", 0)}
    if settings.get("tesseract_cmd"):
        engine_options["tesseract_cmd"] = settings["tesseract_cmd"]

    sink = DebugImageSink() if settings.get("debug_enabled") else None

    return TaskOrchestrator(
        engine_factory=engine_factory(settings.get("engine", "tesseract"), **engine_options),
        upscale_factor=int(settings.get("upscale_factor", UPSCALE_FACTOR)),
        dark_threshold=float(settings.get("dark_background_threshold", DARK_BACKGROUND_THRESHOLD)),
        default_languages=settings.get("languages") or DEFAULT_LANGUAGES,
        diagnostic_sink=sink,
    )
