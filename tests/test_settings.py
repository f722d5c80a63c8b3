"""
Tests for JSON settings persistence and orchestrator construction.

Usage:
    pytest tests/test_settings.py
"""

import json

from dishdecoder.ocr import DEFAULT_LANGUAGES, DebugImageSink, SessionState
from dishdecoder.settings import (
    DEFAULT_SETTINGS,
    build_orchestrator,
    load_settings,
    save_settings,
)


def test_missing_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "config.json")
    assert settings == DEFAULT_SETTINGS
    assert settings is not DEFAULT_SETTINGS


def test_invalid_file_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    assert load_settings(path) == DEFAULT_SETTINGS

    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert load_settings(path) == DEFAULT_SETTINGS


def test_saved_settings_merge_over_defaults(tmp_path):
    path = tmp_path / "config.json"
    save_settings({"languages": ["eng"], "debug_enabled": True}, path)

    assert json.loads(path.read_text(encoding="utf-8"))["languages"] == ["eng"]
    settings = load_settings(path)
    assert settings["languages"] == ["eng"]
    assert settings["debug_enabled"] is True
    assert settings["upscale_factor"] == DEFAULT_SETTINGS["upscale_factor"]


def test_build_orchestrator_uses_settings():
    settings = dict(DEFAULT_SETTINGS, languages=["eng"], upscale_factor=3,
                    dark_background_threshold=80, debug_enabled=True)

    orchestrator = build_orchestrator(settings)

    assert orchestrator.default_languages == ("eng",)
    assert orchestrator.upscale_factor == 3
    assert orchestrator.dark_threshold == 80.0
    assert isinstance(orchestrator.diagnostic_sink, DebugImageSink)
    # Engine is only built on first use
    assert orchestrator.session.state is SessionState.ABSENT


def test_build_orchestrator_defaults():
    orchestrator = build_orchestrator(dict(DEFAULT_SETTINGS))
    assert orchestrator.default_languages == DEFAULT_LANGUAGES
    assert orchestrator.diagnostic_sink is None
