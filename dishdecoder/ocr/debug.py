"""
OCR Debug Utilities

Diagnostic sink that saves each batch's working image, so the effect of
upscaling, polarity inversion and tone compression can be inspected.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

from PIL import ImageDraw, ImageFont

from .raster import WorkingImage


logger = logging.getLogger(__name__)

# Debug settings
DEBUG_DIR = Path("./debug")
MAX_DEBUG_IMAGES = 10


def save_debug_image(image: WorkingImage, path: str) -> None:
    """
    Save a working image with its luma statistics stamped in the corner.

    Args:
        image: Preprocessed working image
        path: Output file path
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    debug_img = image.to_pil().convert("RGB")
    draw = ImageDraw.Draw(debug_img)

    # Try to load a font, fall back to default
    try:
        font = ImageFont.truetype("arial.ttf", 12)
    except OSError:
        font = ImageFont.load_default()

    stats = image.stats
    summary = (f"mean={stats.mean_luma:.0f} min={stats.min_luma:.0f} max={stats.max_luma:.0f} "
               f"{'inverted' if stats.inverted else 'normal'} x{image.scale}")
    draw.text((10, 10), summary, fill="red", font=font)

    debug_img.save(path, "PNG")

    # Cleanup old debug images
    _cleanup_debug_images(Path(path).parent)


def _cleanup_debug_images(directory: Path) -> None:
    """Remove old debug images, keeping only the most recent MAX_DEBUG_IMAGES."""
    if not directory.exists():
        return

    # Get all debug images sorted by modification time
    debug_files = sorted(
        directory.glob("debug_*.png"),
        key=lambda p: p.stat().st_mtime,
        reverse=True
    )

    # Remove old files
    for old_file in debug_files[MAX_DEBUG_IMAGES:]:
        try:
            old_file.unlink()
        except OSError as e:
            logger.warning(f"Could not remove old debug image {old_file}: {e}")


class DebugImageSink:
    """
    Diagnostic sink writing timestamped working images to a directory.

    Pass an instance as TaskOrchestrator(diagnostic_sink=...).
    """

    def __init__(self, directory: Optional[Path] = None):
        self.directory = Path(directory) if directory is not None else DEBUG_DIR
        self.last_path: Optional[Path] = None

    def __call__(self, image: WorkingImage) -> None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
        filepath = self.directory / f"debug_{timestamp}.png"
        save_debug_image(image, str(filepath))
        self.last_path = filepath
        logger.debug(f"Debug image saved: {filepath}")
