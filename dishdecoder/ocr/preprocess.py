"""
Recognition Image Preprocessor

Turns a captured photo into a monochrome image the recognition engine reads
well:

1. Pass 1: Rec. 709 luma statistics (min, max, mean) over the whole image
2. Polarity decision: mean luma below DARK_BACKGROUND_THRESHOLD means light
   text on a dark ground (LCD panels, chalkboards) and gets inverted
3. Pass 2: linear contrast stretch, polarity normalisation, then quadratic
   tone compression that darkens mid-tones while keeping the background white
4. Upscale by UPSCALE_FACTOR with nearest-neighbour resampling (no smoothing)

No hard binarisation is applied; the engine does its own thresholding and
keeps more detail from the grey levels.
"""

import logging

import cv2
import numpy as np

from .errors import SurfaceUnavailable
from .raster import LumaStats, RasterImage, WorkingImage


logger = logging.getLogger(__name__)

# Working image = captured frame x UPSCALE_FACTOR on both axes
UPSCALE_FACTOR = 2

# Mean luma (0-255) below which the image is treated as a dark background
DARK_BACKGROUND_THRESHOLD = 100

# Rec. 709 luma weights (R, G, B)
LUMA_WEIGHTS = np.array([0.2126, 0.7152, 0.0722], dtype=np.float64)


def upscale(image: RasterImage, factor: int = UPSCALE_FACTOR) -> np.ndarray:
    """
    Nearest-neighbour upscale of an RGBA image.

    Returns:
        New (h*factor, w*factor, 4) uint8 array; the input is left untouched
    """
    if factor < 1:
        raise ValueError(f"Upscale factor must be >= 1, got {factor}")

    if factor == 1:
        return image.pixels.copy()

    target = (image.width * factor, image.height * factor)
    try:
        return cv2.resize(image.pixels, target, interpolation=cv2.INTER_NEAREST)
    except (cv2.error, MemoryError) as e:
        raise SurfaceUnavailable(
            f"Could not allocate a {target[0]}x{target[1]} working surface",
            detail={"width": target[0], "height": target[1]},
        ) from e


def compute_luma(pixels: np.ndarray) -> np.ndarray:
    """Per-pixel Rec. 709 luma as float64, shape (h, w)."""
    luma = pixels[..., 0] * LUMA_WEIGHTS[0]
    luma += pixels[..., 1] * LUMA_WEIGHTS[1]
    luma += pixels[..., 2] * LUMA_WEIGHTS[2]
    return luma


def luma_stats(luma: np.ndarray, dark_threshold: float = DARK_BACKGROUND_THRESHOLD) -> LumaStats:
    """Pass 1: global min/max/mean and the polarity decision."""
    mean_luma = float(luma.sum() / luma.size)
    return LumaStats(
        min_luma=float(luma.min()),
        max_luma=float(luma.max()),
        mean_luma=mean_luma,
        inverted=mean_luma < dark_threshold,
    )


def stretch_contrast(luma: np.ndarray, stats: LumaStats) -> np.ndarray:
    """Linearly map [min, max] luma onto [0, 255]."""
    value_range = stats.max_luma - stats.min_luma
    scale = 1.0 if value_range == 0 else 255.0 / value_range
    stretched = luma - stats.min_luma
    stretched *= scale
    return np.clip(stretched, 0.0, 255.0, out=stretched)


def tone_curve(stretched: np.ndarray, inverted: bool) -> np.ndarray:
    """Polarity normalisation followed by quadratic tone compression."""
    normalized = 255.0 - stretched if inverted else stretched
    toned = normalized * normalized
    toned /= 255.0
    return toned


def grey_channel(pixels: np.ndarray, dark_threshold: float = DARK_BACKGROUND_THRESHOLD):
    """
    Both passes over an RGBA frame.

    Returns:
        (grey, stats): uint8 (h, w) output channel and the pass-1 statistics
    """
    luma = compute_luma(pixels)
    stats = luma_stats(luma, dark_threshold)
    final = tone_curve(stretch_contrast(luma, stats), stats.inverted)
    np.rint(final, out=final)
    np.clip(final, 0, 255, out=final)
    return final.astype(np.uint8), stats


def preprocess(
    image: RasterImage,
    upscale_factor: int = UPSCALE_FACTOR,
    dark_threshold: float = DARK_BACKGROUND_THRESHOLD,
) -> WorkingImage:
    """
    Build the recognition working image from a captured frame.

    Deterministic and pure: the same input always yields the same output and
    the input buffer is never modified.

    Nearest-neighbour upscaling only repeats pixels, so min, max and mean luma
    are the same before and after it. Both passes therefore run on the
    captured frame and only the finished grey image is upscaled.

    Args:
        image: Captured RGBA frame
        upscale_factor: Integer scale applied to both axes
        dark_threshold: Mean luma below which polarity is inverted

    Returns:
        WorkingImage of size (w*factor, h*factor), grey in R=G=B, alpha kept

    Raises:
        SurfaceUnavailable: the intermediate buffers could not be allocated
    """
    if upscale_factor < 1:
        raise ValueError(f"Upscale factor must be >= 1, got {upscale_factor}")

    try:
        grey, stats = grey_channel(image.pixels, dark_threshold)
        frame = image.pixels.copy()
    except MemoryError as e:
        raise SurfaceUnavailable(
            f"Could not allocate working buffers for a {image.width}x{image.height} frame",
            detail={"width": image.width, "height": image.height},
        ) from e

    logger.debug(
        f"Luma mean={stats.mean_luma:.0f} min={stats.min_luma:.0f} max={stats.max_luma:.0f}, "
        f"{'dark background (inverting)' if stats.inverted else 'light background'}"
    )

    frame[..., 0] = grey
    frame[..., 1] = grey
    frame[..., 2] = grey

    pixels = upscale(RasterImage(frame), upscale_factor)

    return WorkingImage(
        pixels,
        scale=upscale_factor,
        source_size=image.size,
        stats=stats,
    )
