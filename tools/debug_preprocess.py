"""
Diagnostic script to inspect the recognition preprocessor on a photo.
Reports luma statistics and the polarity decision, and saves the working image.

Usage:
    python tools/debug_preprocess.py photo.jpg [--out debug/working.png] [--display 390x844]
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dishdecoder.ocr import (
    DARK_BACKGROUND_THRESHOLD,
    UPSCALE_FACTOR,
    RasterImage,
    Size,
    compute_crop,
    preprocess,
    save_debug_image,
)


def analyze_image(image_path: str, out_path: str, display: str = None):
    """Preprocess an image and print what the pipeline decided."""
    print(f"\n{'='*60}")
    print(f"Analyzing: {image_path}")
    print(f"{'='*60}")

    raster = RasterImage.from_bytes(Path(image_path).read_bytes())
    print(f"Captured frame: {raster.width}x{raster.height}")

    if display:
        width, height = (float(v) for v in display.lower().split("x"))
        crop = compute_crop(Size(width, height), Size(raster.width, raster.height))
        v = crop.visible
        print(f"Display {width:.0f}x{height:.0f}: crop {crop.axis.value}, "
              f"visible ({v.left:.1f}, {v.top:.1f}, {v.width:.1f}, {v.height:.1f}), "
              f"scale {crop.scale:.4f}")

    working = preprocess(raster)
    stats = working.stats
    print(f"Working image: {working.width}x{working.height} (x{UPSCALE_FACTOR})")
    print(f"Luma mean: {stats.mean_luma:.1f}  min: {stats.min_luma:.1f}  max: {stats.max_luma:.1f}")
    print(f"Polarity: {'dark background, inverted' if stats.inverted else 'light background'} "
          f"(threshold {DARK_BACKGROUND_THRESHOLD})")

    grey = working.pixels[..., 0]
    histogram, _ = np.histogram(grey, bins=8, range=(0, 256))
    print(f"\n--- Output histogram ---")
    for i, count in enumerate(histogram):
        share = count / grey.size * 100
        print(f"{i * 32:>3}-{i * 32 + 31:>3}: {share:5.1f}% {'#' * int(share / 2)}")

    save_debug_image(working, out_path)
    print(f"\nWorking image saved: {out_path}")


def main():
    parser = argparse.ArgumentParser(description="Inspect the recognition preprocessor")
    parser.add_argument("image", help="Photo to analyze")
    parser.add_argument("--out", default="debug/working.png", help="Where to save the working image")
    parser.add_argument("--display", help="Viewport size as WxH to report the crop for")
    args = parser.parse_args()

    analyze_image(args.image, args.out, args.display)
    return 0


if __name__ == "__main__":
    sys.exit(main())
