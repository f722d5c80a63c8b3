"""
Raster Image Types

RGBA pixel buffers passed between the capture side, the preprocessor and the
recognition engine.
"""

import io
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import DecodeFailure, SurfaceUnavailable


CHANNELS = 4  # R, G, B, A


@dataclass(eq=False)
class RasterImage:
    """
    Interleaved RGBA image, row-major.

    ``pixels`` has shape (height, width, 4) and dtype uint8, so the flat
    buffer is always width * height * 4 bytes long.
    """
    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != CHANNELS:
            raise SurfaceUnavailable(
                f"Expected an RGBA buffer of shape (h, w, 4), got {pixels.shape}",
                detail={"shape": tuple(pixels.shape)},
            )
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise SurfaceUnavailable(
                "Image has no area",
                detail={"width": int(pixels.shape[1]), "height": int(pixels.shape[0])},
            )
        if pixels.dtype != np.uint8:
            pixels = np.clip(pixels, 0, 255).astype(np.uint8)
        self.pixels = pixels

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height)"""
        return self.width, self.height

    @property
    def buffer(self) -> bytes:
        """Flat RGBA bytes."""
        return self.pixels.tobytes()

    @classmethod
    def from_buffer(cls, width: int, height: int, data: bytes) -> "RasterImage":
        """Wrap a flat RGBA buffer of exactly width * height * 4 bytes."""
        if width <= 0 or height <= 0:
            raise SurfaceUnavailable(
                f"Cannot create a {width}x{height} surface",
                detail={"width": width, "height": height},
            )
        expected = width * height * CHANNELS
        if len(data) != expected:
            raise DecodeFailure(
                f"Buffer length {len(data)} does not match {width}x{height} RGBA ({expected})",
                detail={"length": len(data), "expected": expected},
            )
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, CHANNELS)
        return cls(pixels.copy())

    @classmethod
    def from_bytes(cls, payload: bytes) -> "RasterImage":
        """
        Decode an encoded image (PNG, JPEG, WebP, ...) into RGBA.

        Raises:
            DecodeFailure: payload is empty or not a readable image
        """
        if not payload:
            raise DecodeFailure("Empty image payload")
        try:
            with Image.open(io.BytesIO(payload)) as img:
                img.load()
                return cls.from_pil(img)
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeFailure(f"Could not decode image: {e}",
                                detail={"length": len(payload)}) from e

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        """Convert any PIL image mode to RGBA."""
        if image.width == 0 or image.height == 0:
            raise SurfaceUnavailable("Image has no area")
        return cls(np.array(image.convert("RGBA"), dtype=np.uint8))

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)


@dataclass
class LumaStats:
    """Global luma statistics from the preprocessor's first pass."""
    min_luma: float
    max_luma: float
    mean_luma: float
    inverted: bool


@dataclass(eq=False)
class WorkingImage(RasterImage):
    """Upscaled, recognition-ready image handed to the engine."""
    scale: int = 1
    source_size: Tuple[int, int] = (0, 0)
    stats: LumaStats = field(default_factory=lambda: LumaStats(0.0, 0.0, 0.0, False))
