"""
Coordinate Mapping

Translates regions of interest between the three coordinate spaces a photo
passes through:

    DISPLAY         - the on-screen viewport the user drew the region on
    CAPTURED_FRAME  - the native camera frame (the display shows a
                      "cover"-style centre crop of it)
    WORKING_IMAGE   - the upscaled frame produced by the preprocessor

Every Rect carries its space, and conversions check it, so a display-space
rectangle can never reach the engine without going through map_rect().
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .errors import InvalidRegion
from .preprocess import UPSCALE_FACTOR
from .raster import RasterImage


logger = logging.getLogger(__name__)


class CoordinateSpace(Enum):
    DISPLAY = "display"
    CAPTURED_FRAME = "captured_frame"
    WORKING_IMAGE = "working_image"


class CropAxis(Enum):
    """Which axis of the captured frame the display crops away."""
    NONE = "none"
    HORIZONTAL = "horizontal"  # left/right edges cut off
    VERTICAL = "vertical"      # top/bottom edges cut off


@dataclass(frozen=True)
class Size:
    width: float
    height: float

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle (left, top, width, height) in a named space."""
    left: float
    top: float
    width: float
    height: float
    space: CoordinateSpace

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def require(self, space: CoordinateSpace) -> "Rect":
        """Return self, or raise if the rectangle is in a different space."""
        if self.space is not space:
            raise ValueError(
                f"Rect is in {self.space.value} space, expected {space.value}"
            )
        return self

    def as_box(self):
        """(left, top, right, bottom) tuple for PIL cropping."""
        return (int(self.left), int(self.top), int(self.right), int(self.bottom))


@dataclass(frozen=True)
class CropTransform:
    """
    Visible part of the captured frame when shown cover-style in the display.

    visible: sub-rectangle of the captured frame that the display shows
    scale:   captured-frame pixels per display pixel
    """
    axis: CropAxis
    visible: Rect
    scale: float


def compute_crop(display_size: Size, capture_size: Size) -> CropTransform:
    """
    Work out which part of the captured frame the display viewport shows.

    The display fills its viewport with the frame and centre-crops the
    excess along one axis.
    """
    if display_size.width <= 0 or display_size.height <= 0:
        raise InvalidRegion("Display viewport has no area",
                            detail={"display": (display_size.width, display_size.height)})
    if capture_size.width <= 0 or capture_size.height <= 0:
        raise InvalidRegion("Captured frame has no area",
                            detail={"capture": (capture_size.width, capture_size.height)})

    display_aspect = display_size.aspect
    capture_aspect = capture_size.aspect

    if capture_aspect == display_aspect:
        visible = Rect(0, 0, capture_size.width, capture_size.height,
                       CoordinateSpace.CAPTURED_FRAME)
        return CropTransform(CropAxis.NONE, visible,
                             capture_size.width / display_size.width)

    if capture_aspect > display_aspect:
        # Frame is relatively wider: trim left and right equally
        visible_w = capture_size.height * display_aspect
        visible = Rect((capture_size.width - visible_w) / 2, 0,
                       visible_w, capture_size.height,
                       CoordinateSpace.CAPTURED_FRAME)
        axis = CropAxis.HORIZONTAL
    else:
        # Frame is relatively taller: trim top and bottom equally
        visible_h = capture_size.width / display_aspect
        visible = Rect(0, (capture_size.height - visible_h) / 2,
                       capture_size.width, visible_h,
                       CoordinateSpace.CAPTURED_FRAME)
        axis = CropAxis.VERTICAL

    return CropTransform(axis, visible, visible.width / display_size.width)


def display_to_capture(rect: Rect, crop: CropTransform) -> Rect:
    """Map a display-space rect into the captured frame."""
    rect.require(CoordinateSpace.DISPLAY)
    return Rect(
        left=crop.visible.left + rect.left * crop.scale,
        top=crop.visible.top + rect.top * crop.scale,
        width=rect.width * crop.scale,
        height=rect.height * crop.scale,
        space=CoordinateSpace.CAPTURED_FRAME,
    )


def capture_to_working(rect: Rect, scale: int) -> Rect:
    """Map a captured-frame rect into the upscaled working image."""
    rect.require(CoordinateSpace.CAPTURED_FRAME)
    return Rect(
        left=rect.left * scale,
        top=rect.top * scale,
        width=rect.width * scale,
        height=rect.height * scale,
        space=CoordinateSpace.WORKING_IMAGE,
    )


def clamp_rect(rect: Rect, bounds: Size) -> Rect:
    """
    Round a working-image rect to whole pixels and clip it to the image.

    Raises:
        InvalidRegion: a coordinate is NaN or infinite, or the clipped
            rectangle has zero width or height
    """
    rect.require(CoordinateSpace.WORKING_IMAGE)

    edges = (rect.left, rect.top, rect.width, rect.height)
    if not all(math.isfinite(v) for v in edges):
        raise InvalidRegion("Region has a non-finite coordinate", detail={"rect": edges})

    x0 = min(max(round(rect.left), 0), int(bounds.width))
    y0 = min(max(round(rect.top), 0), int(bounds.height))
    x1 = min(max(round(rect.right), 0), int(bounds.width))
    y1 = min(max(round(rect.bottom), 0), int(bounds.height))

    if x1 <= x0 or y1 <= y0:
        raise InvalidRegion(
            "Region lies outside the image",
            detail={"rect": (rect.left, rect.top, rect.width, rect.height),
                    "bounds": (bounds.width, bounds.height)},
        )
    return Rect(x0, y0, x1 - x0, y1 - y0, CoordinateSpace.WORKING_IMAGE)


def map_rect(
    rect: Rect,
    display_size: Size,
    capture_size: Size,
    working_scale: Optional[int] = None,
) -> Rect:
    """
    Map a display-space region into working-image pixels.

    Zero-area input is returned mapped but unclamped; the caller decides what
    a degenerate selection means.

    Args:
        rect: Region in DISPLAY space
        display_size: Viewport size the region was drawn on
        capture_size: Native captured frame size
        working_scale: Preprocessor upscale factor (defaults to UPSCALE_FACTOR)

    Returns:
        Rect in WORKING_IMAGE space, clamped to the working image

    Raises:
        InvalidRegion: the region lands entirely outside the working image
    """
    if working_scale is None:
        working_scale = UPSCALE_FACTOR

    crop = compute_crop(display_size, capture_size)
    working = capture_to_working(display_to_capture(rect, crop), working_scale)

    if rect.is_empty:
        return working

    bounds = Size(capture_size.width * working_scale, capture_size.height * working_scale)
    clamped = clamp_rect(working, bounds)
    logger.debug(f"Mapped {rect} -> {clamped} (crop {crop.axis.value}, scale {crop.scale:.3f})")
    return clamped


def crop_to_viewport(image: RasterImage, display_size: Size) -> RasterImage:
    """
    Centre-crop a native frame to the display aspect ratio.

    Produces the frame the user actually saw; regions mapped against the
    cropped frame then need no crop offset.
    """
    crop = compute_crop(display_size, Size(image.width, image.height))
    if crop.axis is CropAxis.NONE:
        return image

    x0 = int(round(crop.visible.left))
    y0 = int(round(crop.visible.top))
    x1 = x0 + max(1, int(round(crop.visible.width)))
    y1 = y0 + max(1, int(round(crop.visible.height)))
    return RasterImage(image.pixels[y0:y1, x0:x1].copy())
