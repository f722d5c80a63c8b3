"""
OCR Module for Dish Decoder

Turns a photo of a printed menu into text for user-selected regions.

Usage:
    from dishdecoder.ocr import TaskOrchestrator, RecognitionTask, Rect, Size

    orchestrator = TaskOrchestrator()

    # Whole photo, default languages (eng + chi_sim + chi_tra)
    text = orchestrator.recognize(photo_bytes)

    # Several regions drawn on a 390x844 viewport
    texts = orchestrator.recognize(photo_bytes, [
        RecognitionTask(region=Rect(20, 100, 200, 40, CoordinateSpace.DISPLAY)),
        RecognitionTask(region=Rect(260, 100, 80, 40, CoordinateSpace.DISPLAY),
                        segmentation_mode=SegmentationMode.SINGLE_LINE),
    ], display_size=Size(390, 844))

    # Release the engine when done
    orchestrator.terminate()

Failed tasks come back as TaskFailure markers rather than empty strings.
"""

# Public API - Errors
from .errors import (
    OCRError,
    SurfaceUnavailable,
    DecodeFailure,
    SessionInitFailure,
    RecognitionFailure,
    InvalidRegion,
)

# Public API - Images
from .raster import RasterImage, WorkingImage, LumaStats

# Public API - Coordinate mapping
from .geometry import (
    CoordinateSpace,
    CropAxis,
    CropTransform,
    Rect,
    Size,
    compute_crop,
    map_rect,
    clamp_rect,
    crop_to_viewport,
)

# Public API - Preprocessing
from .preprocess import (
    UPSCALE_FACTOR,
    DARK_BACKGROUND_THRESHOLD,
    preprocess,
)

# Public API - Task and result types
from .result import (
    DEFAULT_LANGUAGES,
    SegmentationMode,
    RecognitionTask,
    TaskFailure,
    TaskResult,
)

# Public API - Base class for custom engines
from .base import RecognitionEngine

# Public API - Factory functions
from .factory import (
    create_engine,
    engine_factory,
    register_engine,
    available_engines,
)

# Public API - Session and orchestration
from .session import RecognitionSession, SessionState
from .orchestrator import TaskOrchestrator

# Debug utilities
from .debug import DEBUG_DIR, DebugImageSink, save_debug_image

__all__ = [
    # Errors
    "OCRError",
    "SurfaceUnavailable",
    "DecodeFailure",
    "SessionInitFailure",
    "RecognitionFailure",
    "InvalidRegion",
    # Images
    "RasterImage",
    "WorkingImage",
    "LumaStats",
    # Geometry
    "CoordinateSpace",
    "CropAxis",
    "CropTransform",
    "Rect",
    "Size",
    "compute_crop",
    "map_rect",
    "clamp_rect",
    "crop_to_viewport",
    # Preprocessing
    "UPSCALE_FACTOR",
    "DARK_BACKGROUND_THRESHOLD",
    "preprocess",
    # Tasks
    "DEFAULT_LANGUAGES",
    "SegmentationMode",
    "RecognitionTask",
    "TaskFailure",
    "TaskResult",
    # Base class
    "RecognitionEngine",
    # Factory
    "create_engine",
    "engine_factory",
    "register_engine",
    "available_engines",
    # Session
    "RecognitionSession",
    "SessionState",
    "TaskOrchestrator",
    # Debug
    "DEBUG_DIR",
    "DebugImageSink",
    "save_debug_image",
]
