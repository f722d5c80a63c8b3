"""
OCR Error Types

Typed failures raised by the recognition pipeline. Each error carries a
stable ``code`` so callers (and tests) can tell failure kinds apart without
parsing messages.
"""

from typing import Any, Dict, Optional


class OCRError(Exception):
    """Base class for all recognition pipeline errors."""

    code = "OCR_ERROR"

    def __init__(
        self,
        message: str,
        detail: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.detail: Dict[str, Any] = detail or {}
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


class SurfaceUnavailable(OCRError):
    """No raster surface could be created for the image."""

    code = "SURFACE_UNAVAILABLE"


class DecodeFailure(OCRError):
    """Input bytes could not be decoded into an image."""

    code = "DECODE_FAILURE"


class SessionInitFailure(OCRError):
    """The recognition engine could not be established."""

    code = "SESSION_INIT_FAILURE"


class RecognitionFailure(OCRError):
    """The engine call failed for a single task."""

    code = "RECOGNITION_FAILURE"


class InvalidRegion(OCRError):
    """A mapped region falls outside the image or has no area."""

    code = "INVALID_REGION"
