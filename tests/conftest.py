"""
Shared test fixtures: a scriptable fake recognition engine and image helpers.
"""

import io
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np
import pytest
from PIL import Image

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dishdecoder.ocr import (
    RasterImage,
    RecognitionEngine,
    RecognitionSession,
    TaskOrchestrator,
)


class FakeEngine(RecognitionEngine):
    """
    In-memory engine recording every call.

    ``handler(region, parameters)`` produces the raw text; it may raise to
    simulate an engine failure.
    """

    def __init__(self, languages, handler: Optional[Callable] = None):
        self._languages = tuple(languages)
        self._handler = handler
        self.parameters: Dict[str, str] = {}
        self.parameter_updates: List[Dict[str, str]] = []
        self.calls: List[Tuple[tuple, Dict[str, str]]] = []
        self.images = []
        self.closed = False

    @property
    def name(self) -> str:
        return "fake"

    @property
    def languages(self):
        return self._languages

    def set_parameters(self, parameters):
        self.parameter_updates.append(dict(parameters))
        self.parameters.update(parameters)

    def recognize(self, image, region):
        self.calls.append((region.as_box(), dict(self.parameters)))
        self.images.append(image)
        if self._handler is None:
            return "text"
        return self._handler(region, dict(self.parameters))

    def close(self):
        self.closed = True


class FakeFactory:
    """Engine factory that keeps every engine it built."""

    def __init__(self, handler: Optional[Callable] = None):
        self.handler = handler
        self.engines: List[FakeEngine] = []

    def __call__(self, languages):
        engine = FakeEngine(languages, self.handler)
        self.engines.append(engine)
        return engine

    @property
    def engine(self) -> FakeEngine:
        return self.engines[-1]


@pytest.fixture
def fake_factory():
    return FakeFactory()


@pytest.fixture
def orchestrator(fake_factory):
    return TaskOrchestrator(session=RecognitionSession(fake_factory))


def solid_image(width: int, height: int, grey: int, alpha: int = 255) -> RasterImage:
    """Uniform grey RGBA image."""
    pixels = np.full((height, width, 4), grey, dtype=np.uint8)
    pixels[..., 3] = alpha
    return RasterImage(pixels)


def text_like_image(width: int = 20, height: int = 10, background: int = 240, ink: int = 20) -> RasterImage:
    """Background with a horizontal stroke of ink through the middle."""
    image = solid_image(width, height, background)
    image.pixels[height // 2, 2:width - 2, :3] = ink
    return image


def png_bytes(image: RasterImage) -> bytes:
    buffer = io.BytesIO()
    image.to_pil().save(buffer, "PNG")
    return buffer.getvalue()


@pytest.fixture
def sample_image():
    return text_like_image()


@pytest.fixture
def sample_png(sample_image):
    return png_bytes(sample_image)
