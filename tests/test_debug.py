"""
Tests for the working-image diagnostic sink.

Usage:
    pytest tests/test_debug.py
"""

import os

from PIL import Image

from conftest import FakeFactory, text_like_image
from dishdecoder.ocr import (
    DebugImageSink,
    RecognitionSession,
    RecognitionTask,
    TaskOrchestrator,
    preprocess,
    save_debug_image,
)
import dishdecoder.ocr.debug as debug_module


def test_save_debug_image_writes_png(tmp_path):
    working = preprocess(text_like_image())
    path = tmp_path / "out" / "working.png"

    save_debug_image(working, str(path))

    with Image.open(path) as saved:
        assert saved.size == (working.width, working.height)


def test_sink_keeps_only_recent_images(tmp_path, monkeypatch):
    monkeypatch.setattr(debug_module, "MAX_DEBUG_IMAGES", 2)
    working = preprocess(text_like_image())

    for i in range(4):
        old = tmp_path / f"debug_old_{i}.png"
        old.write_bytes(b"")
        os.utime(old, (1_000_000 + i, 1_000_000 + i))
    sink = DebugImageSink(tmp_path)
    sink(working)

    remaining = list(tmp_path.glob("debug_*.png"))
    assert len(remaining) == 2
    assert sink.last_path in remaining


def test_orchestrator_feeds_the_sink(tmp_path):
    sink = DebugImageSink(tmp_path)
    orchestrator = TaskOrchestrator(session=RecognitionSession(FakeFactory()),
                                    diagnostic_sink=sink)

    orchestrator.recognize(text_like_image(), RecognitionTask())

    assert sink.last_path is not None
    assert sink.last_path.exists()
