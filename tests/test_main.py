"""
Tests for the command line entry point.

Usage:
    pytest tests/test_main.py
"""

import argparse

import pytest

import main
from conftest import FakeFactory, png_bytes, text_like_image
from dishdecoder.ocr import (
    CoordinateSpace,
    RecognitionFailure,
    RecognitionSession,
    SegmentationMode,
    SessionInitFailure,
    TaskOrchestrator,
)


@pytest.fixture
def photo(tmp_path):
    path = tmp_path / "menu.png"
    path.write_bytes(png_bytes(text_like_image()))
    return path


def use_fake_engine(monkeypatch, handler=None):
    factory = FakeFactory(handler)
    monkeypatch.setattr(
        main, "build_orchestrator",
        lambda settings: TaskOrchestrator(session=RecognitionSession(factory)),
    )
    return factory


def test_parse_region_and_size():
    rect = main.parse_region("1,2,3.5,4")
    assert (rect.left, rect.top, rect.width, rect.height) == (1, 2, 3.5, 4)
    assert rect.space is CoordinateSpace.DISPLAY
    assert main.parse_size("390x844").width == 390

    with pytest.raises(argparse.ArgumentTypeError):
        main.parse_region("1,2,3")
    with pytest.raises(argparse.ArgumentTypeError):
        main.parse_size("390")


def test_build_tasks_one_per_region():
    args = main.parse_args(["menu.png", "-r", "0,0,5,5", "-r", "5,0,5,5",
                            "--psm", "7", "--whitelist", "0123456789", "-l", "eng"])
    tasks = main.build_tasks(args)

    assert len(tasks) == 2
    assert tasks[0].segmentation_mode is SegmentationMode.SINGLE_LINE
    assert tasks[1].parameters == {"tessedit_char_whitelist": "0123456789"}
    assert tasks[0].languages == ("eng",)


def test_main_prints_each_result(monkeypatch, photo, tmp_path, capsys):
    factory = use_fake_engine(monkeypatch, lambda region, parameters: " 120 \n")

    code = main.main([str(photo), "-r", "0,0,5,5", "-r", "5,0,5,5",
                      "--config", str(tmp_path / "missing.json")])

    assert code == main.EXIT_OK
    assert capsys.readouterr().out.splitlines() == ["120", "120"]
    assert factory.engine.closed


def test_main_marks_failed_tasks(monkeypatch, photo, tmp_path, capsys):
    def fail(region, parameters):
        raise RecognitionFailure("engine crashed")

    use_fake_engine(monkeypatch, fail)
    code = main.main([str(photo), "--config", str(tmp_path / "missing.json")])

    assert code == main.EXIT_TASK_FAILED
    assert "[recognition_failure]" in capsys.readouterr().out


def test_main_reports_batch_failures(monkeypatch, photo, tmp_path):
    def broken(languages):
        raise SessionInitFailure("no tesseract")

    monkeypatch.setattr(main, "build_orchestrator",
                        lambda settings: TaskOrchestrator(engine_factory=broken))
    assert main.main([str(photo), "--config", str(tmp_path / "missing.json")]) == main.EXIT_BATCH_FAILED


def test_main_reports_unreadable_file(monkeypatch, tmp_path):
    use_fake_engine(monkeypatch)
    assert main.main([str(tmp_path / "nope.png"), "--config", str(tmp_path / "c.json")]) == main.EXIT_BATCH_FAILED
