"""
Tests for the recognition session lifecycle and sticky parameters.

Usage:
    pytest tests/test_session.py
"""

import pytest

from conftest import FakeFactory
from dishdecoder.ocr import (
    CoordinateSpace,
    RecognitionFailure,
    RecognitionSession,
    Rect,
    SessionInitFailure,
    SessionState,
    preprocess,
)
from conftest import solid_image


def test_session_starts_absent():
    session = RecognitionSession(FakeFactory())
    assert session.state is SessionState.ABSENT
    assert session.languages == ()
    assert session.init_count == 0


def test_ensure_reuses_the_engine_for_the_same_languages():
    factory = FakeFactory()
    session = RecognitionSession(factory)

    first = session.ensure(("eng", "chi_tra"))
    second = session.ensure(["eng", "chi_tra"])

    assert first is second
    assert session.init_count == 1
    assert len(factory.engines) == 1
    assert session.state is SessionState.READY
    assert session.languages == ("eng", "chi_tra")


def test_ensure_with_other_languages_requires_terminate():
    session = RecognitionSession(FakeFactory())
    session.ensure(("eng",))

    with pytest.raises(SessionInitFailure) as excinfo:
        session.ensure(("jpn",))
    assert excinfo.value.code == "SESSION_LANGUAGE_MISMATCH"

    session.terminate()
    session.ensure(("jpn",))
    assert session.languages == ("jpn",)
    assert session.init_count == 2


def test_terminate_is_idempotent_and_closes_the_engine():
    factory = FakeFactory()
    session = RecognitionSession(factory)
    session.terminate()  # never created

    session.ensure(("eng",))
    session.terminate()
    session.terminate()

    assert factory.engine.closed
    assert session.state is SessionState.ABSENT


def test_factory_errors_become_session_init_failure():
    def broken(languages):
        raise RuntimeError("no trained data")

    session = RecognitionSession(broken)
    with pytest.raises(SessionInitFailure) as excinfo:
        session.ensure(("eng",))

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert session.state is SessionState.ABSENT
    assert session.init_count == 0


def test_parameters_are_sticky_and_only_changes_are_sent():
    factory = FakeFactory()
    session = RecognitionSession(factory)
    session.ensure(("eng",))

    assert session.apply_parameters({"tessedit_char_whitelist": "0123456789"})
    assert not session.apply_parameters({"tessedit_char_whitelist": "0123456789"})
    assert session.apply_parameters({"tessedit_char_whitelist": "0123456789",
                                     "tessedit_pageseg_mode": "7"})

    assert factory.engine.parameter_updates == [
        {"tessedit_char_whitelist": "0123456789"},
        {"tessedit_pageseg_mode": "7"},
    ]
    assert session.applied_parameters == {
        "tessedit_char_whitelist": "0123456789",
        "tessedit_pageseg_mode": "7",
    }


def test_new_session_forgets_applied_parameters():
    session = RecognitionSession(FakeFactory())
    session.ensure(("eng",))
    session.apply_parameters({"tessedit_char_whitelist": "0"})
    session.terminate()

    session.ensure(("eng",))
    assert session.applied_parameters == {}


def test_recognize_without_session_fails_typed():
    session = RecognitionSession(FakeFactory())
    working = preprocess(solid_image(4, 4, 200))
    region = Rect(0, 0, 8, 8, CoordinateSpace.WORKING_IMAGE)

    with pytest.raises(RecognitionFailure) as excinfo:
        session.recognize(working, region)
    assert excinfo.value.code == "SESSION_TERMINATED"


def test_engine_errors_become_recognition_failure():
    def explode(region, parameters):
        raise ValueError("engine crashed")

    session = RecognitionSession(FakeFactory(explode))
    session.ensure(("eng",))
    working = preprocess(solid_image(4, 4, 200))

    with pytest.raises(RecognitionFailure) as excinfo:
        session.recognize(working, Rect(0, 0, 8, 8, CoordinateSpace.WORKING_IMAGE))
    assert isinstance(excinfo.value.__cause__, ValueError)
