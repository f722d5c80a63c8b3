"""
Tests for engine registration and session factories.

Usage:
    pytest tests/test_factory.py
"""

import pytest

from conftest import FakeEngine
from dishdecoder.ocr import (
    RecognitionSession,
    available_engines,
    create_engine,
    engine_factory,
    register_engine,
)


class CountingEngine(FakeEngine):
    created = 0

    def __init__(self, languages=("eng",), **options):
        super().__init__(languages)
        self.options = options
        CountingEngine.created += 1


def test_register_and_create_custom_engine():
    register_engine("counting", CountingEngine)

    assert "counting" in available_engines()
    engine = create_engine("counting", languages=("eng", "jpn"), flavour="test")
    assert isinstance(engine, CountingEngine)
    assert engine.languages == ("eng", "jpn")
    assert engine.options == {"flavour": "test"}


def test_register_rejects_non_engines():
    with pytest.raises(TypeError):
        register_engine("bogus", dict)


def test_engine_factory_binds_options_for_sessions():
    register_engine("counting", CountingEngine)
    before = CountingEngine.created

    session = RecognitionSession(engine_factory("counting", flavour="bound"))
    engine = session.ensure(("chi_tra",))
    session.ensure(("chi_tra",))

    assert CountingEngine.created == before + 1
    assert engine.languages == ("chi_tra",)
    assert engine.options == {"flavour": "bound"}


def test_engine_factory_rejects_unknown_type():
    with pytest.raises(ValueError):
        engine_factory("nope")
