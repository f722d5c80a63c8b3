"""
Recognition Engine Factory

Factory for creating recognition engine instances.
"""

import importlib
from typing import Callable, Dict, Iterable, Type, Union

from .base import RecognitionEngine


# Registry of available engines: dotted "module.Class" path or a class
_ENGINE_REGISTRY: Dict[str, Union[str, Type[RecognitionEngine]]] = {
    "tesseract": "tesseract_engine.TesseractEngine",
}

# Cache for loaded engine classes
_ENGINE_CACHE: Dict[str, Type[RecognitionEngine]] = {}

EngineFactory = Callable[[Iterable[str]], RecognitionEngine]


def _load_engine_class(engine_type: str) -> Type[RecognitionEngine]:
    """Lazily load an engine class by type."""
    if engine_type in _ENGINE_CACHE:
        return _ENGINE_CACHE[engine_type]

    entry = _ENGINE_REGISTRY[engine_type]
    if isinstance(entry, str):
        module_name, class_name = entry.rsplit(".", 1)
        module = importlib.import_module(f".{module_name}", package=__package__)
        engine_class = getattr(module, class_name)
    else:
        engine_class = entry

    _ENGINE_CACHE[engine_type] = engine_class
    return engine_class


def create_engine(engine_type: str = "tesseract", **config) -> RecognitionEngine:
    """
    Create a recognition engine by type.

    Args:
        engine_type: Engine type identifier. Available types:
            - "tesseract" (default): Tesseract via pytesseract
        **config: Engine constructor options:
            For "tesseract":
                - languages: iterable of trained data names
                - tesseract_cmd: path to the tesseract binary
                - timeout_s: per-call timeout in seconds

    Returns:
        Engine instance

    Raises:
        ValueError: If engine_type is not recognized

    Example:
        engine = create_engine("tesseract", languages=["eng"])
    """
    if engine_type not in _ENGINE_REGISTRY:
        available = ", ".join(_ENGINE_REGISTRY.keys())
        raise ValueError(f"Unknown engine type: {engine_type}. Available: {available}")

    engine_class = _load_engine_class(engine_type)
    return engine_class(**config)


def engine_factory(engine_type: str = "tesseract", **config) -> EngineFactory:
    """
    Bind an engine type and options into a session factory.

    The returned callable takes only the language set, which is what a
    RecognitionSession supplies when it builds its engine.
    """
    if engine_type not in _ENGINE_REGISTRY:
        available = ", ".join(_ENGINE_REGISTRY.keys())
        raise ValueError(f"Unknown engine type: {engine_type}. Available: {available}")

    def build(languages: Iterable[str]) -> RecognitionEngine:
        return create_engine(engine_type, languages=tuple(languages), **config)

    return build


def register_engine(name: str, engine_class: type) -> None:
    """
    Register a custom recognition engine type.

    Args:
        name: Engine type identifier
        engine_class: RecognitionEngine subclass

    Example:
        from dishdecoder.ocr import register_engine, RecognitionEngine

        class MyCustomEngine(RecognitionEngine):
            ...

        register_engine("custom", MyCustomEngine)
    """
    if not issubclass(engine_class, RecognitionEngine):
        raise TypeError(f"{engine_class} must be a subclass of RecognitionEngine")
    _ENGINE_REGISTRY[name] = engine_class
    _ENGINE_CACHE.pop(name, None)


def available_engines() -> list[str]:
    """
    List available engine types.

    Returns:
        List of registered engine type names
    """
    return list(_ENGINE_REGISTRY.keys())
