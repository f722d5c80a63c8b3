"""
Recognition Session

Owns one long-lived recognition engine bound to a fixed language set.
Engines are expensive to build (trained data load), so a session is created
on first use and reused until terminate() is called.

State machine:
    ABSENT --ensure()--> READY --terminate()--> ABSENT
"""

import logging
import threading
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from .base import RecognitionEngine
from .errors import OCRError, RecognitionFailure, SessionInitFailure
from .factory import EngineFactory, engine_factory
from .geometry import Rect
from .raster import WorkingImage


logger = logging.getLogger(__name__)


class SessionState(Enum):
    ABSENT = "absent"
    READY = "ready"


class RecognitionSession:
    """
    Lazily created, reusable engine holder.

    Engine calls, parameter updates and termination are serialised on one
    lock: terminate() waits for an in-flight engine call to return before
    releasing the engine.

    Example:
        session = RecognitionSession()
        session.ensure(("eng",))
        session.apply_parameters({"tessedit_char_whitelist": "0123456789"})
        text = session.recognize(working_image, region)
        session.terminate()
    """

    def __init__(self, factory: Optional[EngineFactory] = None):
        """
        Initialize an empty session.

        Args:
            factory: Callable building an engine from a language set.
                     If None, builds a Tesseract engine.
        """
        self._factory = factory or engine_factory("tesseract")
        self._lock = threading.Lock()
        self._engine: Optional[RecognitionEngine] = None
        self._languages: Tuple[str, ...] = ()
        self._applied: Dict[str, str] = {}
        self.init_count = 0

    @property
    def state(self) -> SessionState:
        return SessionState.READY if self._engine is not None else SessionState.ABSENT

    @property
    def languages(self) -> Tuple[str, ...]:
        """Language set of the live engine, empty when ABSENT."""
        return self._languages

    @property
    def applied_parameters(self) -> Dict[str, str]:
        """Parameters currently in effect on the engine."""
        with self._lock:
            return dict(self._applied)

    def ensure(self, languages: Iterable[str]) -> RecognitionEngine:
        """
        Return the live engine, building one if the session is ABSENT.

        Raises:
            SessionInitFailure: the engine could not be built, or the session
                is READY with a different language set (terminate first)
        """
        languages = tuple(languages)
        with self._lock:
            if self._engine is not None:
                if languages != self._languages:
                    raise SessionInitFailure(
                        f"Session is bound to {'+'.join(self._languages)}, "
                        f"requested {'+'.join(languages)}",
                        detail={"current": self._languages, "requested": languages},
                        code="SESSION_LANGUAGE_MISMATCH",
                    )
                return self._engine

            logger.info(f"Creating recognition session ({'+'.join(languages)})")
            try:
                engine = self._factory(languages)
            except SessionInitFailure:
                raise
            except Exception as e:
                raise SessionInitFailure(
                    f"Could not create recognition engine: {e}",
                    detail={"languages": languages},
                ) from e

            self._engine = engine
            self._languages = languages
            self._applied = {}
            self.init_count += 1
            return engine

    def apply_parameters(self, parameters: Dict[str, str]) -> bool:
        """
        Push parameters that differ from what the engine already has.

        Parameters are sticky: keys not mentioned keep their current value.

        Returns:
            True if anything was sent to the engine
        """
        with self._lock:
            engine = self._require_engine()
            changed = {
                key: value for key, value in parameters.items()
                if self._applied.get(key) != value
            }
            if not changed:
                return False

            logger.debug(f"Applying engine parameters: {changed}")
            try:
                engine.set_parameters(changed)
            except OCRError:
                raise
            except Exception as e:
                raise RecognitionFailure(f"Could not apply parameters: {e}",
                                         detail={"parameters": changed}) from e
            self._applied.update(changed)
            return True

    def recognize(self, image: WorkingImage, region: Rect) -> str:
        """
        Run the engine on one region.

        Raises:
            RecognitionFailure: the engine failed, or the session was
                terminated (code SESSION_TERMINATED)
        """
        with self._lock:
            engine = self._require_engine()
            try:
                return engine.recognize(image, region)
            except OCRError:
                raise
            except Exception as e:
                raise RecognitionFailure(f"Engine error: {e}") from e

    def terminate(self) -> None:
        """Release the engine. Safe to call when ABSENT."""
        with self._lock:
            engine = self._engine
            if engine is None:
                return
            self._engine = None
            self._languages = ()
            self._applied = {}
            logger.info("Recognition session terminated")
            engine.close()

    def _require_engine(self) -> RecognitionEngine:
        if self._engine is None:
            raise RecognitionFailure("Recognition session is not running",
                                     code="SESSION_TERMINATED")
        return self._engine
