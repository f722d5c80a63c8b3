"""
Recognition Engine Base Interface

Abstract base class defining the recognition engine contract.
"""

from abc import ABC, abstractmethod
from typing import Dict, Tuple

from .geometry import Rect
from .raster import WorkingImage


class RecognitionEngine(ABC):
    """
    Abstract base class for text recognition engines.

    An engine is bound to a fixed language set for its whole life and is
    stateful: parameters passed to set_parameters() stay in effect for every
    later recognize() call until overwritten.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Engine identifier.

        Returns:
            String name identifying this engine type (e.g., "tesseract")
        """
        pass

    @property
    @abstractmethod
    def languages(self) -> Tuple[str, ...]:
        """Language identifiers the engine was created with."""
        pass

    @abstractmethod
    def set_parameters(self, parameters: Dict[str, str]) -> None:
        """
        Merge parameters into the engine's current settings.

        Args:
            parameters: Engine variable name -> value
        """
        pass

    @abstractmethod
    def recognize(self, image: WorkingImage, region: Rect) -> str:
        """
        Recognize text inside a region of the working image.

        Args:
            image: Preprocessed working image
            region: Rect in WORKING_IMAGE space, already clamped to the image

        Returns:
            Raw recognized text, unmodified
        """
        pass

    def close(self) -> None:
        """
        Release engine resources.

        Default implementation does nothing.
        """
        pass
