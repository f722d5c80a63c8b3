"""
Recognition Task and Result Types

Shared data structures describing what to recognize and what came back.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, Optional, Tuple, Union

from .errors import OCRError
from .geometry import Rect


# Latin script plus Simplified and Traditional Chinese
DEFAULT_LANGUAGES: Tuple[str, ...] = ("eng", "chi_sim", "chi_tra")

# Engine variable that carries the segmentation mode
PAGESEG_MODE_PARAMETER = "tessedit_pageseg_mode"


class SegmentationMode(IntEnum):
    """Layout hint for the engine (Tesseract page segmentation numbers)."""
    AUTO = 3                    # Fully automatic, multiple blocks
    SINGLE_COLUMN = 4           # One column of text of variable sizes
    SINGLE_BLOCK_VERT_TEXT = 5  # One block of vertically aligned text
    SINGLE_BLOCK = 6            # One uniform block of text
    SINGLE_LINE = 7             # One text line
    SINGLE_WORD = 8             # One word
    SINGLE_CHAR = 10            # One character

    @property
    def strips_whitespace(self) -> bool:
        """Short structured fields (prices, codes) treat all whitespace as noise."""
        return self not in (SegmentationMode.AUTO, SegmentationMode.SINGLE_BLOCK)


@dataclass
class RecognitionTask:
    """One region of one image to recognize."""
    languages: Optional[Tuple[str, ...]] = None  # Only honored when a session is created
    region: Optional[Rect] = None                # Usually DISPLAY space
    segmentation_mode: Optional[SegmentationMode] = None
    parameters: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.languages, str):
            self.languages = (self.languages,)
        elif self.languages is not None:
            self.languages = tuple(self.languages)
        if self.segmentation_mode is not None:
            self.segmentation_mode = SegmentationMode(self.segmentation_mode)

    def requested_parameters(self) -> Dict[str, str]:
        """Overrides plus the segmentation mode, as engine variables."""
        params = {key: str(value) for key, value in self.parameters.items()}
        if self.segmentation_mode is not None:
            params[PAGESEG_MODE_PARAMETER] = str(int(self.segmentation_mode))
        return params


@dataclass(frozen=True)
class TaskFailure:
    """
    Marker standing in for a task's text when that task failed.

    Falsy, and never equal to a string, so "recognition failed" cannot be
    confused with "no text found".
    """
    index: int
    error: OCRError

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"[{self.code.lower()}] {self.message}"


TaskResult = Union[str, TaskFailure]


def postprocess_text(raw: str, mode: Optional[SegmentationMode]) -> str:
    """
    Clean raw engine output for one task.

    Whitespace-stripping modes drop every space, tab and newline; all other
    tasks only lose leading/trailing whitespace so multi-line blocks keep
    their line breaks.
    """
    if mode is not None and mode.strips_whitespace:
        return "".join(raw.split())
    return raw.strip()
