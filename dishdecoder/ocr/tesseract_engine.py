"""
Tesseract Recognition Engine

Recognition engine backed by the Tesseract binary through pytesseract.
Parameters are kept on the engine and replayed as command-line options on
every call, so they behave like a long-lived Tesseract worker's variables.
"""

import logging
import shlex
from typing import Dict, Iterable, Optional, Tuple

import pytesseract

from .base import RecognitionEngine
from .errors import RecognitionFailure, SessionInitFailure
from .geometry import CoordinateSpace, Rect
from .raster import WorkingImage
from .result import DEFAULT_LANGUAGES, PAGESEG_MODE_PARAMETER


logger = logging.getLogger(__name__)


def build_config(parameters: Dict[str, str]) -> str:
    """
    Render engine variables as a Tesseract command-line config string.

    The segmentation mode becomes ``--psm N``; everything else is passed
    through as ``-c name=value``.
    """
    parts = []
    psm = parameters.get(PAGESEG_MODE_PARAMETER)
    if psm is not None:
        parts.append(f"--psm {int(psm)}")
    for key in sorted(parameters):
        if key == PAGESEG_MODE_PARAMETER:
            continue
        parts.append(f"-c {shlex.quote(f'{key}={parameters[key]}')}")
    return " ".join(parts)


class TesseractEngine(RecognitionEngine):
    """
    Tesseract via pytesseract.

    Construction verifies that the binary runs and that trained data exists
    for every requested language; both failures raise SessionInitFailure.
    """

    def __init__(
        self,
        languages: Optional[Iterable[str]] = None,
        tesseract_cmd: Optional[str] = None,
        timeout_s: float = 0,
    ):
        """
        Initialize the Tesseract engine.

        Args:
            languages: Trained data names, e.g. ("eng", "chi_tra").
                       If None, uses DEFAULT_LANGUAGES.
            tesseract_cmd: Path to the tesseract binary (default: on PATH)
            timeout_s: Per-call timeout in seconds, 0 for none
        """
        self._languages = tuple(languages) if languages else DEFAULT_LANGUAGES
        self._timeout_s = timeout_s
        self._parameters: Dict[str, str] = {}

        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd

        try:
            version = pytesseract.get_tesseract_version()
            installed = set(pytesseract.get_languages(config=""))
        except pytesseract.TesseractNotFoundError as e:
            raise SessionInitFailure(
                "tesseract binary not found",
                detail={"tesseract_cmd": pytesseract.pytesseract.tesseract_cmd},
            ) from e
        except (pytesseract.TesseractError, OSError) as e:
            raise SessionInitFailure(f"tesseract could not start: {e}") from e

        missing = [lang for lang in self._languages if lang not in installed]
        if missing:
            raise SessionInitFailure(
                f"Missing trained data for: {', '.join(missing)}",
                detail={"missing": missing, "installed": sorted(installed)},
            )

        logger.info(f"Tesseract {version} ready ({'+'.join(self._languages)})")

    @property
    def name(self) -> str:
        return "tesseract"

    @property
    def languages(self) -> Tuple[str, ...]:
        return self._languages

    @property
    def parameters(self) -> Dict[str, str]:
        return dict(self._parameters)

    def set_parameters(self, parameters: Dict[str, str]) -> None:
        self._parameters.update({key: str(value) for key, value in parameters.items()})

    def recognize(self, image: WorkingImage, region: Rect) -> str:
        region.require(CoordinateSpace.WORKING_IMAGE)

        crop = image.to_pil().crop(region.as_box())
        try:
            return pytesseract.image_to_string(
                crop,
                lang="+".join(self._languages),
                config=build_config(self._parameters),
                timeout=self._timeout_s,
            )
        except (pytesseract.TesseractError, RuntimeError, OSError) as e:
            raise RecognitionFailure(
                f"tesseract failed: {e}",
                detail={"region": region.as_box()},
            ) from e
