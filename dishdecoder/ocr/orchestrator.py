"""
Recognition Task Orchestrator

Runs a batch of recognition tasks against one captured photo:

1. Decode the photo
2. Make sure a recognition session exists for the batch's languages
3. Preprocess the photo once into a shared working image
4. For each task, in order: apply sticky parameters, map its region into
   working-image pixels, recognize, clean up the text
5. Return one result per task (a bare result for a single task)

Per-task failures become TaskFailure markers and the rest of the batch
carries on. Failures that leave nothing to recognize (undecodable photo,
no surface, no engine) raise and abort the batch.
"""

import io
import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from PIL import Image

from .errors import DecodeFailure, InvalidRegion, RecognitionFailure
from .factory import EngineFactory
from .geometry import (
    CoordinateSpace,
    Rect,
    Size,
    capture_to_working,
    clamp_rect,
    map_rect,
)
from .preprocess import DARK_BACKGROUND_THRESHOLD, UPSCALE_FACTOR, preprocess
from .raster import RasterImage, WorkingImage
from .result import (
    DEFAULT_LANGUAGES,
    RecognitionTask,
    TaskFailure,
    TaskResult,
    postprocess_text,
)
from .session import RecognitionSession, SessionState


logger = logging.getLogger(__name__)

ImageInput = Union[bytes, bytearray, memoryview, RasterImage, Image.Image]
DiagnosticSink = Callable[[WorkingImage], None]


class TaskOrchestrator:
    """
    Drives a RecognitionSession through batches of tasks.

    Batches are serialised: a second recognize() call blocks until the
    running batch finishes. Use RecognitionWorker to queue batches without
    blocking the caller.

    Example:
        orchestrator = TaskOrchestrator()
        price = orchestrator.recognize(photo_bytes, RecognitionTask(
            region=Rect(40, 300, 120, 32, CoordinateSpace.DISPLAY),
            segmentation_mode=SegmentationMode.SINGLE_LINE,
            parameters={"tessedit_char_whitelist": "0123456789."},
        ), display_size=Size(390, 844))
    """

    def __init__(
        self,
        session: Optional[RecognitionSession] = None,
        engine_factory: Optional[EngineFactory] = None,
        upscale_factor: int = UPSCALE_FACTOR,
        dark_threshold: float = DARK_BACKGROUND_THRESHOLD,
        default_languages: Iterable[str] = DEFAULT_LANGUAGES,
        diagnostic_sink: Optional[DiagnosticSink] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            session: Existing session to drive; built from engine_factory if None
            engine_factory: Engine builder for a new session (default: Tesseract)
            upscale_factor: Preprocessor upscale factor
            dark_threshold: Preprocessor dark-background threshold
            default_languages: Languages used when the first task names none
            diagnostic_sink: Called with each batch's working image
        """
        self.session = session or RecognitionSession(engine_factory)
        self.upscale_factor = upscale_factor
        self.dark_threshold = dark_threshold
        self.default_languages = tuple(default_languages)
        self.diagnostic_sink = diagnostic_sink

        self._batch_lock = threading.Lock()
        self._busy = False

    @property
    def busy(self) -> bool:
        """True while a batch is running."""
        return self._busy

    def recognize(
        self,
        image: Optional[ImageInput],
        tasks: Union[RecognitionTask, Sequence[RecognitionTask], None] = None,
        display_size: Union[Size, Tuple[float, float], None] = None,
    ) -> Union[TaskResult, List[TaskResult]]:
        """
        Recognize text in one photo for one or many tasks.

        Args:
            image: Encoded image bytes, RasterImage or PIL image
            tasks: A single task, or a list of tasks (None = one default task)
            display_size: Viewport the DISPLAY-space regions were drawn on.
                          Defaults to the captured frame size (no crop).

        Returns:
            str or TaskFailure for a single task; a list of them, in task
            order, for a list of tasks

        Raises:
            DecodeFailure: image missing or not decodable
            SurfaceUnavailable: image has no area or cannot be upscaled
            SessionInitFailure: the recognition engine could not be created
        """
        is_batch = isinstance(tasks, (list, tuple))
        if tasks is None:
            task_list: List[RecognitionTask] = [RecognitionTask()]
        elif is_batch:
            task_list = list(tasks)
        else:
            task_list = [tasks]

        with self._batch_lock:
            self._busy = True
            try:
                results = self._run_batch(image, task_list, display_size)
            finally:
                self._busy = False

        return results if is_batch else results[0]

    def terminate(self) -> None:
        """Release the recognition session; the next batch builds a new one."""
        self.session.terminate()

    def _run_batch(
        self,
        image: Optional[ImageInput],
        tasks: List[RecognitionTask],
        display_size: Union[Size, Tuple[float, float], None],
    ) -> List[TaskResult]:
        start_time = time.perf_counter()

        raster = load_image(image)
        capture_size = Size(raster.width, raster.height)
        if display_size is None:
            display = capture_size
        elif isinstance(display_size, Size):
            display = display_size
        else:
            display = Size(*display_size)

        first_languages = tasks[0].languages if tasks else None
        self._ensure_session(first_languages)

        working = preprocess(raster, self.upscale_factor, self.dark_threshold)
        self._emit_diagnostic(working)

        results: List[TaskResult] = []
        for index, task in enumerate(tasks):
            results.append(self._run_task(index, task, working, capture_size, display))

        failed = sum(1 for r in results if isinstance(r, TaskFailure))
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(f"Recognized {len(results)} task(s) in {elapsed_ms:.1f}ms, {failed} failed")
        return results

    def _ensure_session(self, languages: Optional[Tuple[str, ...]]) -> None:
        """
        Make sure a session for the batch's languages is READY.

        Languages only take effect when a session is built. If the first task
        names a different set than the live session, that session is
        terminated and rebuilt; its sticky parameters go with it. A batch that
        names no languages keeps whatever session is live.
        """
        session = self.session
        if languages and session.state is SessionState.READY and session.languages != languages:
            logger.info(f"Language set changed to {'+'.join(languages)}, rebuilding session")
            session.terminate()

        if languages:
            target = languages
        elif session.state is SessionState.READY:
            target = session.languages
        else:
            target = self.default_languages
        session.ensure(target)

    def _run_task(
        self,
        index: int,
        task: RecognitionTask,
        working: WorkingImage,
        capture_size: Size,
        display_size: Size,
    ) -> TaskResult:
        try:
            requested = task.requested_parameters()
            if requested:
                self.session.apply_parameters(requested)

            region = self._resolve_region(task.region, working, capture_size, display_size)
            raw = self.session.recognize(working, region)
        except (RecognitionFailure, InvalidRegion) as e:
            logger.warning(f"Task {index} failed: [{e.code}] {e.message}")
            return TaskFailure(index, e)

        return postprocess_text(raw, task.segmentation_mode)

    def _resolve_region(
        self,
        region: Optional[Rect],
        working: WorkingImage,
        capture_size: Size,
        display_size: Size,
    ) -> Rect:
        """Bring a task region into clamped WORKING_IMAGE pixels."""
        bounds = Size(working.width, working.height)
        if region is None:
            return Rect(0, 0, working.width, working.height, CoordinateSpace.WORKING_IMAGE)

        if region.space is CoordinateSpace.DISPLAY:
            mapped = map_rect(region, display_size, capture_size, self.upscale_factor)
        elif region.space is CoordinateSpace.CAPTURED_FRAME:
            mapped = capture_to_working(region, self.upscale_factor)
        else:
            mapped = region

        if mapped.is_empty:
            raise InvalidRegion(
                "Region has no area",
                detail={"rect": (region.left, region.top, region.width, region.height)},
            )
        return clamp_rect(mapped, bounds)

    def _emit_diagnostic(self, working: WorkingImage) -> None:
        if self.diagnostic_sink is None:
            return
        try:
            self.diagnostic_sink(working)
        except Exception:
            logger.exception("Diagnostic sink failed")


def load_image(image: Optional[ImageInput]) -> RasterImage:
    """
    Turn any supported image input into a RasterImage.

    Raises:
        DecodeFailure: no image, unsupported type, or undecodable bytes
    """
    if image is None:
        raise DecodeFailure("No image supplied")
    if isinstance(image, RasterImage):
        return image
    if isinstance(image, Image.Image):
        return RasterImage.from_pil(image)
    if isinstance(image, (bytes, bytearray, memoryview)):
        return RasterImage.from_bytes(bytes(image))
    if isinstance(image, io.IOBase):
        return RasterImage.from_bytes(image.read())
    raise DecodeFailure(f"Unsupported image input: {type(image).__name__}")
