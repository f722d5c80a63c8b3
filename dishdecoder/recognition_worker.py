"""
Recognition Worker Module for Dish Decoder

Provides a background QThread worker that runs recognition batches off the
UI thread. Batches are queued FIFO and run one at a time against a single
recognition session. Results go back to the UI via Qt signals.
"""

import itertools
import logging
import queue
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from PyQt5.QtCore import QThread, pyqtSignal

from dishdecoder.ocr import OCRError, RecognitionTask, Size, TaskOrchestrator


# Configure module logger
logger = logging.getLogger(__name__)


@dataclass
class BatchRequest:
    """One queued recognize() call."""
    request_id: int
    image: object
    tasks: Union[RecognitionTask, List[RecognitionTask], None]
    display_size: Optional[Size]


class RecognitionWorker(QThread):
    """
    Background worker thread for recognition batches.

    Signals:
        status_changed(str): Emitted when the worker goes busy/idle
        result_ready(int, object): (request_id, text or list of results)
        error_occurred(int, str): (request_id, human-readable cause)

    Example:
        worker = RecognitionWorker(orchestrator)
        worker.result_ready.connect(ui.show_text)
        worker.error_occurred.connect(ui.show_error)
        worker.start()
        request_id = worker.submit(photo_bytes, tasks, Size(390, 844))
        # ...
        worker.request_stop()
        worker.wait()
    """

    # Signals for UI updates (thread-safe)
    status_changed = pyqtSignal(str)
    result_ready = pyqtSignal(int, object)
    error_occurred = pyqtSignal(int, str)

    # How often the idle loop checks for a stop request
    POLL_INTERVAL_S = 0.1

    def __init__(self, orchestrator: Optional[TaskOrchestrator] = None):
        """
        Initialize the recognition worker.

        Args:
            orchestrator: Orchestrator to drive (default: Tesseract-backed)
        """
        super().__init__()
        self.orchestrator = orchestrator or TaskOrchestrator()
        self._queue: "queue.Queue[BatchRequest]" = queue.Queue()
        self._ids = itertools.count(1)
        self._running = False

    def submit(
        self,
        image: object,
        tasks: Union[RecognitionTask, Sequence[RecognitionTask], None] = None,
        display_size: Union[Size, Tuple[float, float], None] = None,
    ) -> int:
        """
        Queue a batch for recognition.

        Returns:
            Request id echoed back in result_ready / error_occurred
        """
        if isinstance(tasks, tuple):
            tasks = list(tasks)
        if display_size is not None and not isinstance(display_size, Size):
            display_size = Size(*display_size)

        request = BatchRequest(next(self._ids), image, tasks, display_size)
        self._queue.put(request)
        logger.debug(f"Queued batch {request.request_id} ({self._queue.qsize()} pending)")
        return request.request_id

    def pending(self) -> int:
        """Number of batches waiting to run."""
        return self._queue.qsize()

    def start(self, *args):
        """
        Start the worker thread.

        The running flag is raised before the thread is scheduled, so a
        request_stop() issued right after start() still stops the loop.
        """
        self._running = True
        super().start(*args)

    def run(self):
        """
        Main worker loop. Called when thread starts.

        Takes batches off the queue in submission order and runs them one at
        a time.
        """
        logger.info("Recognition worker started")
        self.status_changed.emit("Idle")

        while self._running:
            try:
                request = self._queue.get(timeout=self.POLL_INTERVAL_S)
            except queue.Empty:
                continue
            try:
                self.process_request(request)
            finally:
                self._queue.task_done()

        logger.info("Recognition worker stopped")

    def process_request(self, request: BatchRequest) -> None:
        """
        Run one batch and emit its outcome.

        Batch-level OCR errors are reported through error_occurred; anything
        else is logged with its traceback and reported the same way.
        """
        self.status_changed.emit("Recognizing")
        try:
            results = self.orchestrator.recognize(
                request.image, request.tasks, request.display_size
            )
        except OCRError as e:
            logger.warning(f"Batch {request.request_id} aborted: [{e.code}] {e.message}")
            self.error_occurred.emit(request.request_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error in batch {request.request_id}")
            self.error_occurred.emit(request.request_id, str(e))
        else:
            self.result_ready.emit(request.request_id, results)
        finally:
            self.status_changed.emit("Idle")

    def request_stop(self):
        """
        Request the worker to stop gracefully.

        The worker finishes the batch it is running before stopping; queued
        batches stay queued. Use wait() after calling this to block until
        stopped.
        """
        logger.info("Stop requested")
        self._running = False

    def release_session(self):
        """Terminate the recognition session; waits for an in-flight engine call."""
        self.orchestrator.terminate()

    def is_running(self) -> bool:
        """
        Check if the worker is currently running.

        Returns:
            True if worker loop is active, False otherwise
        """
        return self._running
