"""
Workers for text comparison, and the scheduler that debounces them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, QTimer, pyqtSignal, pyqtSlot

from devcompare.core.diff.text_diff import CompareOptions, TextDiffEngine
from devcompare.core.errors import CompareError, ComparisonCancelled
from devcompare.core.models import CompareOutcome, CompareStatus, DiffResult
from devcompare.services.file_io import FileIOService, ReadResult
from devcompare.services.settings import ComparisonSettings
from devcompare.workers.base_worker import BaseWorker, WorkerThread


class CompareFailed(CompareError):
    """Raised by a worker when a comparison is refused or a file cannot be read."""

    def __init__(self, error_type: str, message: str):
        self.error_type = error_type
        super().__init__(message)


def unwrap_outcome(outcome: CompareOutcome) -> DiffResult:
    """Return the result of a successful outcome, raise for the others."""
    if outcome.success:
        return outcome.result
    if outcome.status is CompareStatus.CANCELLED:
        raise ComparisonCancelled(outcome.error or "Comparison cancelled")
    raise CompareFailed(outcome.status.name, outcome.error or outcome.status.name)


class TextCompareWorker(BaseWorker):
    """
    Worker for comparing text content directly.

    Useful when content is already in memory, as in an editor.
    """

    def __init__(
        self,
        old_text: str,
        new_text: str,
        options: Optional[CompareOptions] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent=parent)
        self.old_text = old_text
        self.new_text = new_text
        self.options = options or CompareOptions()

    def do_work(self) -> DiffResult:
        """Perform text comparison."""
        engine = TextDiffEngine(self.options)
        return unwrap_outcome(engine.compare(self.old_text, self.new_text, self.cancel_token))


class FileCompareWorker(BaseWorker):
    """
    Worker for comparing text files.

    Reads both files through the file service, then runs the text
    diff engine in the background thread.
    """

    def __init__(
        self,
        old_path: str | Path,
        new_path: str | Path,
        options: Optional[CompareOptions] = None,
        file_service: Optional[FileIOService] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent=parent)
        self.old_path = Path(old_path)
        self.new_path = Path(new_path)
        self.options = options or CompareOptions()
        self.file_service = file_service or FileIOService()

    def do_work(self) -> DiffResult:
        """Read both files and compare them."""
        self.report_progress(0, 100, "Reading old file...")
        old_text = self._read(self.old_path)
        self.check_cancelled()

        self.report_progress(50, 100, "Reading new file...")
        new_text = self._read(self.new_path)
        self.check_cancelled()

        self.report_progress(75, 100, "Computing differences...")
        engine = TextDiffEngine(self.options)
        result = unwrap_outcome(engine.compare(old_text, new_text, self.cancel_token))

        self.report_progress(100, 100, "Complete")
        return result

    def _read(self, path: Path) -> str:
        read_result = self.file_service.read_text(path, max_size=self.options.max_comparable_size)
        if not read_result.success:
            raise CompareFailed(read_error_type(read_result), read_result.error or f"Failed to read {path}")
        return read_result.content.content if read_result.content else ""


def read_error_type(read_result: ReadResult) -> str:
    """Error type name for a failed file read."""
    if read_result.is_binary:
        return "BINARY_FILE"
    if read_result.is_oversized:
        return CompareStatus.OVERSIZED_INPUT.name
    if read_result.is_encoding_error:
        return CompareStatus.INVALID_ENCODING.name
    return "READ_ERROR"


class CompareScheduler(QObject):
    """
    Debounce-and-cancel scheduling of text comparisons.

    Every request restarts a single-shot delay and cancels the
    comparison in flight. Only the result of the latest request is
    delivered; results of superseded comparisons are dropped.
    """

    result_ready = pyqtSignal(object)           # DiffResult
    comparison_failed = pyqtSignal(str, str)    # (error_type, message)
    comparison_started = pyqtSignal()

    def __init__(
        self,
        options: Optional[CompareOptions] = None,
        debounce_ms: int = 300,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.options = options or CompareOptions()
        self.debounce_ms = debounce_ms

        self._generation = 0
        self._pending: Optional[tuple[str, str]] = None
        self._current: Optional[TextCompareWorker] = None
        self._threads: dict[WorkerThread, int] = {}
        self._signal_generations: dict[QObject, int] = {}

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.flush)

    @classmethod
    def from_settings(
        cls,
        settings: ComparisonSettings,
        parent: Optional[QObject] = None
    ) -> CompareScheduler:
        """Create a scheduler with the options and debounce delay of the given settings."""
        return cls(settings.to_options(), debounce_ms=settings.debounce_ms, parent=parent)

    @property
    def generation(self) -> int:
        """Number of the latest request."""
        return self._generation

    @property
    def current_worker(self) -> Optional[TextCompareWorker]:
        return self._current

    @property
    def is_pending(self) -> bool:
        """True while a request waits for the debounce delay."""
        return self._pending is not None

    def request(self, old_text: str, new_text: str) -> int:
        """
        Schedule a comparison of the given texts.

        Returns:
            The generation number of this request
        """
        self._cancel_current()
        self._generation += 1
        self._pending = (old_text, new_text)

        self._timer.stop()
        self._timer.start(self.debounce_ms)
        return self._generation

    @pyqtSlot()
    def flush(self) -> None:
        """Start the pending comparison now instead of waiting."""
        self._timer.stop()
        if self._pending is None:
            return

        old_text, new_text = self._pending
        self._pending = None

        worker = TextCompareWorker(old_text, new_text, self.options)
        self._signal_generations[worker.signals] = self._generation
        worker.signals.finished.connect(self._on_finished)
        worker.signals.error.connect(self._on_error)

        thread = WorkerThread(worker)
        thread.finished.connect(self._on_thread_finished)
        self._threads[thread] = self._generation
        self._current = worker

        logging.debug(f"CompareScheduler - Starting comparison #{self._generation}")
        self.comparison_started.emit()
        thread.start()

    def cancel(self) -> None:
        """Drop the pending request and cancel the comparison in flight."""
        self._timer.stop()
        self._pending = None
        self._cancel_current()
        # Anything still running is now stale
        self._generation += 1

    def shutdown(self, timeout_ms: int = 5000) -> bool:
        """Cancel everything and wait for the worker threads to end."""
        self.cancel()
        finished = True
        for thread in list(self._threads):
            finished = thread.wait(timeout_ms) and finished
        return finished

    def deliver(self, generation: int, result: DiffResult) -> bool:
        """Emit a result unless a newer request superseded it."""
        if generation != self._generation:
            logging.debug(f"CompareScheduler - Dropping stale result #{generation}")
            return False
        self.result_ready.emit(result)
        return True

    def _cancel_current(self) -> None:
        if self._current is not None:
            self._current.cancel()
            self._current = None

    @pyqtSlot(object)
    def _on_finished(self, result: DiffResult) -> None:
        generation = self._signal_generations.pop(self.sender(), -1)
        self.deliver(generation, result)

    @pyqtSlot(str, str)
    def _on_error(self, error_type: str, message: str) -> None:
        generation = self._signal_generations.pop(self.sender(), -1)
        if generation == self._generation:
            self.comparison_failed.emit(error_type, message)

    @pyqtSlot()
    def _on_thread_finished(self) -> None:
        thread = self.sender()
        if thread in self._threads:
            thread.wait()
            self._signal_generations.pop(thread.worker.signals, None)
            del self._threads[thread]
