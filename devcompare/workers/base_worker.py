"""
Base class for comparisons that run on a background thread.

A worker owns the CancellationToken it hands to the diff engine, so a
cancel request from the UI thread is seen both between the worker's own
steps and inside the engine's search loop.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot, QMutex, QMutexLocker

from devcompare.core.cancellation import CancellationToken
from devcompare.core.errors import ComparisonCancelled


class WorkerState(Enum):
    """Lifecycle of a comparison worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


# States a worker never leaves
FINAL_STATES = frozenset({WorkerState.CANCELLED, WorkerState.COMPLETED, WorkerState.FAILED})


class WorkerSignals(QObject):
    """Signals emitted by a worker, delivered to the thread that connected them."""

    # (step, steps, message)
    progress = pyqtSignal(int, int, str)

    started = pyqtSignal()

    # DiffResult
    finished = pyqtSignal(object)

    # (error_type, message)
    error = pyqtSignal(str, str)

    cancelled = pyqtSignal()

    # WorkerState, emitted on every actual transition
    state_changed = pyqtSignal(object)


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    One comparison, run once.

    Subclasses implement `do_work`, return the DiffResult and raise for
    anything else: ComparisonCancelled ends the run as cancelled, any
    other exception is reported through the `error` signal with its
    `error_type` attribute (or class name) as the type.

    Usage:
        worker = TextCompareWorker(old_text, new_text)
        worker.signals.finished.connect(on_result)
        thread = WorkerThread(worker)
        thread.start()
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.signals = WorkerSignals()
        self.cancel_token = CancellationToken()
        self._state = WorkerState.PENDING
        self._mutex = QMutex()
        self._result: Any = None
        self._error: Optional[tuple[str, str]] = None

    @property
    def state(self) -> WorkerState:
        with QMutexLocker(self._mutex):
            return self._state

    @property
    def is_cancelled(self) -> bool:
        """True once cancellation was requested, whatever the state."""
        return self.cancel_token.is_cancelled

    @property
    def result(self) -> Any:
        """The DiffResult of a completed run."""
        return self._result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        """(error_type, message) of a failed run."""
        return self._error

    def cancel(self) -> None:
        """
        Request cancellation.

        A running worker moves to CANCELLING and stops at the engine's
        next check. A pending worker stays PENDING and ends as
        CANCELLED when run. A finished worker is left alone.
        """
        self.cancel_token.cancel()
        self._transition(WorkerState.CANCELLING, only_from=WorkerState.RUNNING)

    @pyqtSlot()
    def run(self) -> None:
        """Run `do_work` and report the outcome through the signals."""
        if self.is_cancelled:
            self._finish_cancelled()
            return

        self._transition(WorkerState.RUNNING)
        self.signals.started.emit()

        try:
            result = self.do_work()
            # A cancel that arrived after the engine's last check still wins
            self.check_cancelled()
        except ComparisonCancelled:
            self._finish_cancelled()
            return
        except Exception as e:
            error_type = getattr(e, 'error_type', type(e).__name__)
            logging.error(f"{type(self).__name__} - {error_type}: {e}")
            self._error = (error_type, str(e))
            self._transition(WorkerState.FAILED)
            self.signals.error.emit(error_type, str(e))
            return

        self._result = result
        self._transition(WorkerState.COMPLETED)
        self.signals.finished.emit(result)

    @abstractmethod
    def do_work(self) -> Any:
        """Compute and return the result; call `check_cancelled` between steps."""

    def check_cancelled(self) -> None:
        """Raise ComparisonCancelled if cancellation was requested."""
        self.cancel_token.raise_if_cancelled()

    def report_progress(self, step: int, steps: int, message: str = "") -> None:
        self.signals.progress.emit(step, steps, message)

    def _finish_cancelled(self) -> None:
        logging.debug(f"{type(self).__name__} - Cancelled")
        self._transition(WorkerState.CANCELLED)
        self.signals.cancelled.emit()

    def _transition(self, state: WorkerState, only_from: Optional[WorkerState] = None) -> bool:
        """Move to `state` and emit state_changed, unless nothing changes."""
        with QMutexLocker(self._mutex):
            current = self._state
            if current is state or current in FINAL_STATES:
                return False
            if only_from is not None and current is not only_from:
                return False
            self._state = state
        self.signals.state_changed.emit(state)
        return True


class WorkerThread(QThread):
    """
    Thread that runs one worker and ends with it.

    The worker runs straight from `run`, without an event loop, so
    `wait()` returns as soon as the comparison is over.
    """

    def __init__(self, worker: BaseWorker, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.worker = worker
        self.worker.moveToThread(self)

    def run(self) -> None:
        self.worker.run()

    @property
    def result(self) -> Any:
        return self.worker.result

    @property
    def error(self) -> Optional[tuple[str, str]]:
        return self.worker.error
