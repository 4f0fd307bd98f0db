"""
Background execution of database work.

The controller never blocks on the driver. Each job is a callable that runs
on one dedicated ``QThread``; its return value or exception comes back to the
controller's thread as a queued signal tagged with the job's token. Jobs run
one after another, so the connection handle is never used by two jobs at once.
"""

import logging
import traceback
from typing import Any, Callable, Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from ..errors import BobaError, QueryError, QueryErrorKind

logger = logging.getLogger(__name__)

# Job tokens handed out by the controller start at 1.
SHUTDOWN_TOKEN = 0


class JobWorker(QObject):
    """Lives on the background thread and runs one job per ``run`` call."""

    finished = pyqtSignal(int, object)  # token, return value
    failed = pyqtSignal(int, object)  # token, BobaError

    @pyqtSlot(int, object)
    def run(self, token: int, job: Callable[[], Any]) -> None:
        try:
            result = job()
        except BobaError as e:
            self.failed.emit(token, e)
        except Exception as e:
            logger.error("Job %d raised unexpectedly:\n%s", token, traceback.format_exc())
            self.failed.emit(token, QueryError(QueryErrorKind.EXECUTION, str(e)))
        else:
            self.finished.emit(token, result)


class ThreadedJobRunner(QObject):
    """Runs jobs on a single background thread, in submission order."""

    finished = pyqtSignal(int, object)
    failed = pyqtSignal(int, object)
    _dispatch = pyqtSignal(int, object)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._thread = QThread()
        self._thread.setObjectName("boba-db")
        self._worker = JobWorker()
        self._worker.moveToThread(self._thread)
        self._dispatch.connect(self._worker.run)
        self._worker.finished.connect(self.finished)
        self._worker.failed.connect(self.failed)
        self._thread.finished.connect(self._worker.deleteLater)
        self._thread.start()

    def submit(self, token: int, job: Callable[[], Any]) -> None:
        self._dispatch.emit(token, job)

    def is_running(self) -> bool:
        return self._thread.isRunning()

    def shutdown(self, final: Optional[Callable[[], Any]] = None,
                 wait_ms: int = 5000) -> bool:
        """Run ``final`` after the queued jobs, then stop the thread.

        Returns False if the thread is still busy after ``wait_ms``; it is
        left running so the job in progress keeps its handle.
        """
        if not self._thread.isRunning():
            if final is not None:
                final()
            return True

        def last_job():
            try:
                if final is not None:
                    final()
            finally:
                QThread.currentThread().quit()

        self._dispatch.emit(SHUTDOWN_TOKEN, last_job)
        if self._thread.wait(wait_ms):
            return True
        logger.warning("Database thread did not stop within %d ms; leaving it to finish", wait_ms)
        return False
