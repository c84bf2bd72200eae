"""In-process guard that keeps a named background task from running twice at once."""

import threading

from app.core.utils import get_logger

logger = get_logger("txn-tracker.tasks")


class TaskConflictError(RuntimeError):
    """Raised when a guarded task is started while another run of it is active."""

    def __init__(self, task_name: str) -> None:
        """Record which task was already running."""
        super().__init__(f"Task '{task_name}' is already running")
        self.task_name = task_name


class TaskGuard:
    """Non-blocking, process-local mutual exclusion keyed by task name.

    State lives in memory only: it is not shared between processes and a restart
    clears every running mark.
    """

    def __init__(self) -> None:
        """Initialize an empty set of running tasks."""
        self._lock = threading.Lock()
        self._running: set[str] = set()

    def try_acquire(self, task_name: str) -> bool:
        """Mark `task_name` as running and return True, or return False if it already is."""
        with self._lock:
            if task_name in self._running:
                logger.warning(f"Task lock busy: [{task_name}]")
                return False
            self._running.add(task_name)
        logger.info(f"Task lock acquired: [{task_name}]. Process starting...")
        return True

    def release(self, task_name: str) -> None:
        """Clear the running mark for `task_name`."""
        with self._lock:
            self._running.discard(task_name)
        logger.info(f"Task lock released: [{task_name}]. Ready for next run.")

    def is_running(self, task_name: str) -> bool:
        """Return whether `task_name` is currently marked as running."""
        with self._lock:
            return task_name in self._running


task_guard = TaskGuard()


def get_task_guard() -> TaskGuard:
    """Return the process-wide task guard."""
    return task_guard
