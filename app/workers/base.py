"""Base class for background jobs that must not overlap with themselves."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import ClassVar

from pydantic import BaseModel

from app.core.models import TriggerResult
from app.services.task_guard import TaskConflictError, TaskGuard


class GuardedJob(ABC):
    """A long-running job serialized by name through a TaskGuard."""

    task_name: ClassVar[str]

    def __init__(self, guard: TaskGuard) -> None:
        """Initialize the job with the guard that serializes its runs."""
        self.guard = guard

    @abstractmethod
    def execute(self) -> BaseModel:
        """Do the work of one run and return its report. Called with the guard held."""

    def run(self) -> BaseModel:
        """Run synchronously, raising TaskConflictError if a run is already active."""
        if not self.guard.try_acquire(self.task_name):
            raise TaskConflictError(self.task_name)
        return self._execute_and_release()

    def trigger(self, schedule: Callable[[Callable[[], BaseModel]], None]) -> TriggerResult:
        """Acquire the guard and hand the run to `schedule`, or report a conflict."""
        if not self.guard.try_acquire(self.task_name):
            return TriggerResult.CONFLICT
        try:
            schedule(self._execute_and_release)
        except Exception:
            self.guard.release(self.task_name)
            raise
        return TriggerResult.ACCEPTED

    def _execute_and_release(self) -> BaseModel:
        try:
            return self.execute()
        finally:
            self.guard.release(self.task_name)
