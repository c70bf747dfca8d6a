"""Best-effort execution of side effects.

Side effects (notifications, audit entries, profile aggregation) must never
decide whether the operation that triggered them succeeded. They are handed
to a TaskDispatcher, which runs them, logs any failure and records it on its
own error channel instead of raising.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from django.db import transaction

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskFailure:
    task: str
    error: Exception


class TaskDispatcher(ABC):
    """Runs fire-and-forget tasks and keeps their failures to itself."""

    def __init__(self, keep_failures: int = 100) -> None:
        self.failures: deque[TaskFailure] = deque(maxlen=keep_failures)

    @abstractmethod
    def submit(self, task: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        ...

    def _run(self, task: str, fn: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            fn(*args, **kwargs)
        except Exception as exc:
            logger.exception("Background task %s failed", task)
            self.failures.append(TaskFailure(task=task, error=exc))


class InlineDispatcher(TaskDispatcher):
    """Runs each task immediately in the caller's thread."""

    def submit(self, task: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        self._run(task, fn, args, kwargs)


class OnCommitDispatcher(TaskDispatcher):
    """Runs each task after the current database transaction commits."""

    def submit(self, task: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> None:
        transaction.on_commit(lambda: self._run(task, fn, args, kwargs))
