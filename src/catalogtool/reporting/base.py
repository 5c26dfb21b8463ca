from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, Optional

__all__ = [
    "TaskStatus",
    "TaskRecord",
    "Reporter",
    "STAT_KEYS",
    "format_stats",
    "format_summary",
    "set_reporter",
    "get_reporter",
    "set_verbosity",
    "get_verbosity",
    "task",
]

# Counters echoed on the completion line of a task.
STAT_KEYS = ("bundles", "prefabs", "entries", "keys", "bytes")


class TaskStatus(Enum):
    RUNNING = auto()
    SUCCESS = auto()
    FAILED = auto()


@dataclass(slots=True)
class TaskRecord:
    task_id: str
    name: str
    total: Optional[int] = None
    completed: int = 0
    status: TaskStatus = TaskStatus.RUNNING
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    stats: Dict[str, Any] = field(default_factory=dict)
    current_item: str | None = None

    @property
    def duration(self) -> float:
        return (self.end_time - self.start_time) if self.end_time else 0.0

    @property
    def progress(self) -> str:
        """``done/total`` or an empty string when the total is unknown."""
        return f"{self.completed}/{self.total}" if self.total is not None else ""

    def finish(self, status: TaskStatus, stats: Dict[str, Any]) -> None:
        self.status = status
        self.end_time = time.time()
        self.stats.update(stats)


def format_stats(stats: Dict[str, Any]) -> str:
    shown = [f"{k}={stats[k]}" for k in STAT_KEYS if k in stats]
    return f" [{' '.join(shown)}]" if shown else ""


def format_summary(kind: str, stats: Dict[str, Any]) -> str:
    pairs = " ".join(f"{k}={v}" for k, v in stats.items())
    return f"{kind.capitalize()} summary: {pairs}"


_VERBOSITY: int = 0  # set by the CLI (-v repeats)


def set_verbosity(level: int) -> None:
    global _VERBOSITY
    _VERBOSITY = max(0, level)


def get_verbosity() -> int:
    return _VERBOSITY


class Reporter:
    """Task bookkeeping shared by every backend.

    Backends render through the ``_on_*`` hooks and the message methods; the
    task records themselves are kept here.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, TaskRecord] = {}

    # Tasks
    def start_task(
        self, task_id: str, name: str, total: int | None = None
    ) -> None:
        rec = TaskRecord(task_id, name, total)
        self._tasks[task_id] = rec
        self._on_start(rec)

    def advance(
        self, task_id: str, step: int = 1, item: str | None = None
    ) -> None:
        rec = self._tasks.get(task_id)
        if rec is None:
            return
        rec.completed += step
        rec.current_item = item
        self._on_advance(rec)

    def end_task(
        self,
        task_id: str,
        status: TaskStatus = TaskStatus.SUCCESS,
        **stats: Any,
    ) -> None:
        rec = self._tasks.pop(task_id, None)
        if rec is None:
            return
        rec.finish(status, stats)
        self._on_end(rec)

    def _on_start(self, rec: TaskRecord) -> None:
        pass

    def _on_advance(self, rec: TaskRecord) -> None:
        pass

    def _on_end(self, rec: TaskRecord) -> None:
        pass

    # Messages
    def status(self, message: str) -> None:
        raise NotImplementedError

    def verbose(self, message: str, *, level: int = 1) -> None:
        pass

    def warning(self, message: str) -> None:
        self.status(message)

    def error(self, message: str) -> None:
        raise NotImplementedError

    def section(self, title: str) -> None:
        pass

    def summary(self, kind: str, **stats: Any) -> None:
        """Final one-line outcome of a command (``kind`` names the command)."""
        self.status(format_summary(kind, stats))

    def flush(self) -> None:
        pass


_ACTIVE_REPORTER: Reporter | None = None


def set_reporter(rep: Reporter) -> None:
    global _ACTIVE_REPORTER
    _ACTIVE_REPORTER = rep


def get_reporter() -> Reporter:
    global _ACTIVE_REPORTER
    if _ACTIVE_REPORTER is None:
        from .plain import PlainReporter  # local import to avoid cycle

        _ACTIVE_REPORTER = PlainReporter(stream=sys.stderr)
    return _ACTIVE_REPORTER


@contextmanager
def task(
    task_id: str, name: str, total: int | None = None
) -> Iterator[Dict[str, Any]]:
    """Run the body as a reporter task; a raised exception marks it failed.

    The yielded dict is passed as the task's stats on success, so the body can
    report counts (``bundles``, ``bytes`` ...) on the completion line.
    """
    rep = get_reporter()
    rep.start_task(task_id, name, total)
    stats: Dict[str, Any] = {}
    try:
        yield stats
    except Exception:
        rep.end_task(task_id, TaskStatus.FAILED)
        raise
    rep.end_task(task_id, TaskStatus.SUCCESS, **stats)
