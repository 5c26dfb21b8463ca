from __future__ import annotations

import json
import sys
from typing import Any, TextIO

from .base import Reporter, TaskRecord, get_verbosity


class JsonLinesReporter(Reporter):
    """One JSON object per line, for scripted callers.

    Every object has an ``event`` key: ``task_start``, ``task_progress``,
    ``task_end``, ``message``, ``section`` or ``summary``. Events go to stderr
    by default so command output on stdout stays parseable.
    """

    def __init__(self, stream: TextIO | None = None):
        super().__init__()
        self.stream = stream or sys.stderr

    def _emit(self, event: str, **payload: Any) -> None:
        payload["event"] = event
        self.stream.write(json.dumps(payload, sort_keys=True) + "\n")

    def _message(self, level: str, message: str) -> None:
        self._emit("message", level=level, message=message)

    def _on_start(self, rec: TaskRecord) -> None:
        self._emit("task_start", id=rec.task_id, name=rec.name, total=rec.total)

    def _on_advance(self, rec: TaskRecord) -> None:
        self._emit(
            "task_progress",
            id=rec.task_id,
            completed=rec.completed,
            item=rec.current_item,
        )

    def _on_end(self, rec: TaskRecord) -> None:
        self._emit(
            "task_end",
            id=rec.task_id,
            status=rec.status.name.lower(),
            completed=rec.completed,
            total=rec.total,
            duration_seconds=round(rec.duration, 6),
            stats=rec.stats,
        )

    def status(self, message: str) -> None:
        self._message("info", message)

    def verbose(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self._message(f"verbose{level}", message)

    def warning(self, message: str) -> None:
        self._message("warning", message)

    def error(self, message: str) -> None:
        self._message("error", message)

    def section(self, title: str) -> None:
        self._emit("section", title=title)

    def summary(self, kind: str, **stats: Any) -> None:
        self._emit("summary", summary_type=kind, stats=stats)
