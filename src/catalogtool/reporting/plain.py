from __future__ import annotations

import sys
from typing import TextIO

from .base import Reporter, TaskRecord, TaskStatus, format_stats, get_verbosity

ICONS = {
    TaskStatus.SUCCESS: "✔",
    TaskStatus.FAILED: "✖",
}

# ANSI SGR codes per message level
_LEVEL_COLORS = {
    "INFO": "32",
    "WARN": "33",
    "ERROR": "31",
}


class PlainReporter(Reporter):
    """Line-oriented reporter; ANSI colours only when writing to a terminal."""

    def __init__(self, stream: TextIO | None = None, use_color: bool | None = None):
        super().__init__()
        self.stream = stream or sys.stderr
        if use_color is None:
            use_color = getattr(self.stream, "isatty", lambda: False)()
        self.use_color = use_color

    def _line(self, text: str) -> None:
        self.stream.write(text + "\n")

    def _tagged(self, level: str, message: str, color: str | None = None) -> None:
        code = color or _LEVEL_COLORS.get(level)
        tag = f"\x1b[{code}m{level}\x1b[0m" if self.use_color and code else level
        self._line(f"{tag}: {message}")

    def _on_advance(self, rec: TaskRecord) -> None:
        if get_verbosity() < 1:
            return
        item = rec.current_item or f"item#{rec.completed}"
        total = rec.total if rec.total is not None else "?"
        self._line(f"   · {rec.name}: {item} ({rec.completed}/{total})")

    def _on_end(self, rec: TaskRecord) -> None:
        progress = f" {rec.progress}" if rec.progress else ""
        self._line(
            f" {ICONS.get(rec.status, '?')} {rec.name}{progress}"
            f" ({rec.duration:.2f}s){format_stats(rec.stats)}"
        )

    def status(self, message: str) -> None:
        self._tagged("INFO", message)

    def verbose(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self._tagged(f"VERB{level}", message, color="36")

    def warning(self, message: str) -> None:
        self._tagged("WARN", message)

    def error(self, message: str) -> None:
        self._tagged("ERROR", message)

    def section(self, title: str) -> None:
        self._line(f"\n[{title}]")
