from __future__ import annotations

import os
from typing import Dict, List

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .base import Reporter, TaskRecord, TaskStatus, format_stats, get_verbosity

_STATUS_ICON = {
    TaskStatus.SUCCESS: "[green]✔[/]",
    TaskStatus.FAILED: "[red]✖[/]",
}

# With CATALOGTOOL_PROGRESS_TRANSIENT set, bars vanish when done and the
# completion lines are printed together afterwards.
_TRANSIENT_ENV = "CATALOGTOOL_PROGRESS_TRANSIENT"


class RichReporter(Reporter):
    def __init__(self, console: Console | None = None):
        super().__init__()
        self.console = console or Console(stderr=True, highlight=False)
        self.transient = os.getenv(_TRANSIENT_ENV, "").lower() in ("1", "true", "yes")
        self._progress: Progress | None = None
        self._bars: Dict[str, TaskID] = {}
        self._pending_lines: List[str] = []

    def _bar_for(self, rec: TaskRecord) -> TaskID:
        if self._progress is None:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("{task.description}"),
                BarColumn(bar_width=None),
                TextColumn("{task.completed}/{task.total}"),
                TimeElapsedColumn(),
                console=self.console,
                transient=self.transient,
                expand=True,
            )
            self._progress.start()
        return self._progress.add_task(escape(rec.name), total=rec.total)

    def _on_start(self, rec: TaskRecord) -> None:
        # Tasks with unknown size get a rule instead of a bar.
        if rec.total is None:
            self.console.rule(escape(rec.name))
        else:
            self._bars[rec.task_id] = self._bar_for(rec)

    def _on_advance(self, rec: TaskRecord) -> None:
        bar = self._bars.get(rec.task_id)
        if bar is not None and self._progress is not None:
            self._progress.update(bar, completed=rec.completed)

    def _on_end(self, rec: TaskRecord) -> None:
        bar = self._bars.pop(rec.task_id, None)
        if bar is not None and self._progress is not None:
            self._progress.update(bar, completed=rec.total)
        progress = f" {rec.progress}" if rec.progress else ""
        line = (
            f"{_STATUS_ICON.get(rec.status, '')} {escape(rec.name)}{progress}"
            f" ({rec.duration:.2f}s){escape(format_stats(rec.stats))}"
        )
        if self.transient:
            self._pending_lines.append(line)
        else:
            self.console.print(line)
        if not self._bars:
            self.flush()

    def status(self, message: str) -> None:
        self.console.print(f"[green]INFO[/]: {escape(message)}")

    def verbose(self, message: str, *, level: int = 1) -> None:
        if get_verbosity() >= level:
            self.console.print(f"[cyan]VERB{level}[/]: {escape(message)}")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]WARN[/]: {escape(message)}")

    def error(self, message: str) -> None:
        self.console.print(f"[bold red]ERROR[/]: {escape(message)}")

    def section(self, title: str) -> None:
        self.console.rule(f"[bold]{escape(title)}")

    def flush(self) -> None:
        if self._progress is not None:
            try:
                self._progress.stop()
            finally:
                self._progress = None
        for line in self._pending_lines:
            self.console.print(line)
        self._pending_lines.clear()
