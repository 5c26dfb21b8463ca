"""Progress and message reporting for catalogtool commands.

One reporter is active per process (``set_reporter``); library code only ever
talks to ``get_reporter()``.
"""

from .base import (
    Reporter,
    TaskRecord,
    TaskStatus,
    format_summary,
    get_reporter,
    get_verbosity,
    set_reporter,
    set_verbosity,
    task,
)
from .jsonl import JsonLinesReporter
from .plain import PlainReporter
from .rich_reporter import RichReporter
from .silent import SilentReporter

__all__ = [
    "Reporter",
    "TaskRecord",
    "TaskStatus",
    "format_summary",
    "get_reporter",
    "set_reporter",
    "get_verbosity",
    "set_verbosity",
    "task",
    "JsonLinesReporter",
    "PlainReporter",
    "RichReporter",
    "SilentReporter",
    "REPORTER_NAMES",
    "make_reporter",
]

REPORTER_NAMES = ("plain", "rich", "json", "silent")


def make_reporter(name: str, *, interactive: bool) -> Reporter:
    """Reporter selected with ``--reporter``.

    ``rich`` degrades to plain output when stderr is not a terminal.
    """
    if name == "json":
        return JsonLinesReporter()
    if name == "silent":
        return SilentReporter()
    if name == "rich" and interactive:
        return RichReporter()
    return PlainReporter()
