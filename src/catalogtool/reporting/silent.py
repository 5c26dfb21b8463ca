from __future__ import annotations

from typing import Any

from .base import Reporter


class SilentReporter(Reporter):
    """Keeps task bookkeeping but prints nothing (``-r silent`` and tests)."""

    def status(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def summary(self, kind: str, **stats: Any) -> None:
        pass
