"""Diagnostics sink for per-entity failures that do not abort a run."""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

logger = logging.getLogger("entityforge")


@runtime_checkable
class DiagnosticsSink(Protocol):
    """Receives unrecoverable per-entity problems."""

    def critical(self, message: str) -> None: ...


class LoggingDiagnostics:
    """Forwards diagnostics to a standard logger."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def critical(self, message: str) -> None:
        self._log.critical(message)


class CollectingDiagnostics:
    """Keeps diagnostics in memory, e.g. to report them after a run."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def critical(self, message: str) -> None:
        self.messages.append(message)
