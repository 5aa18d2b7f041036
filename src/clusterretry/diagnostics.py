"""Fire-and-forget diagnostic sink used by the retry loop."""

from __future__ import annotations

import logging as py_logging
from contextlib import suppress

from typing_extensions import TypedDict

DEFAULT_COMPONENT = "  CLUSTERRETRY:"


class RetryContext(TypedDict, total=False):
    retries_remaining: int
    nodes: list[str]
    seeds: list[str]
    cluster: str


class DiagnosticSink:
    def __init__(self, logger: py_logging.Logger | None = None) -> None:
        self.logger = logger or py_logging.getLogger("clusterretry.retry")

    def _emit(self, level: int, component: str, message: str, context: object) -> None:
        if not self.logger.isEnabledFor(level):
            return
        # Handler and filter failures never reach the caller.
        with suppress(Exception):
            self.logger.log(level, "%s %s (context=%s)", component, message, context)

    def warn(self, component: str, message: str, context: object = "n/a") -> None:
        self._emit(py_logging.WARNING, component, message, context)

    def info(self, component: str, message: str, context: object = "n/a") -> None:
        self._emit(py_logging.INFO, component, message, context)
