"""Bounded retry-with-refresh for operations against a replicated cluster."""

from __future__ import annotations

import asyncio
import time
import traceback
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import TYPE_CHECKING, TypeVar

from .diagnostics import DEFAULT_COMPONENT, DiagnosticSink, RetryContext
from .errors import ConnectionFailure, OperationFailure, PotentialReconfiguration

if TYPE_CHECKING:
    from .cluster import ClusterHandle

T = TypeVar("T")

RECONFIGURATION_MARKERS = ("not master", "Not primary")
RUNNER_DEAD_MARKER = "RUNNER_DEAD"


class FailureClassification(str, Enum):
    PASSTHROUGH = "passthrough"
    FATAL = "fatal"
    RETRYABLE = "retryable"
    RUNNER_DEAD = "runner_dead"

    @property
    def retryable(self) -> bool:
        return self in (FailureClassification.RETRYABLE, FailureClassification.RUNNER_DEAD)


def classify_failure(error: BaseException) -> FailureClassification:
    """Decide whether ``error`` may be retried after a topology refresh.

    Matching is a literal, case-sensitive substring search over the error
    message, so it follows the server's wording exactly.
    """
    message = str(error)
    if isinstance(error, OperationFailure):
        if RUNNER_DEAD_MARKER in message:
            return FailureClassification.RUNNER_DEAD
        return FailureClassification.FATAL
    if isinstance(error, ConnectionFailure):
        return FailureClassification.RETRYABLE
    if isinstance(error, PotentialReconfiguration):
        # Only the base kind signals a leader change; specific sub-kinds never do.
        if type(error) is not PotentialReconfiguration:
            return FailureClassification.FATAL
        if any(marker in message for marker in RECONFIGURATION_MARKERS):
            return FailureClassification.RETRYABLE
        return FailureClassification.FATAL
    return FailureClassification.PASSTHROUGH


def is_retryable(error: BaseException) -> bool:
    return classify_failure(error).retryable


def _initial_retries(cluster: ClusterHandle, retries: int | None) -> int:
    if retries is None:
        retries = cluster.max_retries
    return max(0, int(retries))


def _retry_context(cluster: ClusterHandle, remaining: int) -> RetryContext:
    return RetryContext(
        retries_remaining=remaining,
        nodes=[str(node) for node in cluster.nodes],
        seeds=list(cluster.seeds),
        cluster=repr(cluster),
    )


def _should_retry(
    cluster: ClusterHandle,
    error: BaseException,
    remaining: int,
    diagnostics: DiagnosticSink,
) -> bool:
    classification = classify_failure(error)
    if not classification.retryable:
        return False

    if classification is FailureClassification.RUNNER_DEAD:
        nodes = [str(node) for node in cluster.nodes]
        diagnostics.warn(
            DEFAULT_COMPONENT,
            f"got RUNNER_DEAD on {nodes!r}, retries is {remaining}",
            _retry_context(cluster, remaining),
        )

    if remaining <= 0:
        return False

    context = _retry_context(cluster, remaining)
    trace = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    diagnostics.info(
        DEFAULT_COMPONENT,
        (
            f"Retrying operation {remaining} more time(s), nodes are {context['nodes']!r}, "
            f"seeds are {context['seeds']!r}, cluster is {context['cluster']}. "
            f"Error traceback is {trace}"
        ),
        context,
    )
    return True


def with_retry(
    cluster: ClusterHandle,
    operation: Callable[[], T],
    retries: int | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
    diagnostics: DiagnosticSink | None = None,
) -> T:
    sink = diagnostics or DiagnosticSink()
    remaining = _initial_retries(cluster, retries)

    while True:
        try:
            return operation()
        except (ConnectionFailure, PotentialReconfiguration) as exc:
            if not _should_retry(cluster, exc, remaining, sink):
                raise
            sleep(cluster.retry_interval)
            cluster.refresh()
            remaining -= 1


async def with_retry_async(
    cluster: ClusterHandle,
    operation: Callable[[], Awaitable[T]],
    retries: int | None = None,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    diagnostics: DiagnosticSink | None = None,
) -> T:
    sink = diagnostics or DiagnosticSink()
    remaining = _initial_retries(cluster, retries)

    while True:
        try:
            return await operation()
        except (ConnectionFailure, PotentialReconfiguration) as exc:
            if not _should_retry(cluster, exc, remaining, sink):
                raise
            await sleep(cluster.retry_interval)
            cluster.refresh()
            remaining -= 1


class RetryExecutor:
    """Runs operations against a cluster, refreshing topology between attempts.

    The retry budget and interval are read from the cluster on every call,
    so configuration changes apply to the next operation.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        diagnostics: DiagnosticSink | None = None,
    ) -> None:
        self.sleep = sleep
        self.async_sleep = async_sleep
        self.diagnostics = diagnostics or DiagnosticSink()

    def execute(
        self,
        cluster: ClusterHandle,
        operation: Callable[[], T],
        retries: int | None = None,
    ) -> T:
        return with_retry(
            cluster,
            operation,
            retries,
            sleep=self.sleep,
            diagnostics=self.diagnostics,
        )

    async def execute_async(
        self,
        cluster: ClusterHandle,
        operation: Callable[[], Awaitable[T]],
        retries: int | None = None,
    ) -> T:
        return await with_retry_async(
            cluster,
            operation,
            retries,
            sleep=self.async_sleep,
            diagnostics=self.diagnostics,
        )
