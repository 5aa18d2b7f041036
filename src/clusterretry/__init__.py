"""Bounded retry-with-refresh for replicated cluster operations."""

from .cluster import Cluster, ClusterHandle, Node, static_discovery
from .config import ClusterOptions, load_config
from .diagnostics import DiagnosticSink
from .errors import (
    ConnectionFailure,
    DriverError,
    OperationFailure,
    PotentialReconfiguration,
    QueryFailure,
    ReplicaSetReconfigured,
)
from .retry import (
    FailureClassification,
    RetryExecutor,
    classify_failure,
    is_retryable,
    with_retry,
    with_retry_async,
)

__all__ = [
    "classify_failure",
    "Cluster",
    "ClusterHandle",
    "ClusterOptions",
    "ConnectionFailure",
    "DiagnosticSink",
    "DriverError",
    "FailureClassification",
    "is_retryable",
    "load_config",
    "Node",
    "OperationFailure",
    "PotentialReconfiguration",
    "QueryFailure",
    "ReplicaSetReconfigured",
    "RetryExecutor",
    "static_discovery",
    "with_retry",
    "with_retry_async",
]
