"""Driver error taxonomy and package exit code contract."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import IntEnum


class ExitCode(IntEnum):
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4


@dataclass
class ClusterRetryError(Exception):
    message: str
    code: ExitCode = ExitCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


class DriverError(Exception):
    """Failure raised by the connection/wire layer underneath an operation."""

    def __init__(self, message: str = "", details: Mapping[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, object] = dict(details or {})

    def __str__(self) -> str:
        return self.message


class ConnectionFailure(DriverError):
    """The node could not be reached or the socket broke mid-operation."""


class PotentialReconfiguration(DriverError):
    """The server answered in a way that may indicate a topology change."""


class OperationFailure(PotentialReconfiguration):
    """A command or write was rejected by the server."""


class QueryFailure(PotentialReconfiguration):
    """A query was rejected by the server."""


class ReplicaSetReconfigured(PotentialReconfiguration):
    """The replica set reported a new configuration."""
