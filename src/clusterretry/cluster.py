"""Cluster collaborator contract and a reference in-process cluster."""

from __future__ import annotations

import logging as py_logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from .config import ClusterOptions
from .errors import ConnectionFailure
from .retry import with_retry

logger = py_logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Node:
    address: str
    primary: bool = False
    down: bool = False

    def __str__(self) -> str:
        flags = []
        if self.primary:
            flags.append("primary")
        if self.down:
            flags.append("down")
        if flags:
            return f"{self.address} ({', '.join(flags)})"
        return self.address


class ClusterHandle(Protocol):
    @property
    def max_retries(self) -> int: ...

    @property
    def retry_interval(self) -> float: ...

    @property
    def seeds(self) -> list[str]: ...

    @property
    def nodes(self) -> list[Node]: ...

    def refresh(self) -> None: ...


Discover = Callable[[Sequence[str]], list[Node]]


def static_discovery(seeds: Sequence[str]) -> list[Node]:
    return [Node(address=seed, primary=index == 0) for index, seed in enumerate(seeds)]


class Cluster:
    def __init__(
        self,
        seeds: Sequence[str] | None = None,
        *,
        options: ClusterOptions | None = None,
        discover: Discover | None = None,
    ) -> None:
        self.options = options.model_copy(deep=True) if options is not None else ClusterOptions()
        if seeds is not None:
            self.options.seeds = list(seeds)
        self.discover = discover or static_discovery
        self.refresh_count = 0
        self._lock = threading.Lock()
        self._nodes = static_discovery(self.options.seeds)

    @property
    def seeds(self) -> list[str]:
        return list(self.options.seeds)

    @property
    def max_retries(self) -> int:
        return self.options.effective_max_retries

    @property
    def retry_interval(self) -> float:
        return self.options.retry_interval

    @property
    def nodes(self) -> list[Node]:
        with self._lock:
            return list(self._nodes)

    def refresh(self) -> None:
        discovered = list(self.discover(self.seeds))
        with self._lock:
            self._nodes = discovered
            self.refresh_count += 1
        logger.debug("Cluster refreshed nodes=%s", [str(node) for node in discovered])

    def with_primary(self, callback: Callable[[Node], T]) -> T:
        for node in self.nodes:
            if node.primary and not node.down:
                return callback(node)
        raise ConnectionFailure(f"No available primary node in {self!r}")

    def with_retry(self, operation: Callable[[], T], retries: int | None = None) -> T:
        return with_retry(self, operation, retries)

    def __repr__(self) -> str:
        nodes = [str(node) for node in self.nodes]
        return f"<Cluster nodes={nodes!r} seeds={self.seeds!r}>"
