"""
Batch execution contract for FORMA operators.

Provides:
- DistributedEngine: the grouped-map / sorted-buffer / associative-aggregate
  primitives the operators are written against
- LocalEngine: an in-process implementation with per-key failure isolation
- EngineProgress: counts and failures recorded while running keys

Operators are pure functions of one key's tuples. The engine owns grouping,
the per-key secondary sort, and deciding what happens when a key fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Tuple, TypeVar

from forma.errors import FormaError
from forma.logging import get_logger

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

logger = get_logger("engine")

__all__ = ["DistributedEngine", "LocalEngine", "EngineProgress", "KeyFailure"]


@dataclass
class KeyFailure:
    """A key whose processing raised a structured failure."""

    operator: str
    key: Any
    kind: str
    message: str


@dataclass
class EngineProgress:
    """Tracks keys processed by an engine."""

    keys_processed: int = 0
    keys_failed: int = 0
    failures: List[KeyFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.keys_failed == 0

    def record_failure(self, operator: str, key: Any, error: FormaError) -> None:
        self.keys_failed += 1
        self.failures.append(KeyFailure(operator, key, error.kind, error.message))

    def summary(self) -> str:
        lines = [
            f"Keys processed: {self.keys_processed}",
            f"Keys failed: {self.keys_failed}",
        ]
        for failure in self.failures[:10]:
            lines.append(f"  - {failure.operator} {failure.key!r}: {failure.kind} {failure.message}")
        if len(self.failures) > 10:
            lines.append(f"  ... and {len(self.failures) - 10} more")
        return "\n".join(lines)


class DistributedEngine(ABC):
    """
    Abstract batch engine.

    Implementations must deliver each group's records sorted by the
    requested sort key; operators rely on this and never re-sort.
    """

    def __init__(self):
        self.progress = EngineProgress()

    @abstractmethod
    def group_sorted(
        self,
        records: Iterable[T],
        key: Callable[[T], K],
        sort_key: Optional[Callable[[T], Any]] = None,
    ) -> Iterator[Tuple[K, List[T]]]:
        """Group records by ``key``, each group sorted by ``sort_key``."""

    @abstractmethod
    def aggregate(
        self,
        records: Iterable[T],
        key: Callable[[T], K],
        value: Callable[[T], Any],
        combine: Callable[[Any, Any], Any],
        initial: Any,
    ) -> Iterator[Tuple[K, Any]]:
        """Fold ``value(record)`` per key with an associative ``combine``."""

    @abstractmethod
    def run_per_key(
        self,
        operator: str,
        groups: Iterable[Tuple[K, List[T]]],
        fn: Callable[[K, List[T]], Iterable[Any]],
    ) -> Iterator[Any]:
        """Apply ``fn`` to each group, isolating structured failures per key."""

    def join(
        self,
        left: Iterable[Any],
        right: Iterable[Any],
        left_key: Callable[[Any], Hashable],
        right_key: Callable[[Any], Hashable],
    ) -> Iterator[Tuple[Any, Any]]:
        """Inner join on equal keys."""
        index: Dict[Hashable, List[Any]] = defaultdict(list)
        for r in right:
            index[right_key(r)].append(r)
        for rec in left:
            for r in index.get(left_key(rec), ()):
                yield rec, r

    def left_join(
        self,
        left: Iterable[Any],
        right: Iterable[Any],
        left_key: Callable[[Any], Hashable],
        right_key: Callable[[Any], Hashable],
    ) -> Iterator[Tuple[Any, Optional[Any]]]:
        """Left outer join; unmatched left records pair with ``None``."""
        index: Dict[Hashable, List[Any]] = defaultdict(list)
        for r in right:
            index[right_key(r)].append(r)
        for rec in left:
            matches = index.get(left_key(rec))
            if not matches:
                yield rec, None
                continue
            for r in matches:
                yield rec, r


class LocalEngine(DistributedEngine):
    """
    Single-process engine.

    Groups are materialized in memory and emitted in first-seen key order.
    A ``FormaError`` raised while processing a key drops that key's output,
    is logged and recorded in ``progress``; any other exception propagates.

    Example:
        engine = LocalEngine()
        groups = engine.group_sorted(chunks, key=lambda c: c.location,
                                     sort_key=lambda c: c.period)
        out = list(engine.run_per_key("timeseries", groups, reconstruct))
        print(engine.progress.summary())
    """

    def __init__(self, fail_fast: bool = False):
        """
        Args:
            fail_fast: Re-raise the first structured failure instead of
                isolating it
        """
        super().__init__()
        self.fail_fast = fail_fast

    def group_sorted(self, records, key, sort_key=None):
        groups: Dict[Hashable, List[Any]] = {}
        for record in records:
            groups.setdefault(key(record), []).append(record)
        for k, items in groups.items():
            if sort_key is not None:
                items.sort(key=sort_key)
            yield k, items

    def aggregate(self, records, key, value, combine, initial):
        acc: Dict[Hashable, Any] = {}
        for record in records:
            k = key(record)
            acc[k] = combine(acc.get(k, initial), value(record))
        yield from acc.items()

    def run_per_key(self, operator, groups, fn):
        log = logger.bind(operator=operator)
        for k, items in groups:
            try:
                results = list(fn(k, items))
            except FormaError as exc:
                if self.fail_fast:
                    raise
                self.progress.record_failure(operator, k, exc)
                log.warning("key_failed", key=repr(k), kind=exc.kind, error=exc.message)
                continue
            self.progress.keys_processed += 1
            yield from results
