"""Per-run, in-memory store of SKU lifecycles.

Every method here is synchronous on purpose: a read-modify-write never spans
an ``await``, so two task completions settling in the same stage cannot
interleave their writes to one item.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from skuflow.core.types import INITIAL_SOURCE
from skuflow.models.workflow import LogEntry, SkuLifecycle, SkuStatus

logger = logging.getLogger(__name__)


class SkuLifecycleStore:
    """Keyed store of ``SkuLifecycle`` records, built fresh for each run."""

    def __init__(self) -> None:
        self._items: dict[str, SkuLifecycle] = {}

    def initialize(self, ids: Iterable[str]) -> dict[str, SkuLifecycle]:
        """Create one pending lifecycle per id. Duplicate ids collapse."""
        self._items = {}
        for sku_id in ids:
            self._items.setdefault(sku_id, SkuLifecycle(id=sku_id))
        return self._items

    def __contains__(self, sku_id: object) -> bool:
        return sku_id in self._items

    def __len__(self) -> int:
        return len(self._items)

    def ids(self) -> list[str]:
        return list(self._items)

    def get(self, sku_id: str) -> SkuLifecycle:
        return self._items[sku_id]

    def ensure(self, sku_id: str) -> SkuLifecycle:
        """Return the item, tracking it as pending first if it is new."""
        if sku_id not in self._items:
            logger.debug(f"Tracking newly reported item {sku_id}")
            self._items[sku_id] = SkuLifecycle(id=sku_id)
        return self._items[sku_id]

    def mutate(self, sku_id: str, fn: Callable[[SkuLifecycle], None]) -> SkuLifecycle:
        """Apply ``fn`` to the item in place and return it."""
        lifecycle = self._items[sku_id]
        fn(lifecycle)
        return lifecycle

    def _advance(self, lifecycle: SkuLifecycle, status: SkuStatus) -> None:
        if lifecycle.status.can_advance_to(status):
            lifecycle.status = status

    def log(self, sku_id: str, message: str, level: str = "info", task: str | None = None) -> None:
        self.mutate(sku_id, lambda lc: lc.logs.append(LogEntry(message=message, level=level, task=task)))

    def credit(self, sku_id: str, task: str, fields: dict[str, Any]) -> SkuLifecycle:
        """Merge ``fields`` into the item's data and record ``task`` as completed."""
        def apply(lc: SkuLifecycle) -> None:
            lc.data.update(fields)
            lc.completed_tasks.add(task)
            self._advance(lc, SkuStatus.IN_PROGRESS)
            lc.logs.append(LogEntry(message=f"Completed {task}", task=task))

        return self.mutate(sku_id, apply)

    def fail(self, sku_id: str, task: str, reason: str) -> SkuLifecycle:
        def apply(lc: SkuLifecycle) -> None:
            self._advance(lc, SkuStatus.FAILED)
            lc.logs.append(LogEntry(message=f"Failed in {task}: {reason}", level="error", task=task))

        return self.mutate(sku_id, apply)

    def eligible(self, source: str, ids: Iterable[str] | None = None) -> list[str]:
        """Non-failed items gated by ``source``, in input order."""
        candidates = self._items.values() if ids is None else (self._items[i] for i in ids)
        return [
            lc.id for lc in candidates
            if lc.status is not SkuStatus.FAILED
            and (source == INITIAL_SOURCE or source in lc.completed_tasks)
        ]

    def failed_ids(self) -> list[str]:
        return [lc.id for lc in self._items.values() if lc.status is SkuStatus.FAILED]

    def has_failures(self) -> bool:
        return any(lc.status is SkuStatus.FAILED for lc in self._items.values())

    def finalize(self) -> None:
        """Promote every in-progress item to completed at successful termination."""
        for lc in self._items.values():
            if lc.status is SkuStatus.IN_PROGRESS:
                self._advance(lc, SkuStatus.COMPLETED)

    def snapshot(self) -> dict[str, SkuLifecycle]:
        return {sku_id: lc.model_copy(deep=True) for sku_id, lc in self._items.items()}
