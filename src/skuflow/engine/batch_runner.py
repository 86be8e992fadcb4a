"""Sequential, rate-limit aware batch execution used inside tasks."""

from __future__ import annotations

import asyncio
import logging
import math
from typing import Any, Awaitable, Callable, Iterable, Iterator, Mapping, Sequence, TypeVar

from skuflow.engine.cancellation import CancellationToken
from skuflow.models.workflow import BatchResult, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

BatchFn = Callable[[list[T]], Awaitable["TaskResult | Mapping[str, Any]"]]
LogFn = Callable[[str, str], Awaitable[None]]

DEFAULT_RATE_LIMIT_MARKERS = ("频繁操作", "too many requests", "rate limit")
_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class RateLimitPredicate:
    """Case-insensitive substring matcher for transient rate-limit messages."""

    def __init__(self, markers: Iterable[str] = DEFAULT_RATE_LIMIT_MARKERS) -> None:
        self.markers = tuple(m.lower() for m in markers if m)

    def __call__(self, message: str | None) -> bool:
        if not message:
            return False
        lowered = message.lower()
        return any(marker in lowered for marker in self.markers)


def chunk(items: Sequence[T], batch_size: int) -> Iterator[list[T]]:
    """Yield contiguous, order-preserving batches of at most ``batch_size``."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    for start in range(0, len(items), batch_size):
        yield list(items[start:start + batch_size])


async def _call(batch_fn: BatchFn, batch: list[T]) -> TaskResult:
    try:
        outcome = await batch_fn(batch)
    except Exception as exc:
        logger.warning(f"Batch function raised: {exc}", exc_info=True)
        return TaskResult(success=False, message=str(exc) or exc.__class__.__name__)
    if isinstance(outcome, TaskResult):
        return outcome
    return TaskResult.model_validate(outcome)


async def execute_in_batches(
    items: Sequence[T],
    batch_size: int,
    batch_fn: BatchFn,
    *,
    cancel_token: CancellationToken,
    inter_batch_delay: float = 0.0,
    retry_delay: float = 65.0,
    is_transient: Callable[[str | None], bool] | None = None,
    log: LogFn | None = None,
) -> BatchResult:
    """Run ``batch_fn`` over ``items`` one batch at a time.

    A batch whose failure message satisfies ``is_transient`` is retried once
    after ``retry_delay`` seconds. Any other failure, or a failed retry, stops
    the run. Cancellation is checked before each batch and yields the partial
    aggregate rather than an error.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be >= 1, got {batch_size}")
    if is_transient is None:
        is_transient = RateLimitPredicate()

    async def emit(message: str, level: str = "info") -> None:
        logger.log(_LEVELS.get(level, logging.INFO), message)
        if log is not None:
            await log(message, level)

    total = math.ceil(len(items) / batch_size) if items else 0
    result = BatchResult(success=True)
    lines: list[str] = []

    for number, batch in enumerate(chunk(items, batch_size), start=1):
        if not cancel_token:
            await emit(f"Cancelled before batch {number}/{total}", "warn")
            result.cancelled = True
            break

        await emit(f"Starting batch {number}/{total} ({len(batch)} items)")
        outcome = await _call(batch_fn, batch)

        if not outcome.success and is_transient(outcome.message):
            await emit(
                f"Batch {number}/{total} hit a rate limit, retrying in {retry_delay}s: {outcome.message}",
                "warn",
            )
            await asyncio.sleep(retry_delay)
            outcome = await _call(batch_fn, batch)

        lines.append(f"Batch {number}/{total}: {outcome.message}")

        if not outcome.success:
            result.failure_count += 1
            await emit(f"Batch {number}/{total} failed, stopping: {outcome.message}", "error")
            break

        result.success_count += 1
        result.data.extend(outcome.data)

        if number < total:
            await emit(f"Batch {number}/{total} finished, waiting {inter_batch_delay}s")
            await asyncio.sleep(inter_batch_delay)

    result.success = result.failure_count == 0
    result.message = "\n".join(lines)
    return result
