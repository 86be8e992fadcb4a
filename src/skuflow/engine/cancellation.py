"""Cooperative cancellation flag shared by a workflow and everything it calls."""

from __future__ import annotations


class CancellationToken:
    """A running/cancelled flag that can only be flipped once.

    Purely advisory: holders poll it at their own loop boundaries, nothing is
    interrupted when it flips.
    """

    __slots__ = ("_running",)

    def __init__(self) -> None:
        self._running = True

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def cancelled(self) -> bool:
        return not self._running

    def cancel(self) -> None:
        self._running = False

    def __bool__(self) -> bool:
        return self._running

    def __repr__(self) -> str:
        state = "running" if self._running else "cancelled"
        return f"<CancellationToken {state}>"
