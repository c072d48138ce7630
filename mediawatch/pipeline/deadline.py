"""Deadline token carried through one job."""

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

T = TypeVar("T")


class Deadline:
    """
    Absolute expiry on the monotonic clock.

    A job creates one at its start and hands it down; loops check
    ``expired`` at iteration boundaries and I/O is bounded with ``run``,
    which never waits past the parent's expiry.
    """

    def __init__(self, seconds: Optional[float] = None) -> None:
        self.expires_at = None if seconds is None else time.monotonic() + seconds

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.expires_at is not None and time.monotonic() >= self.expires_at

    def child(self, seconds: Optional[float]) -> "Deadline":
        """A deadline at most ``seconds`` away and never later than this one."""
        child = Deadline(seconds)
        if self.expires_at is not None and (
            child.expires_at is None or self.expires_at < child.expires_at
        ):
            child.expires_at = self.expires_at
        return child

    async def run(self, awaitable: Awaitable[T], seconds: Optional[float] = None) -> T:
        """
        Await ``awaitable`` within ``seconds`` and this deadline.

        Raises asyncio.TimeoutError when either elapses; the awaitable is
        cancelled.
        """
        return await asyncio.wait_for(awaitable, timeout=self.child(seconds).remaining())
