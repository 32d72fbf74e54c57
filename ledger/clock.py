"""
Reference clocks consumed by the transfer gate.

The engine never reads wall-clock time itself; the host hands it one of
these. Both are monotonically non-decreasing.
"""

from __future__ import annotations
import time
from typing import Protocol


class Clock(Protocol):
    def current(self) -> int: ...


class BlockClock:
    """Block-height marker, advanced by the host (one block per committed tx)."""

    def __init__(self, height: int = 0) -> None:
        if height < 0:
            raise ValueError("block height must be non-negative")
        self._height = height

    def current(self) -> int:
        return self._height

    def advance(self, blocks: int = 1) -> int:
        if blocks < 0:
            raise ValueError("cannot move the block clock backwards")
        self._height += blocks
        return self._height

    def sync(self, height: int) -> int:
        """Catch up with a height another writer persisted. Never moves back."""
        if height > self._height:
            self._height = height
        return self._height


class TimestampClock:
    """Unix-seconds marker. Never returns a value lower than one already seen."""

    def __init__(self) -> None:
        self._last = 0

    def current(self) -> int:
        now = int(time.time())
        if now > self._last:
            self._last = now
        return self._last
