"""
POS Core Time — Explicit Clock Protocol
=========================================
Doctrine: no datetime.now() scattered through engine logic.
Anything that stamps a time (bill date defaults, event timestamps)
takes a Clock from the composition root.

There is no process-wide default clock. Callers pass one in.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now_utc(self) -> datetime:
        """Current time, timezone-aware UTC."""
        ...  # pragma: no cover


class SystemClock:
    """Wall clock of the till process."""

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Frozen clock for tests and replaying a trading day.

        clock = FixedClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))
        bill = BillAccumulator(clock=clock)   # bill_date == 2026-03-01 09:00
        clock.advance(60)                     # next sale a minute later
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._current = fixed_dt

    def now_utc(self) -> datetime:
        return self._current

    def advance(self, seconds: float) -> None:
        self._current += timedelta(seconds=seconds)
