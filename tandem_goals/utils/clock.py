"""Clock abstraction so week boundaries can be pinned in tests."""
from datetime import date, datetime
from typing import Protocol


class Clock(Protocol):
    def today(self) -> date: ...

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock. Timestamps are naive UTC, matching what MongoDB returns."""

    def today(self) -> date:
        return datetime.utcnow().date()

    def now(self) -> datetime:
        return datetime.utcnow()


class FixedClock:
    """Clock frozen at a given instant."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def today(self) -> date:
        return self.instant.date()

    def now(self) -> datetime:
        return self.instant
