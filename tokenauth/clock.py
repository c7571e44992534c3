from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class MockClock:
    """Deterministic clock for tests; only moves when told to."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now_value = now or datetime(2017, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.now_value

    def set(self, now: datetime) -> None:
        self.now_value = now

    def advance(self, seconds: float) -> datetime:
        self.now_value = self.now_value + timedelta(seconds=seconds)
        return self.now_value
