"""
acefantasy/clock.py - Lifecycle clock for leagues and tournaments.

A schedule is fixed at creation. The phase is never stored: callers derive
it from the current block timestamp on every call.

    before start_time               -> OPEN   (registration window)
    start_time <= now < end_time    -> ACTIVE
    now >= end_time                 -> CLOSED (payouts allowed)
"""

from dataclasses import dataclass
from enum import Enum

from .errors import InvalidEndTime


class Phase(Enum):
    OPEN = "open"
    ACTIVE = "active"
    CLOSED = "closed"


def phase_at(now: int, start_time: int, end_time: int) -> Phase:
    if now < start_time:
        return Phase.OPEN
    if now < end_time:
        return Phase.ACTIVE
    return Phase.CLOSED


@dataclass(frozen=True)
class Schedule:
    """Immutable start/end window. Rejects ``end_time <= start_time``."""

    start_time: int
    end_time: int

    def __post_init__(self):
        if self.end_time <= self.start_time:
            raise InvalidEndTime()

    def phase_at(self, now: int) -> Phase:
        return phase_at(now, self.start_time, self.end_time)

    @property
    def duration(self) -> int:
        return self.end_time - self.start_time
