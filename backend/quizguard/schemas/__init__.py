from .proctoring import (
    Attempt,
    AttemptEnd,
    AttemptStart,
    SignalCreate,
    SignalOutcome,
    TimelineEntry,
    Violation,
    ViolationStatistics,
)

__all__ = [
    "Attempt",
    "AttemptEnd",
    "AttemptStart",
    "SignalCreate",
    "SignalOutcome",
    "TimelineEntry",
    "Violation",
    "ViolationStatistics",
]
