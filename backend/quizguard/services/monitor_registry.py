import logging
from typing import Dict, List, Optional, Tuple

from ..proctoring import HostEnvironment, ProctoringEvent, ProctoringMonitor, ProctoringSession

logger = logging.getLogger(__name__)


class MonitoredAttempt:
    """Live host, session and monitor for one in-progress attempt"""

    def __init__(self, attempt_id: str, max_allowed_violations: int, violation_count: int = 0):
        self.attempt_id = attempt_id
        self.host = HostEnvironment.create()
        self.session = ProctoringSession(
            active=True,
            violation_count=violation_count,
            max_allowed_violations=max_allowed_violations,
        )
        self.monitor = ProctoringMonitor(
            self.host,
            on_violation=self._on_violation,
            on_threshold_exceeded=self._on_threshold_exceeded,
        )
        self.pending_violations: List[ProctoringEvent] = []
        self.threshold_exceeded = False

    def _on_violation(self, session: ProctoringSession, event: ProctoringEvent):
        logger.info(
            f"Attempt {self.attempt_id}: {event.type} violation "
            f"({session.violation_count}/{session.max_allowed_violations} allowed)"
        )
        self.pending_violations.append(event)

    def _on_threshold_exceeded(self, session: ProctoringSession):
        logger.warning(f"Attempt {self.attempt_id}: violation threshold exceeded")
        self.threshold_exceeded = True

    def dispatch(self, event: ProctoringEvent) -> bool:
        return self.host.dispatch(event)

    def drain(self) -> Tuple[List[ProctoringEvent], bool]:
        """Return and clear the outcomes collected since the last drain"""
        violations, self.pending_violations = self.pending_violations, []
        exceeded, self.threshold_exceeded = self.threshold_exceeded, False
        return violations, exceeded


class MonitorRegistry:
    def __init__(self):
        self._entries: Dict[str, MonitoredAttempt] = {}

    def open(self, attempt_id: str, max_allowed_violations: int, violation_count: int = 0) -> MonitoredAttempt:
        entry = self._entries.get(attempt_id)
        if entry is not None:
            return entry

        entry = MonitoredAttempt(attempt_id, max_allowed_violations, violation_count)
        entry.monitor.activate(entry.session)
        self._entries[attempt_id] = entry
        logger.info(f"Monitoring attempt {attempt_id} (max {max_allowed_violations} violations)")
        return entry

    def get(self, attempt_id: str) -> Optional[MonitoredAttempt]:
        return self._entries.get(attempt_id)

    def close(self, attempt_id: str) -> None:
        entry = self._entries.pop(attempt_id, None)
        if entry is None:
            return
        entry.monitor.deactivate()
        entry.session.active = False
        logger.info(f"Stopped monitoring attempt {attempt_id}")

    def close_all(self) -> None:
        for attempt_id in list(self._entries):
            self.close(attempt_id)

    def active_count(self) -> int:
        return len(self._entries)


registry = MonitorRegistry()
