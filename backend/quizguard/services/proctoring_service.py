import json
import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.proctoring_log import ProctoringLog
from ..models.proctoring_violation import ProctoringViolation
from ..models.quiz_attempt import QuizAttempt
from ..proctoring import BLUR, VISIBILITY_CHANGE, ProctoringEvent
from ..schemas.proctoring import (
    Attempt,
    SignalCreate,
    SignalOutcome,
    TimelineEntry,
    ViolationStatistics,
)
from ..utils.timezone import format_local_time, get_local_now_naive
from .monitor_registry import MonitorRegistry, registry as default_registry

logger = logging.getLogger(__name__)

IN_PROGRESS = "in_progress"
TERMINATED = "terminated"

VIOLATION_DETAILS = {
    VISIBILITY_CHANGE: ("tab_hidden", "high", "Assessment tab was hidden"),
    BLUR: ("window_blur", "high", "Assessment window lost focus"),
}

SEVERITIES = ("low", "medium", "high", "critical")


class ProctoringError(Exception):
    pass


class AttemptNotFoundError(ProctoringError):
    pass


class AttemptClosedError(ProctoringError):
    pass


class ProctoringService:
    def __init__(self, db: Session, registry: Optional[MonitorRegistry] = None):
        self.db = db
        self.registry = registry or default_registry

    def start_attempt(self, quiz_id: str, student_id: str, max_allowed_violations: Optional[int] = None) -> QuizAttempt:
        """Create an attempt and start monitoring it"""
        if max_allowed_violations is None:
            max_allowed_violations = settings.max_allowed_violations

        attempt = QuizAttempt(
            id=str(uuid.uuid4()),
            quiz_id=quiz_id,
            student_id=student_id,
            status=IN_PROGRESS,
            max_allowed_violations=max_allowed_violations,
            tab_switch_count=0,
            was_tab_switched=False,
            is_terminated=False,
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)

        self.registry.open(attempt.id, max_allowed_violations)
        return attempt

    def get_attempt(self, attempt_id: str) -> QuizAttempt:
        attempt = self.db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
        if not attempt:
            raise AttemptNotFoundError(f"Attempt {attempt_id} not found")
        return attempt

    def describe(self, attempt: QuizAttempt) -> Attempt:
        data = Attempt.model_validate(attempt)
        data.is_monitored = self.registry.get(attempt.id) is not None
        return data

    def record_signal(self, attempt_id: str, signal: SignalCreate) -> SignalOutcome:
        """Feed one client-reported signal to the attempt's monitor and persist the outcome"""
        attempt = self.get_attempt(attempt_id)
        if attempt.status != IN_PROGRESS:
            raise AttemptClosedError(f"Attempt {attempt_id} is {attempt.status}")

        entry = self.registry.get(attempt_id)
        if entry is None:
            logger.info(f"Resuming monitor for attempt {attempt_id}")
            entry = self.registry.open(
                attempt_id,
                attempt.max_allowed_violations,
                violation_count=attempt.tab_switch_count or 0,
            )

        event = ProctoringEvent(
            type=signal.type,
            hidden=signal.hidden,
            key=signal.key,
            ctrl_key=signal.ctrl_key,
            shift_key=signal.shift_key,
            alt_key=signal.alt_key,
            meta_key=signal.meta_key,
            metadata=signal.metadata,
        )
        entry.dispatch(event)
        violations, threshold_exceeded = entry.drain()

        try:
            for violation_event in violations:
                violation_type, severity, description = VIOLATION_DETAILS[violation_event.type]
                self.db.add(ProctoringViolation(
                    attempt_id=attempt.id,
                    student_id=attempt.student_id,
                    violation_type=violation_type,
                    severity=severity,
                    description=description,
                    violation_metadata=violation_event.to_dict(),
                ))

            self.db.add(ProctoringLog(
                attempt_id=attempt.id,
                event_type=event.type,
                event_data=json.dumps({
                    "event": event.to_dict(),
                    "counted": bool(violations),
                    "default_prevented": event.default_prevented,
                }),
            ))

            attempt.tab_switch_count = entry.session.violation_count
            if violations:
                attempt.was_tab_switched = True

            if threshold_exceeded:
                self._terminate(attempt)

            self.db.commit()
            self.db.refresh(attempt)
        except SQLAlchemyError:
            self.db.rollback()
            # Drop the live count; the next signal resumes from the stored one
            self.registry.close(attempt_id)
            raise

        count = attempt.tab_switch_count
        terminated = attempt.status == TERMINATED
        return SignalOutcome(
            attempt_id=attempt.id,
            status=attempt.status,
            violation_count=count,
            max_allowed_violations=attempt.max_allowed_violations,
            is_over_threshold=count > attempt.max_allowed_violations,
            warning=not terminated and count > 0 and count >= settings.warning_threshold,
            counted=bool(violations),
            default_prevented=event.default_prevented,
            terminated=terminated,
        )

    def _terminate(self, attempt: QuizAttempt) -> None:
        self.registry.close(attempt.id)
        attempt.status = TERMINATED
        attempt.is_terminated = True
        attempt.termination_reason = (
            f"Tab switch limit exceeded ({attempt.tab_switch_count} detected, "
            f"{attempt.max_allowed_violations} allowed)"
        )
        attempt.score = 0
        attempt.ended_at = get_local_now_naive()
        logger.warning(f"Attempt {attempt.id} terminated: {attempt.termination_reason}")

    def end_attempt(
        self,
        attempt_id: str,
        reason: str = "submitted",
        score: Optional[float] = None,
        total_points: Optional[float] = None,
    ) -> QuizAttempt:
        """Stop monitoring and close the attempt as submitted or timed out"""
        attempt = self.get_attempt(attempt_id)
        if attempt.status != IN_PROGRESS:
            raise AttemptClosedError(f"Attempt {attempt_id} is already {attempt.status}")

        self.registry.close(attempt_id)

        attempt.status = reason
        attempt.score = score
        attempt.total_points = total_points
        attempt.ended_at = get_local_now_naive()
        self.db.commit()
        self.db.refresh(attempt)

        logger.info(f"Attempt {attempt_id} ended: {reason}")
        return attempt

    def list_violations(self, attempt_id: str) -> List[ProctoringViolation]:
        self.get_attempt(attempt_id)
        return self.db.query(ProctoringViolation).filter(
            ProctoringViolation.attempt_id == attempt_id
        ).order_by(ProctoringViolation.timestamp.desc(), ProctoringViolation.id.desc()).all()

    def violation_statistics(self, attempt_id: str) -> ViolationStatistics:
        self.get_attempt(attempt_id)
        violations = self.db.query(ProctoringViolation).filter(
            ProctoringViolation.attempt_id == attempt_id
        ).order_by(ProctoringViolation.timestamp, ProctoringViolation.id).all()

        by_type = {}
        by_severity = {severity: 0 for severity in SEVERITIES}
        timeline = []

        for violation in violations:
            by_type[violation.violation_type] = by_type.get(violation.violation_type, 0) + 1

            if violation.severity in by_severity:
                by_severity[violation.severity] += 1

            timeline.append(TimelineEntry(
                timestamp=violation.timestamp,
                display_time=format_local_time(violation.timestamp),
                type=violation.violation_type,
                severity=violation.severity,
            ))

        return ViolationStatistics(
            attempt_id=attempt_id,
            total_violations=len(violations),
            by_type=by_type,
            by_severity=by_severity,
            timeline=timeline,
        )
