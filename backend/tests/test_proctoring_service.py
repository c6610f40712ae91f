"""
Tests for the attempt registry and proctoring service
"""
import json
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from quizguard.models import ProctoringLog, ProctoringViolation
from quizguard.schemas.proctoring import SignalCreate
from quizguard.services.proctoring_service import (
    AttemptClosedError,
    AttemptNotFoundError,
    ProctoringService,
)


@pytest.fixture
def service(db, monitor_registry):
    return ProctoringService(db, registry=monitor_registry)


def hidden():
    return SignalCreate(type="visibilitychange", hidden=True)


class TestMonitorRegistry:

    def test_open_activates_monitor(self, monitor_registry):
        entry = monitor_registry.open("a1", max_allowed_violations=2)

        assert entry.monitor.is_active is True
        assert entry.host.listener_count() == 4
        assert monitor_registry.active_count() == 1

    def test_open_is_idempotent(self, monitor_registry):
        first = monitor_registry.open("a1", max_allowed_violations=2)
        second = monitor_registry.open("a1", max_allowed_violations=2)

        assert first is second
        assert first.host.listener_count() == 4

    def test_close_removes_listeners(self, monitor_registry):
        entry = monitor_registry.open("a1", max_allowed_violations=0)
        monitor_registry.close("a1")
        monitor_registry.close("a1")

        assert entry.host.listener_count() == 0
        assert entry.session.active is False
        assert monitor_registry.get("a1") is None

    def test_drain_collects_outcomes(self, monitor_registry):
        from quizguard.proctoring import ProctoringEvent

        entry = monitor_registry.open("a1", max_allowed_violations=0)
        entry.dispatch(ProctoringEvent("blur"))

        violations, exceeded = entry.drain()
        assert [event.type for event in violations] == ["blur"]
        assert exceeded is True
        assert entry.drain() == ([], False)


class TestProctoringService:

    def test_start_attempt_uses_default_tolerance(self, service, monitor_registry):
        attempt = service.start_attempt("quiz-1", "student-1")

        assert attempt.status == "in_progress"
        assert attempt.max_allowed_violations == 0
        assert monitor_registry.get(attempt.id) is not None
        assert service.describe(attempt).is_monitored is True

    def test_zero_tolerance_terminates_on_first_hide(self, service, db, monitor_registry):
        attempt = service.start_attempt("quiz-1", "student-1")

        outcome = service.record_signal(attempt.id, hidden())

        assert outcome.violation_count == 1
        assert outcome.counted is True
        assert outcome.terminated is True
        assert outcome.status == "terminated"
        assert outcome.warning is False

        stored = service.get_attempt(attempt.id)
        assert stored.score == 0
        assert stored.is_terminated is True
        assert stored.was_tab_switched is True
        assert stored.ended_at is not None
        assert monitor_registry.get(attempt.id) is None
        assert db.query(ProctoringViolation).count() == 1

    def test_threshold_after_allowance(self, service):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=2)
        blur = SignalCreate(type="blur")

        first = service.record_signal(attempt.id, blur)
        second = service.record_signal(attempt.id, blur)
        assert first.warning is True
        assert second.terminated is False
        assert second.is_over_threshold is False

        third = service.record_signal(attempt.id, blur)
        assert third.violation_count == 3
        assert third.is_over_threshold is True
        assert third.terminated is True

    def test_signals_after_termination_are_rejected(self, service):
        attempt = service.start_attempt("quiz-1", "student-1")
        service.record_signal(attempt.id, hidden())

        with pytest.raises(AttemptClosedError):
            service.record_signal(attempt.id, hidden())
        assert service.get_attempt(attempt.id).tab_switch_count == 1

    def test_shortcut_is_logged_but_not_counted(self, service, db):
        attempt = service.start_attempt("quiz-1", "student-1")

        outcome = service.record_signal(
            attempt.id, SignalCreate(type="keydown", key="F12")
        )

        assert outcome.default_prevented is True
        assert outcome.counted is False
        assert outcome.violation_count == 0
        assert db.query(ProctoringViolation).count() == 0

        log = db.query(ProctoringLog).filter(ProctoringLog.attempt_id == attempt.id).one()
        data = json.loads(log.event_data)
        assert log.event_type == "keydown"
        assert data["default_prevented"] is True
        assert data["counted"] is False

    def test_end_attempt_stops_monitoring(self, service, monitor_registry):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=3)
        entry = monitor_registry.get(attempt.id)

        ended = service.end_attempt(attempt.id, reason="submitted", score=8, total_points=10)

        assert ended.status == "submitted"
        assert ended.score == 8
        assert entry.host.listener_count() == 0
        with pytest.raises(AttemptClosedError):
            service.record_signal(attempt.id, hidden())
        with pytest.raises(AttemptClosedError):
            service.end_attempt(attempt.id)

    def test_resumes_monitor_with_stored_count(self, service, monitor_registry):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=1)
        service.record_signal(attempt.id, hidden())

        # Simulate a process restart
        monitor_registry.close_all()

        outcome = service.record_signal(attempt.id, hidden())
        assert outcome.violation_count == 2
        assert outcome.terminated is True

    def test_failed_commit_keeps_count_and_rows_in_step(self, service, db, monitor_registry):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=5)
        blur = SignalCreate(type="blur")
        failure = OperationalError("COMMIT", {}, Exception("database is locked"))

        with patch.object(db, "commit", side_effect=failure):
            with pytest.raises(OperationalError):
                service.record_signal(attempt.id, blur)

        assert monitor_registry.get(attempt.id) is None

        outcome = service.record_signal(attempt.id, blur)

        assert outcome.violation_count == 1
        assert service.get_attempt(attempt.id).tab_switch_count == 1
        assert db.query(ProctoringViolation).count() == 1

    def test_unknown_attempt(self, service):
        with pytest.raises(AttemptNotFoundError):
            service.record_signal("missing", hidden())
        with pytest.raises(AttemptNotFoundError):
            service.violation_statistics("missing")

    def test_violation_statistics(self, service):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=5)
        service.record_signal(attempt.id, hidden())
        service.record_signal(attempt.id, SignalCreate(type="blur"))
        service.record_signal(attempt.id, SignalCreate(type="blur"))
        service.record_signal(attempt.id, SignalCreate(type="contextmenu"))

        stats = service.violation_statistics(attempt.id)
        assert stats.total_violations == 3
        assert stats.by_type == {"tab_hidden": 1, "window_blur": 2}
        assert stats.by_severity["high"] == 3
        assert stats.by_severity["low"] == 0
        assert len(stats.timeline) == 3
        assert stats.timeline[0].type == "tab_hidden"

    def test_list_violations_newest_first(self, service):
        attempt = service.start_attempt("quiz-1", "student-1", max_allowed_violations=5)
        service.record_signal(attempt.id, hidden())
        service.record_signal(attempt.id, SignalCreate(type="blur"))

        violations = service.list_violations(attempt.id)
        assert [v.violation_type for v in violations] == ["window_blur", "tab_hidden"]
        assert violations[0].student_id == "student-1"
