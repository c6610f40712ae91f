"""
Tab-switch and focus-loss detection for timed assessments.

``ProctoringMonitor`` subscribes to a ``HostEnvironment`` while a
``ProctoringSession`` is active. Hiding the page or blurring the window
counts as a violation; the context menu and developer-tools or
tab-cycling shortcuts are suppressed without counting.

Example::

    monitor = ProctoringMonitor(host, on_violation=warn, on_threshold_exceeded=terminate)
    with monitor.activated(ProctoringSession(max_allowed_violations=2)):
        ...
"""
import enum
import logging
from contextlib import contextmanager
from typing import Callable, List, Optional, Tuple

from .events import (
    BLUR,
    CONTEXT_MENU,
    KEY_DOWN,
    VISIBILITY_CHANGE,
    EventTarget,
    HostEnvironment,
    Listener,
    ProctoringEvent,
)

logger = logging.getLogger(__name__)


class ProctoringSession:
    """Violation state of one assessment attempt"""

    def __init__(self, active: bool = True, violation_count: int = 0, max_allowed_violations: int = 0):
        if violation_count < 0 or max_allowed_violations < 0:
            raise ValueError("violation_count and max_allowed_violations must be >= 0")
        self.active = active
        self.violation_count = violation_count
        self.max_allowed_violations = max_allowed_violations

    @property
    def is_over_threshold(self) -> bool:
        return self.violation_count > self.max_allowed_violations

    def reset(self):
        self.violation_count = 0

    def __repr__(self):
        return (
            f"<ProctoringSession active={self.active} "
            f"violations={self.violation_count}/{self.max_allowed_violations}>"
        )


class MonitorState(str, enum.Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"


ViolationCallback = Callable[[ProctoringSession, ProctoringEvent], None]
ThresholdCallback = Callable[[ProctoringSession], None]


def is_blocked_shortcut(event: ProctoringEvent) -> bool:
    """True for developer-tools and tab-cycling key combinations"""
    key = (event.key or "").lower()
    if key == "f12":
        return True
    if event.ctrl_key and event.shift_key and key == "i":
        return True
    if event.ctrl_key and key == "u":
        return True
    if (event.ctrl_key or event.alt_key) and key == "tab":
        return True
    return False


class ProctoringMonitor:
    def __init__(
        self,
        host: Optional[HostEnvironment],
        on_violation: Optional[ViolationCallback] = None,
        on_threshold_exceeded: Optional[ThresholdCallback] = None,
    ):
        self.host = host
        self.on_violation = on_violation
        self.on_threshold_exceeded = on_threshold_exceeded

        self.state = MonitorState.INACTIVE
        self.session: Optional[ProctoringSession] = None
        self._subscriptions: List[Tuple[EventTarget, str, Listener]] = []
        self._threshold_fired = False

    @property
    def is_active(self) -> bool:
        return self.state is MonitorState.ACTIVE

    @property
    def violation_count(self) -> int:
        return self.session.violation_count if self.session else 0

    @property
    def is_over_threshold(self) -> bool:
        return self.session.is_over_threshold if self.session else False

    def activate(self, session: ProctoringSession) -> None:
        if not session.active:
            logger.debug("Session is not active; monitor left inactive")
            return
        if self.is_active:
            logger.debug("Monitor already active; ignoring activate()")
            return

        self.session = session
        self._threshold_fired = False
        self.state = MonitorState.ACTIVE

        host = self.host
        if host is not None:
            self._subscribe(host.document, VISIBILITY_CHANGE, self._handle_visibility_change)
            self._subscribe(host.window, BLUR, self._handle_blur)
            self._subscribe(host.document, CONTEXT_MENU, self._handle_context_menu)
            self._subscribe(host.document, KEY_DOWN, self._handle_key_down)

        logger.debug(f"Monitor activated with {len(self._subscriptions)} listeners")

    def deactivate(self) -> None:
        while self._subscriptions:
            target, event_type, listener = self._subscriptions.pop()
            target.remove_event_listener(event_type, listener)

        if self.is_active:
            logger.debug("Monitor deactivated")
        self.state = MonitorState.INACTIVE

    @contextmanager
    def activated(self, session: ProctoringSession):
        self.activate(session)
        try:
            yield self
        finally:
            self.deactivate()

    def _subscribe(self, target, event_type: str, listener: Listener) -> None:
        add = getattr(target, "add_event_listener", None)
        remove = getattr(target, "remove_event_listener", None)
        if not callable(add) or not callable(remove):
            logger.debug(f"Host does not support {event_type} notifications; skipping")
            return
        add(event_type, listener)
        self._subscriptions.append((target, event_type, listener))

    def _watching(self) -> bool:
        return self.is_active and self.session is not None and self.session.active

    def _handle_visibility_change(self, event: ProctoringEvent) -> None:
        if not self._watching():
            return
        if event.hidden:
            self._record_violation(event)

    def _handle_blur(self, event: ProctoringEvent) -> None:
        if not self._watching():
            return
        self._record_violation(event)

    def _handle_context_menu(self, event: ProctoringEvent) -> None:
        if not self._watching():
            return
        event.prevent_default()

    def _handle_key_down(self, event: ProctoringEvent) -> None:
        if not self._watching():
            return
        if is_blocked_shortcut(event):
            event.prevent_default()

    def _record_violation(self, event: ProctoringEvent) -> None:
        session = self.session
        if not session.is_over_threshold:
            # Re-arm for a fresh or reset session
            self._threshold_fired = False
        session.violation_count += 1

        crossed = session.is_over_threshold and not self._threshold_fired
        if crossed:
            self._threshold_fired = True

        if self.on_violation is not None:
            self.on_violation(session, event)
        if crossed and self.on_threshold_exceeded is not None:
            self.on_threshold_exceeded(session)
