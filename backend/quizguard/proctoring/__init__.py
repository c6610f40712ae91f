from .events import (
    BLUR,
    CONTEXT_MENU,
    KEY_DOWN,
    VISIBILITY_CHANGE,
    EventTarget,
    HostEnvironment,
    ProctoringEvent,
)
from .monitor import MonitorState, ProctoringMonitor, ProctoringSession, is_blocked_shortcut

__all__ = [
    "BLUR",
    "CONTEXT_MENU",
    "KEY_DOWN",
    "VISIBILITY_CHANGE",
    "EventTarget",
    "HostEnvironment",
    "ProctoringEvent",
    "MonitorState",
    "ProctoringMonitor",
    "ProctoringSession",
    "is_blocked_shortcut",
]
