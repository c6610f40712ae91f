"""
Host event layer for the proctoring monitor.

A ``HostEnvironment`` exposes two event targets, ``document`` and ``window``,
that receive the focus, visibility, keyboard and context-menu signals of an
assessment surface. Listeners subscribe and unsubscribe per event type, and
a listener may suppress the default action of the event it receives.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

VISIBILITY_CHANGE = "visibilitychange"
BLUR = "blur"
CONTEXT_MENU = "contextmenu"
KEY_DOWN = "keydown"


class ProctoringEvent:
    """A single signal delivered by the host"""

    def __init__(
        self,
        type: str,
        hidden: Optional[bool] = None,
        key: Optional[str] = None,
        ctrl_key: bool = False,
        shift_key: bool = False,
        alt_key: bool = False,
        meta_key: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        self.type = type
        self.hidden = hidden
        self.key = key
        self.ctrl_key = ctrl_key
        self.shift_key = shift_key
        self.alt_key = alt_key
        self.meta_key = meta_key
        self.metadata = metadata or {}
        self.default_prevented = False

    def prevent_default(self):
        self.default_prevented = True

    def to_dict(self) -> Dict[str, Any]:
        data = {"type": self.type}
        if self.hidden is not None:
            data["hidden"] = self.hidden
        if self.key is not None:
            data.update({
                "key": self.key,
                "ctrl_key": self.ctrl_key,
                "shift_key": self.shift_key,
                "alt_key": self.alt_key,
                "meta_key": self.meta_key,
            })
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    def __repr__(self):
        return f"<ProctoringEvent {self.type}>"


Listener = Callable[[ProctoringEvent], None]


class EventTarget:
    """Minimal listener registry with DOM-like semantics"""

    def __init__(self, name: str = "target"):
        self.name = name
        self._listeners: Dict[str, List[Listener]] = {}

    def add_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.setdefault(event_type, [])
        if listener not in listeners:
            listeners.append(listener)

    def remove_event_listener(self, event_type: str, listener: Listener) -> None:
        listeners = self._listeners.get(event_type)
        if not listeners or listener not in listeners:
            return
        listeners.remove(listener)
        if not listeners:
            del self._listeners[event_type]

    def dispatch_event(self, event: ProctoringEvent) -> bool:
        """
        Deliver ``event`` to its listeners in registration order.

        Returns False when a listener suppressed the default action.
        """
        for listener in list(self._listeners.get(event.type, ())):
            listener(event)
        return not event.default_prevented

    def listener_count(self, event_type: Optional[str] = None) -> int:
        if event_type is not None:
            return len(self._listeners.get(event_type, ()))
        return sum(len(listeners) for listeners in self._listeners.values())

    def __repr__(self):
        return f"<EventTarget {self.name}>"


class HostEnvironment:
    """
    The pair of targets an assessment surface provides.

    Either target may be None when the host does not offer that API;
    consumers must treat a missing target as unsupported, not as an error.
    """

    def __init__(self, document: Optional[EventTarget] = None, window: Optional[EventTarget] = None):
        self.document = document
        self.window = window

    @classmethod
    def create(cls) -> "HostEnvironment":
        return cls(document=EventTarget("document"), window=EventTarget("window"))

    def target_for(self, event_type: str) -> Optional[EventTarget]:
        """Target a client-reported signal of ``event_type`` is delivered to"""
        if event_type == BLUR:
            return self.window
        return self.document

    def dispatch(self, event: ProctoringEvent) -> bool:
        target = self.target_for(event.type)
        if target is None:
            logger.debug(f"No host target for {event.type}; signal dropped")
            return True
        return target.dispatch_event(event)

    def listener_count(self) -> int:
        return sum(
            target.listener_count()
            for target in (self.document, self.window)
            if target is not None
        )
