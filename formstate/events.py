"""Event system for formstate.

This module provides the event data structures, the form-level event emitter
and the per-field value subjects that a rendering layer subscribes to.

Ordering guarantee for a value change: the engine commits the value, re-runs
validation when its mode asks for it, and only then notifies the field's
subscribers and emits FIELD_CHANGED, so listeners always observe a value
together with its up-to-date failure.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import json

from formstate.fields import ValidatorConfig
from formstate.logging import get_logger
from formstate.types import FormEventType

logger = get_logger(__name__)


@dataclass(frozen=True)
class FormEvent:
    """A single event in a form's lifecycle.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_3f2a...")
        type: Event type from FormEventType
        form_id: ID of the form that emitted the event
        ts: UTC timestamp when the event occurred
        field_name: The field concerned, for field-level events
        payload: Optional event-specific data (e.g., failure message, outcome)

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = FormEvent(
        ...     event_id="evt_001",
        ...     type=FormEventType.FIELD_CHANGED,
        ...     form_id="form_001",
        ...     ts=datetime.now(timezone.utc),
        ...     field_name="email",
        ... )
    """
    event_id: str
    type: FormEventType
    form_id: str
    ts: datetime
    field_name: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if isinstance(self.type, str) and not isinstance(self.type, FormEventType):
            object.__setattr__(self, "type", FormEventType(self.type))

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        Timestamp is formatted as ISO 8601 string.
        """
        result: Dict[str, Any] = {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
        }
        if self.field_name is not None:
            result["fieldName"] = self.field_name
        if self.payload is not None:
            result["payload"] = self.payload
        return result

    def to_jsonl(self) -> str:
        """Single-line JSON; non-JSON payload values are stringified."""
        return json.dumps(self.to_dict(), separators=(",", ":"), default=str)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FormEvent":
        """Create FormEvent from dictionary (camelCase keys)."""
        ts = datetime.fromisoformat(data["ts"].replace("Z", "+00:00"))
        return cls(
            event_id=data["eventId"],
            type=FormEventType(data["type"]),
            form_id=data["formId"],
            ts=ts,
            field_name=data.get("fieldName"),
            payload=data.get("payload"),
        )


EventListener = Callable[[FormEvent], None]
"""Type alias for event listener callbacks.

Event listeners are called synchronously when events are emitted.
"""


class EventEmitter:
    """Event emitter for managing event listeners and dispatching events.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (a failing listener is logged and the others still run)

    Examples:
        >>> emitter = EventEmitter()
        >>> emitter.on(FormEventType.FORM_RESET, lambda e: print(f"reset {e.form_id}"))
        >>> emitter.on_any(lambda e: print(f"Event: {e.type.value}"))
    """

    def __init__(self):
        self._listeners: Dict[FormEventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: FormEventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        self._listeners.setdefault(event_type, []).append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types (wildcard subscription)."""
        self._any_listeners.append(listener)

    def off(self, event_type: FormEventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type; unknown listeners are ignored."""
        listeners = self._listeners.get(event_type)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from wildcard subscription; unknown listeners are ignored."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: FormEvent) -> None:
        """Dispatch an event to all registered listeners.

        Listeners are called synchronously in registration order:
        1. Type-specific listeners for this event type
        2. Wildcard listeners (subscribed to all events)
        """
        for listener in list(self._listeners.get(event.type, ())) + list(self._any_listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("event_listener_failed", event_type=event.type.value, form_id=event.form_id)

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[FormEventType] = None) -> int:
        """Count registered listeners for one type, or all listeners when type is None."""
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        return len(self._any_listeners) + sum(len(listeners) for listeners in self._listeners.values())


FieldListener = Callable[[str, Any, Optional[ValidatorConfig]], None]
"""Field subscriber: (field name, current value, current failure)."""


class FieldNotifier:
    """Observable holder for one field's value and failure.

    The engine publishes to the notifier; renderers subscribe to it. After
    ``dispose()`` the notifier drops its listeners and ignores publications.
    """

    def __init__(self, field_name: str, value: Any = None):
        self.field_name = field_name
        self.value = value
        self.failure: Optional[ValidatorConfig] = None
        self._listeners: List[FieldListener] = []
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on(self, listener: FieldListener) -> None:
        if self._disposed:
            return
        self._listeners.append(listener)

    def off(self, listener: FieldListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, value: Any, failure: Optional[ValidatorConfig]) -> None:
        """Store the latest value and failure and notify subscribers in order."""
        if self._disposed:
            return
        self.value = value
        self.failure = failure
        for listener in list(self._listeners):
            try:
                listener(self.field_name, value, failure)
            except Exception:
                logger.exception("field_listener_failed", field=self.field_name)

    def listener_count(self) -> int:
        return len(self._listeners)

    def dispose(self) -> None:
        self._listeners.clear()
        self._disposed = True


__all__ = [
    "FormEvent",
    "FormEventType",
    "EventListener",
    "EventEmitter",
    "FieldListener",
    "FieldNotifier",
]
