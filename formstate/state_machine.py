"""Submission state machine for formstate.

Every call to ``FormEngine.submit()`` is tracked by its own
SubmissionStateMachine. Attempts are independent, so a second submit() issued
while a first one is still awaiting its handler runs its own machine; nothing
is queued or cancelled.

Lifecycle of one attempt:

    idle -> validating -> idle                      (invalid, or no handler)
    idle -> validating -> submitting -> idle        (handler succeeded or failed)

The final return to ``idle`` records a SubmitOutcome.

Usage:
    >>> from formstate.state_machine import SubmissionStateMachine
    >>> from formstate.types import SubmitOutcome, SubmitState
    >>> sm = SubmissionStateMachine(form_id="form_1")
    >>> sm.transition_to(SubmitState.VALIDATING)
    >>> sm.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.INVALID)
    >>> sm.outcome
    <SubmitOutcome.INVALID: 'invalid'>
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set
import uuid

from formstate.errors import InvalidStateTransitionError
from formstate.events import EventEmitter, FormEvent
from formstate.types import FormEventType, SubmitOutcome, SubmitState


# Event emitted when an attempt enters each state
STATE_TO_EVENT_TYPE: Dict[SubmitState, FormEventType] = {
    SubmitState.VALIDATING: FormEventType.SUBMIT_VALIDATING,
    SubmitState.SUBMITTING: FormEventType.SUBMIT_STARTED,
    SubmitState.IDLE: FormEventType.SUBMIT_FINISHED,
}


VALID_TRANSITIONS: Dict[SubmitState, Set[SubmitState]] = {
    SubmitState.IDLE: {SubmitState.VALIDATING},
    SubmitState.VALIDATING: {SubmitState.IDLE, SubmitState.SUBMITTING},
    SubmitState.SUBMITTING: {SubmitState.IDLE},
}


@dataclass
class SubmissionStateMachine:
    """State machine for a single submit() attempt.

    Attributes:
        form_id: ID of the form the attempt belongs to
        submission_id: Unique identifier for this attempt
        state: Current state of the attempt
        outcome: How the attempt ended; None until it returns to IDLE
        emitter: Optional emitter that receives one event per transition

    Examples:
        >>> sm = SubmissionStateMachine(form_id="form_1")
        >>> sm.state
        <SubmitState.IDLE: 'idle'>
        >>> sm.can_transition_to(SubmitState.SUBMITTING)
        False
    """

    form_id: str
    submission_id: str = field(default_factory=lambda: f"sub_{uuid.uuid4().hex[:16]}")
    state: SubmitState = SubmitState.IDLE
    outcome: Optional[SubmitOutcome] = None
    emitter: Optional[EventEmitter] = field(default=None, repr=False)
    _events: List[FormEvent] = field(default_factory=list, init=False, repr=False)

    def can_transition_to(self, target_state: SubmitState) -> bool:
        return target_state in VALID_TRANSITIONS.get(self.state, set())

    def transition_to(self, target_state: SubmitState, outcome: Optional[SubmitOutcome] = None) -> None:
        """Move to ``target_state`` and emit the matching event.

        Args:
            target_state: The state to transition to
            outcome: Required when returning to IDLE, ignored otherwise

        Raises:
            InvalidStateTransitionError: If the transition is not allowed, or an
                attempt returns to IDLE without an outcome
        """
        if not self.can_transition_to(target_state):
            raise InvalidStateTransitionError(
                current_state=self.state,
                target_state=target_state,
                message=(
                    f"Invalid submit transition: cannot transition from "
                    f"'{self.state.value}' to '{target_state.value}'. "
                    f"Valid transitions from '{self.state.value}' are: "
                    f"{', '.join(sorted(s.value for s in VALID_TRANSITIONS[self.state]))}"
                ),
            )
        if target_state == SubmitState.IDLE and outcome is None:
            raise InvalidStateTransitionError(
                current_state=self.state,
                target_state=target_state,
                message="A submit attempt cannot return to 'idle' without an outcome",
            )

        old_state = self.state
        self.state = target_state
        if target_state == SubmitState.IDLE:
            self.outcome = outcome

        self._emit_event(old_state, target_state)

    @property
    def finished(self) -> bool:
        """Whether the attempt has completed (returned to IDLE with an outcome)."""
        return self.outcome is not None

    def _emit_event(self, old_state: SubmitState, new_state: SubmitState) -> None:
        payload: Dict[str, Any] = {
            "submissionId": self.submission_id,
            "fromState": old_state.value,
            "toState": new_state.value,
        }
        if self.outcome is not None and new_state == SubmitState.IDLE:
            payload["outcome"] = self.outcome.value

        event = FormEvent(
            event_id=f"evt_{uuid.uuid4().hex[:16]}",
            type=STATE_TO_EVENT_TYPE[new_state],
            form_id=self.form_id,
            ts=datetime.now(timezone.utc),
            payload=payload,
        )
        self._events.append(event)
        if self.emitter is not None:
            self.emitter.emit(event)

    def get_events(self) -> List[FormEvent]:
        """All transition events of this attempt, in chronological order."""
        return list(self._events)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the attempt to a dictionary."""
        result: Dict[str, Any] = {
            "formId": self.form_id,
            "submissionId": self.submission_id,
            "state": self.state.value,
        }
        if self.outcome is not None:
            result["outcome"] = self.outcome.value
        return result


__all__ = [
    "SubmissionStateMachine",
    "VALID_TRANSITIONS",
    "STATE_TO_EVENT_TYPE",
]
