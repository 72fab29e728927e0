"""Core type definitions for formstate.

This module defines the fundamental types used throughout the engine:
- ValidatorKind: The closed set of built-in validation rules
- ValidationMode: When the engine re-validates a field automatically
- FormEventType: Event types published on the form's event stream
- SubmitState: Lifecycle states of a single submit() attempt
- SubmitOutcome: How a submit() attempt ended

Field values, validator params, submission results and submission errors are
deliberately untyped (``Any``) at the engine boundary; concrete typing belongs
to the caller's integration layer.
"""

from enum import Enum
from typing import Any, Callable, Dict

from typing_extensions import TypeAlias


class ValidatorKind(str, Enum):
    """Built-in validator kinds.

    The kind is only consulted when a validator has no inline predicate.
    ``CUSTOM`` has no built-in implementation: it requires either an inline
    predicate or a named validator registered in a ValidatorRegistry.
    """
    REQUIRED = "required"
    EMAIL = "email"
    URL = "url"
    PHONE = "phone"
    MIN_LENGTH = "minLength"
    MAX_LENGTH = "maxLength"
    MIN = "min"
    MAX = "max"
    PATTERN = "pattern"
    MATCH = "match"
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    ONE_OF = "oneOf"
    ALPHA = "alpha"
    ALPHANUMERIC = "alphanumeric"
    NUMERIC = "numeric"
    INTEGER = "integer"
    DATE = "date"
    DATE_AFTER = "dateAfter"
    DATE_BEFORE = "dateBefore"
    CUSTOM = "custom"


class ValidationMode(str, Enum):
    """Policy for automatic re-validation.

    ON_CHANGE re-validates a field every time its value changes. ON_SUBMIT and
    MANUAL never validate on change; validation happens inside submit() or when
    the caller invokes validate()/validate_field() explicitly.
    """
    ON_CHANGE = "onChange"
    ON_SUBMIT = "onSubmit"
    MANUAL = "manual"


class FormEventType(str, Enum):
    """Event types emitted by a FormEngine."""
    FIELD_CHANGED = "field.changed"
    FIELD_VALIDATED = "field.validated"
    FORM_VALIDATED = "form.validated"
    FORM_RESET = "form.reset"
    SUBMIT_VALIDATING = "submit.validating"
    SUBMIT_STARTED = "submit.started"
    SUBMIT_FINISHED = "submit.finished"


class SubmitState(str, Enum):
    """States of a single submit() attempt."""
    IDLE = "idle"
    VALIDATING = "validating"
    SUBMITTING = "submitting"


class SubmitOutcome(str, Enum):
    """Terminal result of a submit() attempt, recorded on the return to IDLE."""
    INVALID = "invalid"
    NO_HANDLER = "no_handler"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    FAULTED = "faulted"


FormValues: TypeAlias = Dict[str, Any]
"""Snapshot of all field values keyed by field name (the validation context)."""

InlinePredicate: TypeAlias = Callable[[Any, FormValues], bool]
"""Inline validator: (value, context) -> passes."""

RequiredMessageBuilder: TypeAlias = Callable[[Any, Any], str]
"""(field, value) -> message for the synthesized required failure."""

SubmitHandler: TypeAlias = Callable[[FormValues], Any]
"""(values) -> result, or an awaitable resolving to the result."""

ResultCallback: TypeAlias = Callable[[Any], None]

ChangeCallback: TypeAlias = Callable[[FormValues], None]


__all__ = [
    "ValidatorKind",
    "ValidationMode",
    "FormEventType",
    "SubmitState",
    "SubmitOutcome",
    "FormValues",
    "InlinePredicate",
    "RequiredMessageBuilder",
    "SubmitHandler",
    "ResultCallback",
    "ChangeCallback",
]
