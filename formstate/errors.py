"""Exception types for formstate.

Ordinary validation failures are data, not exceptions: a failing field records
the ValidatorConfig that rejected it. The exceptions below signal programmer
error in form setup or misuse of the engine and always propagate to the caller.
"""

from typing import Any, Optional


class FormStateError(Exception):
    """Root exception for the package."""


class ConfigurationError(FormStateError):
    """Raised when a form or validator is configured in an unusable way.

    Examples are a ``required`` kind inside a field's validator list, a
    ``custom`` validator with neither an inline predicate nor a registered
    name, duplicate field names, or a malformed declarative definition.

    Attributes:
        field_name: The field whose configuration is at fault, if known
        message: Human-readable error message
    """

    def __init__(self, message: str, field_name: Optional[str] = None):
        self.field_name = field_name
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        if self.field_name:
            return f"[{self.field_name}] {self.message}"
        return self.message


class UnknownFieldError(FormStateError, KeyError):
    """Raised when an operation names a field the form does not have."""

    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(field_name)

    def __str__(self) -> str:
        return f"Unknown field: '{self.field_name}'"


class FormDisposedError(FormStateError):
    """Raised when a disposed form is mutated."""


class InvalidStateTransitionError(FormStateError):
    """Raised when attempting an invalid submission state transition.

    Attributes:
        current_state: The current state before the attempted transition
        target_state: The target state that was attempted
    """

    def __init__(self, current_state: Any, target_state: Any, message: str):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(message)


class SubmissionRejected(FormStateError):
    """Raised by a submission handler to reject with an arbitrary payload.

    The engine stores ``error`` (not this exception) as the form's global error,
    so a handler can reject with a plain string, dict, or any other value.
    """

    def __init__(self, error: Any):
        self.error = error
        super().__init__(error)


class SettingsError(FormStateError):
    """Raised when settings cannot be loaded or validated."""

    def __init__(self, message: str = "Failed to load settings", exc: Optional[BaseException] = None):
        self.message = message
        self.exc = exc
        super().__init__(message)

    def __str__(self) -> str:
        return f"{self.message}: {self.exc}" if self.exc else self.message


__all__ = [
    "FormStateError",
    "ConfigurationError",
    "UnknownFieldError",
    "FormDisposedError",
    "InvalidStateTransitionError",
    "SubmissionRejected",
    "SettingsError",
]
