"""Rendering contracts between the engine and a presentation layer.

The engine never draws anything. It calls caller-supplied builders with the
data they need and returns whatever they produce:

- FieldBuilder, keyed by FieldConfig.type:
  ``(field, value, on_change, failure) -> renderable``
- ButtonBuilder: ``(on_submit, is_submitting, is_valid, values) -> renderable``
- GlobalErrorBuilder: ``(error) -> renderable``

The defaults in this module return plain descriptor objects so a host can
render them however it likes, or replace them entirely.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional

from formstate.fields import FieldConfig, ValidatorConfig
from formstate.types import FormValues

FieldBuilder = Callable[[FieldConfig, Any, Callable[[Any], None], Optional[ValidatorConfig]], Any]
ButtonBuilder = Callable[[Callable[[], Awaitable[Any]], bool, bool, FormValues], Any]
GlobalErrorBuilder = Callable[[Any], Any]


@dataclass(frozen=True)
class MissingBuilder:
    """Placeholder rendered in place of a field whose type has no builder."""
    field_name: str
    field_type: str

    @property
    def message(self) -> str:
        return f"No builder provided for field type: {self.field_type}"


@dataclass(frozen=True)
class SubmitButton:
    """Default submit button descriptor.

    Attributes:
        on_submit: Coroutine function starting a submit() attempt
        is_submitting: Whether a submission is in flight
        is_valid: Whether the form currently has no recorded failures
        values: Snapshot of the form values
    """
    on_submit: Callable[[], Awaitable[Any]]
    is_submitting: bool
    is_valid: bool
    values: FormValues = field(default_factory=dict)
    label: str = "Submit"

    @property
    def disabled(self) -> bool:
        return self.is_submitting


@dataclass(frozen=True)
class GlobalErrorNotice:
    """Default descriptor for a failed submission."""
    error: Any

    @property
    def message(self) -> str:
        return str(self.error)


def default_button_builder(
    on_submit: Callable[[], Awaitable[Any]],
    is_submitting: bool,
    is_valid: bool,
    values: FormValues,
) -> SubmitButton:
    return SubmitButton(on_submit=on_submit, is_submitting=is_submitting, is_valid=is_valid, values=dict(values))


def default_global_error_builder(error: Any) -> GlobalErrorNotice:
    return GlobalErrorNotice(error=error)


FieldBuilders = Dict[str, FieldBuilder]


__all__ = [
    "FieldBuilder",
    "FieldBuilders",
    "ButtonBuilder",
    "GlobalErrorBuilder",
    "MissingBuilder",
    "SubmitButton",
    "GlobalErrorNotice",
    "default_button_builder",
    "default_global_error_builder",
]
