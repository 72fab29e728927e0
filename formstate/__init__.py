"""formstate: form configuration, validation and submission engine.

formstate tracks the values of a declaratively described form, validates them
with built-in or caller-supplied rules, and sequences submission, while leaving
widget rendering to caller-supplied builders:
- Field and validator configuration as immutable dataclasses
- Twenty built-in validators plus inline predicates and named custom validators
- Per-field value subjects and a form-level event stream
- An async submit() lifecycle with its own state machine per attempt

Basic usage:
    >>> from formstate import FieldConfig, FormEngine
    >>> form = FormEngine([FieldConfig(name="name", type="text", required=True)])
    >>> form.validate()
    False
    >>> form.errors
    {'name': 'name is required'}
"""

__version__ = "0.1.0"

VERSION = (0, 1, 0)

from formstate.dispatcher import ValidatorDispatcher, ValidatorRegistry
from formstate.engine import FormEngine
from formstate.errors import (
    ConfigurationError,
    FormDisposedError,
    FormStateError,
    SubmissionRejected,
    UnknownFieldError,
)
from formstate.fields import FieldConfig, ValidatorConfig
from formstate.schema import load_fields
from formstate.types import ValidationMode, ValidatorKind

__all__ = [
    "__version__",
    "VERSION",
    "FormEngine",
    "FieldConfig",
    "ValidatorConfig",
    "ValidatorKind",
    "ValidationMode",
    "ValidatorDispatcher",
    "ValidatorRegistry",
    "load_fields",
    "FormStateError",
    "ConfigurationError",
    "UnknownFieldError",
    "FormDisposedError",
    "SubmissionRejected",
]
