"""FormEngine orchestrator for formstate.

This module provides the FormEngine class that owns a form's state and
coordinates the validator dispatcher, the submission state machine, the event
emitter and the rendering contracts.

The engine owns two maps keyed by field name, ``values`` and ``failures``,
whose key sets always equal the set of configured field names. All mutation
goes through the engine's methods.

Usage:
    >>> import asyncio
    >>> from formstate import FieldConfig, FormEngine, ValidatorConfig, ValidatorKind
    >>> form = FormEngine(
    ...     [
    ...         FieldConfig(name="email", type="email", required=True,
    ...                     validators=[ValidatorConfig(kind=ValidatorKind.EMAIL, message="Invalid email")]),
    ...     ],
    ...     on_submit=lambda values: {"ok": True},
    ... )
    >>> form.set_value("email", "not-an-email")
    >>> form.errors
    {'email': 'Invalid email'}
    >>> form.set_value("email", "jane@example.com")
    >>> asyncio.run(form.submit())
    {'ok': True}
"""

import functools
import inspect
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from formstate.dispatcher import ValidatorDispatcher, ValidatorRegistry
from formstate.errors import ConfigurationError, FormDisposedError, SubmissionRejected, UnknownFieldError
from formstate.events import EventEmitter, FieldListener, FieldNotifier, FormEvent
from formstate.fields import FieldConfig, ValidatorConfig
from formstate.logging import get_logger
from formstate.rendering import (
    ButtonBuilder,
    GlobalErrorBuilder,
    MissingBuilder,
    default_button_builder,
    default_global_error_builder,
)
from formstate.settings import get_settings
from formstate.state_machine import SubmissionStateMachine
from formstate.types import (
    ChangeCallback,
    FormEventType,
    FormValues,
    ResultCallback,
    SubmitHandler,
    SubmitOutcome,
    SubmitState,
    ValidationMode,
    ValidatorKind,
)
from formstate.validators import is_empty

logger = get_logger(__name__)


class FormEngine:
    """State and lifecycle of one form instance.

    Attributes:
        form_id: Unique identifier used on emitted events
        field_builders: Rendering callbacks keyed by FieldConfig.type
        initial_values: Values that override each field's initial_value
        validation_mode: When set_value re-validates the changed field
        dispatcher: Evaluates individual validator configurations
        emitter: Receives the form's lifecycle events
        last_submission: State machine of the most recent submit() attempt

    Examples:
        >>> form = FormEngine([FieldConfig(name="age", type="number", initial_value=30)])
        >>> form.values
        {'age': 30}
        >>> form.validate()
        True
    """

    def __init__(
        self,
        fields: Iterable[FieldConfig],
        field_builders: Optional[Mapping[str, Any]] = None,
        *,
        initial_values: Optional[Mapping[str, Any]] = None,
        on_submit: Optional[SubmitHandler] = None,
        on_success: Optional[ResultCallback] = None,
        on_error: Optional[ResultCallback] = None,
        on_change: Optional[ChangeCallback] = None,
        validation_mode: Optional[ValidationMode] = None,
        registry: Optional[ValidatorRegistry] = None,
        button_builder: Optional[ButtonBuilder] = None,
        global_error_builder: Optional[GlobalErrorBuilder] = None,
        emitter: Optional[EventEmitter] = None,
        form_id: Optional[str] = None,
    ):
        """Initialize the form and seed one value per field.

        Raises:
            ConfigurationError: If two fields share a name
        """
        self.form_id = form_id or f"form_{uuid.uuid4().hex[:16]}"
        self._fields: Tuple[FieldConfig, ...] = tuple(fields)
        self._by_name: Dict[str, FieldConfig] = {}
        for field_config in self._fields:
            if field_config.name in self._by_name:
                raise ConfigurationError("Duplicate field name", field_name=field_config.name)
            self._by_name[field_config.name] = field_config

        self.field_builders: Dict[str, Any] = dict(field_builders or {})
        self.initial_values: Dict[str, Any] = dict(initial_values or {})
        self.on_submit = on_submit
        self.on_success = on_success
        self.on_error = on_error
        self.on_change = on_change
        if validation_mode is None:
            validation_mode = get_settings().default_validation_mode
        self.validation_mode = ValidationMode(validation_mode)
        self.dispatcher = ValidatorDispatcher(registry)
        self.button_builder: ButtonBuilder = button_builder or default_button_builder
        self.global_error_builder: GlobalErrorBuilder = global_error_builder or default_global_error_builder
        self.emitter = emitter if emitter is not None else EventEmitter()
        self.last_submission: Optional[SubmissionStateMachine] = None

        self._values: Dict[str, Any] = {f.name: self._seed_value(f) for f in self._fields}
        self._failures: Dict[str, Optional[ValidatorConfig]] = {f.name: None for f in self._fields}
        self._notifiers: Dict[str, FieldNotifier] = {
            f.name: FieldNotifier(f.name, self._values[f.name]) for f in self._fields
        }
        self._global_error: Any = None
        self._in_flight = 0
        self._disposed = False

        logger.debug(
            "form_created",
            form_id=self.form_id,
            fields=len(self._fields),
            validation_mode=self.validation_mode.value,
        )

    def _seed_value(self, field_config: FieldConfig) -> Any:
        override = self.initial_values.get(field_config.name)
        return override if override is not None else field_config.initial_value

    # -- read access -----------------------------------------------------

    @property
    def fields(self) -> Tuple[FieldConfig, ...]:
        """Field configurations in declaration (validation) order."""
        return self._fields

    def sorted_fields(self) -> List[FieldConfig]:
        """Field configurations in display order (by ``order``, stable)."""
        return sorted(self._fields, key=lambda f: f.order)

    def field(self, name: str) -> FieldConfig:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownFieldError(name) from None

    @property
    def values(self) -> FormValues:
        """Copy of the current values."""
        return dict(self._values)

    @property
    def failures(self) -> Dict[str, Optional[ValidatorConfig]]:
        """Copy of the current per-field failures (None for passing fields)."""
        return dict(self._failures)

    @property
    def errors(self) -> Dict[str, str]:
        """Failure messages of failing fields only."""
        return {name: failure.message for name, failure in self._failures.items() if failure is not None}

    def get_value(self, name: str) -> Any:
        self.field(name)
        return self._values[name]

    def get_failure(self, name: str) -> Optional[ValidatorConfig]:
        self.field(name)
        return self._failures[name]

    @property
    def is_valid(self) -> bool:
        """True when no field currently has a recorded failure.

        This reflects the last validation results; it does not re-validate.
        """
        return all(failure is None for failure in self._failures.values())

    @property
    def is_submitting(self) -> bool:
        """True while at least one submission handler call is in flight."""
        return self._in_flight > 0

    @property
    def global_error(self) -> Any:
        """Error of the last failed submission, or None."""
        return self._global_error

    @property
    def disposed(self) -> bool:
        return self._disposed

    # -- validation ------------------------------------------------------

    def validate_field(self, name: str) -> Optional[ValidatorConfig]:
        """Validate one field, record and publish the result.

        Returns:
            The field's failure, or None when it passes

        Raises:
            UnknownFieldError: If the form has no such field
            ConfigurationError: If the field's validators contain a ``required``
                kind, or a ``custom`` rule cannot be resolved
        """
        self._ensure_active()
        field_config = self.field(name)
        failure = self._run_field_validation(field_config)
        self._notifiers[name].publish(self._values[name], failure)
        self._emit(
            FormEventType.FIELD_VALIDATED,
            field_name=name,
            payload={"valid": failure is None, "message": failure.message if failure else None},
        )
        return failure

    def _run_field_validation(self, field_config: FieldConfig) -> Optional[ValidatorConfig]:
        name = field_config.name
        for rule in field_config.validators:
            if rule.kind == ValidatorKind.REQUIRED:
                raise ConfigurationError(
                    "A 'required' validator is not allowed in the validators list; "
                    "set FieldConfig(required=True) instead",
                    field_name=name,
                )

        value = self._values[name]
        failure: Optional[ValidatorConfig] = None
        if is_empty(value):
            if field_config.required:
                failure = ValidatorConfig(kind=ValidatorKind.REQUIRED, message=field_config.required_message(value))
        else:
            context = dict(self._values)
            for rule in field_config.validators:
                failure = self.dispatcher.evaluate(value, rule, context)
                if failure is not None:
                    break

        self._failures[name] = failure
        if failure is not None:
            logger.debug("field_invalid", form_id=self.form_id, field=name, kind=failure.kind.value)
        return failure

    def validate(self) -> bool:
        """Validate every field in declaration order.

        All fields are re-evaluated even after an earlier one fails.

        Returns:
            True if no field has a failure
        """
        self._ensure_active()
        valid = True
        for field_config in self._fields:
            if self.validate_field(field_config.name) is not None:
                valid = False
        self._emit(FormEventType.FORM_VALIDATED, payload={"valid": valid, "errors": self.errors})
        return valid

    # -- mutation --------------------------------------------------------

    def set_value(self, name: str, value: Any) -> None:
        """Commit a new value for a field.

        The value is committed first; in ON_CHANGE mode the field is then
        re-validated; subscribers are notified last. A committed value is
        always announced, even when re-validation raises; the field then
        keeps its previous failure.

        Raises:
            UnknownFieldError: If the form has no such field
            FormDisposedError: If the form has been disposed
            ConfigurationError: In ON_CHANGE mode, if the field's validators
                are misconfigured
        """
        self._ensure_active()
        field_config = self.field(name)
        self._values[name] = value
        try:
            if self.validation_mode == ValidationMode.ON_CHANGE:
                self._run_field_validation(field_config)
        finally:
            self._notifiers[name].publish(value, self._failures[name])
            self._emit(FormEventType.FIELD_CHANGED, field_name=name)
            if self.on_change is not None:
                self.on_change(self.values)

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Set several values; all names are checked before any is committed."""
        self._ensure_active()
        for name in values:
            self.field(name)
        for name, value in values.items():
            self.set_value(name, value)

    def reset(self) -> None:
        """Restore seeded values and clear every failure.

        ``is_submitting`` and ``global_error`` are left untouched.
        """
        self._ensure_active()
        for field_config in self._fields:
            name = field_config.name
            self._values[name] = self._seed_value(field_config)
            self._failures[name] = None
            self._notifiers[name].publish(self._values[name], None)
        self._emit(FormEventType.FORM_RESET)

    # -- submission ------------------------------------------------------

    async def submit(self) -> Any:
        """Validate and, if valid, hand a snapshot of the values to ``on_submit``.

        Returns:
            The handler's result on success; None when the form is invalid, no
            handler is configured, or the handler failed

        A handler failure never propagates: it is stored as ``global_error``
        (the payload of a SubmissionRejected, or the exception itself) and
        passed to ``on_error``. Configuration faults raised during validation
        do propagate, after the attempt is closed with the FAULTED outcome.
        """
        self._ensure_active()
        self._global_error = None
        attempt = SubmissionStateMachine(form_id=self.form_id, emitter=self.emitter)
        self.last_submission = attempt

        attempt.transition_to(SubmitState.VALIDATING)
        try:
            valid = self.validate()
        except Exception:
            attempt.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.FAULTED)
            logger.exception("submit_faulted", form_id=self.form_id, submission_id=attempt.submission_id)
            raise
        if not valid:
            attempt.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.INVALID)
            logger.debug("submit_invalid", form_id=self.form_id, errors=self.errors)
            return None

        if self.on_submit is None:
            attempt.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.NO_HANDLER)
            return None

        snapshot = dict(self._values)
        attempt.transition_to(SubmitState.SUBMITTING)
        self._in_flight += 1
        logger.info("submit_started", form_id=self.form_id, submission_id=attempt.submission_id)

        failed = False
        result: Any = None
        error: Any = None
        try:
            result = self.on_submit(snapshot)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            failed = True
            error = exc.error if isinstance(exc, SubmissionRejected) else exc
        finally:
            self._in_flight -= 1

        if failed:
            self._global_error = error
            attempt.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.FAILED)
            logger.info(
                "submit_failed",
                form_id=self.form_id,
                submission_id=attempt.submission_id,
                error=repr(error),
            )
            if self.on_error is not None:
                self.on_error(error)
            return None

        attempt.transition_to(SubmitState.IDLE, outcome=SubmitOutcome.SUCCEEDED)
        logger.info("submit_succeeded", form_id=self.form_id, submission_id=attempt.submission_id)
        if self.on_success is not None:
            self.on_success(result)
        return result

    # -- subscriptions ---------------------------------------------------

    def subscribe(self, name: str, listener: FieldListener) -> None:
        """Call ``listener(name, value, failure)`` whenever the field is published."""
        self.field(name)
        self._notifiers[name].on(listener)

    def unsubscribe(self, name: str, listener: FieldListener) -> None:
        self.field(name)
        self._notifiers[name].off(listener)

    def dispose(self) -> None:
        """Release every field subject and event listener.

        Any later mutation raises FormDisposedError. Calling dispose twice is a
        no-op.
        """
        if self._disposed:
            return
        for notifier in self._notifiers.values():
            notifier.dispose()
        self.emitter.clear()
        self._disposed = True
        logger.debug("form_disposed", form_id=self.form_id)

    # -- rendering -------------------------------------------------------

    def build_field(self, name: str) -> Any:
        """Render one field through the builder registered for its type.

        A field whose type has no builder renders as a MissingBuilder
        placeholder instead of being dropped.
        """
        field_config = self.field(name)
        builder = self.field_builders.get(field_config.type)
        if builder is None:
            logger.warning("missing_field_builder", form_id=self.form_id, field=name, field_type=field_config.type)
            return MissingBuilder(field_name=name, field_type=field_config.type)
        return builder(
            field_config,
            self._values[name],
            functools.partial(self.set_value, name),
            self._failures[name],
        )

    def build_fields(self) -> List[Any]:
        """Render all fields in display order."""
        return [self.build_field(f.name) for f in self.sorted_fields()]

    def build_submit_button(self) -> Any:
        return self.button_builder(self.submit, self.is_submitting, self.is_valid, self.values)

    def build_global_error(self) -> Any:
        """Render the last submission error, or None when there is none."""
        if self._global_error is None:
            return None
        return self.global_error_builder(self._global_error)

    # -- internals -------------------------------------------------------

    def _ensure_active(self) -> None:
        if self._disposed:
            raise FormDisposedError(f"Form '{self.form_id}' has been disposed")

    def _emit(
        self,
        event_type: FormEventType,
        field_name: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.emitter.emit(
            FormEvent(
                event_id=f"evt_{uuid.uuid4().hex[:16]}",
                type=event_type,
                form_id=self.form_id,
                ts=datetime.now(timezone.utc),
                field_name=field_name,
                payload=payload,
            )
        )


__all__ = [
    "FormEngine",
]
