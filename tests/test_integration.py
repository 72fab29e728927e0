"""Integration tests for the complete form lifecycle.

Tests cover end-to-end scenarios combining:
- FormEngine orchestration
- Submission state machine transitions and outcomes
- Validation through built-in, inline and registered validators
- Event emission across a submit attempt
- Rendering through field, button and global error builders
- Forms loaded from declarative definitions

Async submissions are driven with ``asyncio.run``.
"""

import asyncio

import pytest

from formstate import FieldConfig, FormEngine, ValidatorConfig, ValidatorKind, ValidatorRegistry, load_fields
from formstate.errors import SubmissionRejected
from formstate.rendering import GlobalErrorNotice, MissingBuilder, SubmitButton
from formstate.types import FormEventType, SubmitOutcome, SubmitState, ValidationMode


def signup_fields():
    return [
        FieldConfig(name="username", type="text", label="Username", required=True),
        FieldConfig(
            name="email",
            type="email",
            label="Email",
            required=True,
            validators=[ValidatorConfig(kind=ValidatorKind.EMAIL, message="Invalid email")],
        ),
        FieldConfig(
            name="age",
            type="number",
            validators=[ValidatorConfig(kind=ValidatorKind.MIN, message="Must be 18 or older", params={"min": 18})],
        ),
    ]


def filled_form(**kwargs):
    kwargs.setdefault("validation_mode", ValidationMode.ON_SUBMIT)
    form = FormEngine(signup_fields(), **kwargs)
    form.set_values({"username": "jane", "email": "jane@example.com", "age": "30"})
    return form


class TestSubmitSuccess:
    """Test successful submissions."""

    def test_async_handler_result_returned(self):
        successes = []

        async def handler(values):
            return {"ok": True}

        form = filled_form(on_submit=handler, on_success=successes.append)
        result = asyncio.run(form.submit())

        assert result == {"ok": True}
        assert successes == [{"ok": True}]
        assert form.is_submitting is False
        assert form.global_error is None
        assert form.last_submission.outcome == SubmitOutcome.SUCCEEDED

    def test_sync_handler_supported(self):
        form = filled_form(on_submit=lambda values: values["username"].upper())
        assert asyncio.run(form.submit()) == "JANE"

    def test_handler_receives_snapshot(self):
        received = []

        def handler(values):
            received.append(values)
            values["username"] = "mutated"

        form = filled_form(on_submit=handler)
        asyncio.run(form.submit())
        assert received[0] == {"username": "jane", "email": "jane@example.com", "age": "30"}
        assert form.get_value("username") == "jane"

    def test_is_submitting_true_while_handler_runs(self):
        observed = []

        async def handler(values):
            observed.append(form.is_submitting)
            await asyncio.sleep(0)
            return True

        form = filled_form(on_submit=handler)
        asyncio.run(form.submit())
        assert observed == [True]
        assert form.is_submitting is False

    def test_success_clears_previous_global_error(self):
        outcomes = iter([SubmissionRejected("down"), None])

        def handler(values):
            error = next(outcomes)
            if error is not None:
                raise error
            return "ok"

        form = filled_form(on_submit=handler)
        asyncio.run(form.submit())
        assert form.global_error == "down"
        assert asyncio.run(form.submit()) == "ok"
        assert form.global_error is None


class TestSubmitFailure:
    """Test failing handlers."""

    def test_rejection_payload_becomes_global_error(self):
        errors = []

        async def handler(values):
            raise SubmissionRejected("boom")

        form = filled_form(on_submit=handler, on_error=errors.append)
        result = asyncio.run(form.submit())

        assert result is None
        assert form.global_error == "boom"
        assert errors == ["boom"]
        assert form.is_submitting is False
        assert form.last_submission.outcome == SubmitOutcome.FAILED

    def test_plain_exception_is_stored(self):
        failure = RuntimeError("network down")

        def handler(values):
            raise failure

        form = filled_form(on_submit=handler)
        assert asyncio.run(form.submit()) is None
        assert form.global_error is failure

    def test_failure_does_not_touch_field_state(self):
        def handler(values):
            raise SubmissionRejected({"code": 500})

        form = filled_form(on_submit=handler)
        asyncio.run(form.submit())
        assert form.is_valid is True
        assert form.values["username"] == "jane"


class TestSubmitWithoutHandlerCall:
    """Test attempts that never reach the handler."""

    def test_invalid_form_skips_handler(self):
        calls = []
        form = FormEngine(signup_fields(), on_submit=calls.append, validation_mode=ValidationMode.ON_SUBMIT)
        form.set_value("email", "not-an-email")

        assert asyncio.run(form.submit()) is None
        assert calls == []
        assert form.errors == {"username": "Username is required", "email": "Invalid email"}
        assert form.last_submission.outcome == SubmitOutcome.INVALID
        assert form.is_submitting is False

    def test_invalid_numeric_value(self):
        form = filled_form(on_submit=lambda values: True)
        form.set_value("age", "12")
        assert asyncio.run(form.submit()) is None
        assert form.errors == {"age": "Must be 18 or older"}

    def test_no_handler(self):
        form = filled_form()
        assert asyncio.run(form.submit()) is None
        assert form.is_valid is True
        assert form.last_submission.outcome == SubmitOutcome.NO_HANDLER


class TestSubmitConfigurationFault:
    """Test attempts aborted by a misconfigured validator."""

    def test_fault_closes_attempt_and_propagates(self):
        from formstate.errors import ConfigurationError

        calls = []
        events = []
        form = FormEngine(
            [
                FieldConfig(
                    name="code",
                    type="text",
                    initial_value="abc",
                    validators=[ValidatorConfig(kind=ValidatorKind.CUSTOM, message="", params={"name": "unregistered"})],
                )
            ],
            on_submit=calls.append,
            validation_mode=ValidationMode.ON_SUBMIT,
        )
        form.emitter.on(FormEventType.SUBMIT_FINISHED, events.append)

        with pytest.raises(ConfigurationError):
            asyncio.run(form.submit())

        assert calls == []
        assert form.last_submission.state == SubmitState.IDLE
        assert form.last_submission.outcome == SubmitOutcome.FAULTED
        assert form.last_submission.finished is True
        assert events[0].payload["outcome"] == "faulted"
        assert form.is_submitting is False


class TestConcurrentSubmits:
    """Test overlapping submit() calls."""

    def test_each_attempt_gets_own_state_machine(self):
        async def run():
            started = asyncio.Event()
            release = asyncio.Event()
            in_flight = []

            async def handler(values):
                in_flight.append(form.is_submitting)
                if len(in_flight) == 2:
                    started.set()
                await release.wait()
                return len(in_flight)

            form = filled_form(on_submit=handler)
            first = asyncio.ensure_future(form.submit())
            second = asyncio.ensure_future(form.submit())
            await started.wait()
            assert form.is_submitting is True
            release.set()
            results = await asyncio.gather(first, second)
            return form, results

        form, results = asyncio.run(run())
        assert results == [2, 2]
        assert form.is_submitting is False
        assert form.last_submission.state == SubmitState.IDLE


class TestSubmitEvents:
    """Test the event trail of one attempt."""

    def test_successful_attempt_events(self):
        form = filled_form(on_submit=lambda values: True)
        events = []
        form.emitter.on_any(events.append)
        asyncio.run(form.submit())

        types = [e.type for e in events]
        assert types[0] == FormEventType.SUBMIT_VALIDATING
        assert types.count(FormEventType.FIELD_VALIDATED) == 3
        assert FormEventType.FORM_VALIDATED in types
        assert types[-2:] == [FormEventType.SUBMIT_STARTED, FormEventType.SUBMIT_FINISHED]
        assert events[-1].payload["outcome"] == "succeeded"
        assert all(e.form_id == form.form_id for e in events)

    def test_attempt_history(self):
        form = filled_form(on_submit=lambda values: True)
        asyncio.run(form.submit())
        assert [e.type for e in form.last_submission.get_events()] == [
            FormEventType.SUBMIT_VALIDATING,
            FormEventType.SUBMIT_STARTED,
            FormEventType.SUBMIT_FINISHED,
        ]


class TestRendering:
    """Test builder contracts."""

    @staticmethod
    def text_builder(field, value, on_change, failure):
        return {
            "name": field.name,
            "value": value,
            "on_change": on_change,
            "error": failure.message if failure else None,
        }

    def test_field_builder_receives_state(self):
        form = FormEngine(
            [FieldConfig(name="username", type="text", initial_value="jane")],
            {"text": self.text_builder},
            validation_mode=ValidationMode.MANUAL,
        )
        rendered = form.build_field("username")
        assert rendered["value"] == "jane"
        assert rendered["error"] is None

    def test_on_change_callback_sets_value(self):
        form = FormEngine(
            [FieldConfig(name="email", type="text", validators=[ValidatorConfig(kind=ValidatorKind.EMAIL, message="Invalid email")])],
            {"text": self.text_builder},
            validation_mode=ValidationMode.ON_CHANGE,
        )
        form.build_field("email")["on_change"]("nope")
        assert form.get_value("email") == "nope"
        assert form.build_field("email")["error"] == "Invalid email"

    def test_missing_builder_placeholder(self):
        form = FormEngine(
            [FieldConfig(name="when", type="date")],
            {"text": self.text_builder},
            validation_mode=ValidationMode.MANUAL,
        )
        rendered = form.build_field("when")
        assert isinstance(rendered, MissingBuilder)
        assert rendered.message == "No builder provided for field type: date"

    def test_build_fields_in_display_order(self):
        form = FormEngine(
            [
                FieldConfig(name="c", type="text", order=2),
                FieldConfig(name="a", type="text", order=0),
                FieldConfig(name="b", type="text", order=1),
                FieldConfig(name="a2", type="text", order=0),
            ],
            {"text": self.text_builder},
            validation_mode=ValidationMode.MANUAL,
        )
        assert [r["name"] for r in form.build_fields()] == ["a", "a2", "b", "c"]
        assert [f.name for f in form.fields] == ["c", "a", "b", "a2"]

    def test_default_submit_button(self):
        form = filled_form(on_submit=lambda values: "done")
        button = form.build_submit_button()
        assert isinstance(button, SubmitButton)
        assert button.disabled is False
        assert button.is_valid is True
        assert button.values["username"] == "jane"
        assert asyncio.run(button.on_submit()) == "done"

    def test_custom_button_builder(self):
        form = filled_form(button_builder=lambda on_submit, submitting, valid, values: ("button", submitting, valid))
        assert form.build_submit_button() == ("button", False, True)

    def test_global_error_rendering(self):
        def handler(values):
            raise SubmissionRejected("Server unavailable")

        form = filled_form(on_submit=handler)
        assert form.build_global_error() is None
        asyncio.run(form.submit())
        notice = form.build_global_error()
        assert isinstance(notice, GlobalErrorNotice)
        assert notice.message == "Server unavailable"

    def test_custom_global_error_builder(self):
        def handler(values):
            raise SubmissionRejected("nope")

        form = filled_form(on_submit=handler, global_error_builder=lambda error: f"Error: {error}")
        asyncio.run(form.submit())
        assert form.build_global_error() == "Error: nope"


class TestDeclarativeForm:
    """Test a form built from plain data and a validator registry."""

    DEFINITION = {
        "fields": [
            {"name": "password", "type": "password", "required": True, "validators": [
                {"kind": "minLength", "message": "At least 8 characters", "params": {"length": 8}},
            ]},
            {"name": "confirm", "type": "password", "required": True, "validators": [
                {"kind": "match", "message": "Passwords must match", "params": {"fieldName": "password"}},
            ]},
            {"name": "coupon", "type": "text", "validators": [
                {"kind": "custom", "message": "", "params": {"name": "coupon"}},
            ]},
        ]
    }

    def _form(self, **kwargs):
        registry = ValidatorRegistry()
        registry.register("coupon", lambda value, rule, context: None if value == "SAVE10" else "Unknown coupon")
        return FormEngine(load_fields(self.DEFINITION), registry=registry, validation_mode=ValidationMode.ON_SUBMIT, **kwargs)

    def test_invalid_submission(self):
        form = self._form(on_submit=lambda values: True)
        form.set_values({"password": "short", "confirm": "other", "coupon": "FREE"})
        assert asyncio.run(form.submit()) is None
        assert form.errors == {
            "password": "At least 8 characters",
            "confirm": "Passwords must match",
            "coupon": "Unknown coupon",
        }

    def test_valid_submission(self):
        form = self._form(on_submit=lambda values: values)
        form.set_values({"password": "longenough", "confirm": "longenough"})
        assert asyncio.run(form.submit()) == {"password": "longenough", "confirm": "longenough", "coupon": None}

    def test_reset_after_submit(self):
        form = self._form(on_submit=lambda values: True)
        form.set_values({"password": "short", "confirm": "x"})
        asyncio.run(form.submit())
        form.reset()
        assert form.values == {"password": None, "confirm": None, "coupon": None}
        assert form.is_valid is True


class TestDisposedForm:
    """Test that a disposed form refuses work."""

    def test_submit_after_dispose(self):
        from formstate.errors import FormDisposedError

        form = filled_form(on_submit=lambda values: True)
        form.dispose()
        with pytest.raises(FormDisposedError):
            asyncio.run(form.submit())
