"""Field and validator configuration for formstate.

A form is described by a list of FieldConfig objects, each carrying an ordered
tuple of ValidatorConfig rules. Both are immutable value objects: the engine
never mutates them, and ``copy_with`` returns a modified copy.

Example:
    >>> from formstate.fields import FieldConfig, ValidatorConfig
    >>> from formstate.types import ValidatorKind
    >>> password = FieldConfig(
    ...     name="password",
    ...     type="password",
    ...     label="Password",
    ...     required=True,
    ...     validators=[
    ...         ValidatorConfig(
    ...             kind=ValidatorKind.MIN_LENGTH,
    ...             message="Must be at least 8 characters",
    ...             params={"length": 8},
    ...         ),
    ...     ],
    ... )
    >>> password.validators[0].get_param("length", int)
    8
"""

from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

from formstate.types import InlinePredicate, RequiredMessageBuilder, ValidatorKind


@dataclass(frozen=True)
class ValidatorConfig:
    """A single validation rule.

    Attributes:
        kind: Built-in rule to apply when no inline predicate is given
        message: Message shown when the rule fails
        params: Rule parameters (e.g. ``{"length": 8}`` for minLength)
        predicate: Optional inline ``(value, context) -> bool``; when present it
            replaces kind-based dispatch entirely

    Equality ignores ``predicate``, so two rules with the same kind, message and
    params compare equal.
    """
    kind: ValidatorKind
    message: str
    params: Dict[str, Any] = field(default_factory=dict)
    predicate: Optional[InlinePredicate] = field(default=None, compare=False)

    def __post_init__(self):
        if isinstance(self.kind, str) and not isinstance(self.kind, ValidatorKind):
            object.__setattr__(self, "kind", ValidatorKind(self.kind))
        if self.params is None:
            object.__setattr__(self, "params", {})

    def get_param(self, key: str, expected_type: Any = None) -> Any:
        """Return a parameter, or None when it is absent or of the wrong type.

        ``bool`` is never accepted where a number is expected.
        """
        value = self.params.get(key)
        if value is None or expected_type is None:
            return value
        if isinstance(value, bool) and expected_type is not bool:
            return None
        return value if isinstance(value, expected_type) else None

    def copy_with(self, **changes: Any) -> "ValidatorConfig":
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization (the predicate is not serializable)."""
        result: Dict[str, Any] = {
            "kind": self.kind.value,
            "message": self.message,
        }
        if self.params:
            result["params"] = dict(self.params)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ValidatorConfig":
        """Create ValidatorConfig from dict."""
        return cls(
            kind=ValidatorKind(data["kind"]),
            message=data.get("message", ""),
            params=dict(data.get("params") or {}),
        )


@dataclass(frozen=True)
class FieldConfig:
    """Immutable description of one form field.

    Attributes:
        name: Unique key of the field within a form
        type: Render-type tag selecting the field builder; any string is allowed
        initial_value: Value used at initialization and on reset
        label: Optional display label, also used in the default required message
        placeholder: Optional placeholder text for the renderer
        required: Whether an empty value is a failure
        enabled: Advisory flag for the renderer; the engine does not block edits
        validators: Ordered rules; the first failing rule is the field's failure
        metadata: Opaque data passed through to the renderer (e.g. select options)
        order: Display sort key; has no effect on validation order
        build_required_error_message: Optional ``(field, value) -> str`` override
            for the required message
    """
    name: str
    type: str
    initial_value: Any = None
    label: Optional[str] = None
    placeholder: Optional[str] = None
    required: bool = False
    enabled: bool = True
    validators: Tuple[ValidatorConfig, ...] = ()
    metadata: Dict[str, Any] = field(default_factory=dict)
    order: int = 0
    build_required_error_message: Optional[RequiredMessageBuilder] = field(default=None, compare=False)

    def __post_init__(self):
        # Accept any iterable of rules but store an immutable tuple
        object.__setattr__(self, "validators", tuple(self.validators or ()))
        if self.metadata is None:
            object.__setattr__(self, "metadata", {})

    def get_metadata(self, key: str, default: Any = None) -> Any:
        """Return a metadata entry, or ``default`` when it is absent."""
        return self.metadata.get(key, default)

    def required_message(self, value: Any) -> str:
        """Message for the synthesized required failure."""
        if self.build_required_error_message is not None:
            return self.build_required_error_message(self, value)
        display = self.label if self.label is not None else self.name
        return f"{display} is required"

    def copy_with(self, **changes: Any) -> "FieldConfig":
        """Return a copy with the given attributes replaced."""
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization.

        Inline predicates and the required-message hook are dropped.
        """
        result: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
            "enabled": self.enabled,
            "order": self.order,
        }
        if self.initial_value is not None:
            result["initialValue"] = self.initial_value
        if self.label is not None:
            result["label"] = self.label
        if self.placeholder is not None:
            result["placeholder"] = self.placeholder
        if self.validators:
            result["validators"] = [v.to_dict() for v in self.validators]
        if self.metadata:
            result["metadata"] = dict(self.metadata)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FieldConfig":
        """Create FieldConfig from dict (camelCase keys)."""
        return cls(
            name=data["name"],
            type=data["type"],
            initial_value=data.get("initialValue"),
            label=data.get("label"),
            placeholder=data.get("placeholder"),
            required=data.get("required", False),
            enabled=data.get("enabled", True),
            validators=tuple(ValidatorConfig.from_dict(v) for v in data.get("validators") or ()),
            metadata=dict(data.get("metadata") or {}),
            order=data.get("order", 0),
        )


__all__ = [
    "ValidatorConfig",
    "FieldConfig",
]
