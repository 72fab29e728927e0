"""Declarative form definitions.

Forms can be described as plain data (e.g. loaded from JSON or YAML) instead
of constructing FieldConfig objects by hand. A definition is checked against
FORM_DEFINITION_SCHEMA with jsonschema before any dataclass is built, and every
violation is reported at once with its path.

Callables (inline predicates, required-message hooks) cannot be expressed as
data; ``custom`` rules in a definition refer to a registered validator through
their ``name`` param instead.

Usage:
    >>> from formstate.schema import load_fields
    >>> fields = load_fields({
    ...     "fields": [
    ...         {"name": "email", "type": "email", "required": True,
    ...          "validators": [{"kind": "email", "message": "Invalid email"}]},
    ...     ]
    ... })
    >>> fields[0].validators[0].kind
    <ValidatorKind.EMAIL: 'email'>
"""

from typing import Any, Dict, List

import jsonschema
from jsonschema import Draft7Validator

from formstate.errors import ConfigurationError
from formstate.fields import FieldConfig
from formstate.types import ValidatorKind

# "required" is expressed by the field's flag, never as a validator entry
DECLARABLE_KINDS = [kind.value for kind in ValidatorKind if kind != ValidatorKind.REQUIRED]

VALIDATOR_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "kind": {"type": "string", "enum": DECLARABLE_KINDS},
        "message": {"type": "string"},
        "params": {"type": "object"},
    },
    "required": ["kind", "message"],
    "additionalProperties": False,
}

FIELD_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "type": {"type": "string", "minLength": 1},
        "label": {"type": ["string", "null"]},
        "placeholder": {"type": ["string", "null"]},
        "required": {"type": "boolean"},
        "enabled": {"type": "boolean"},
        "initialValue": {},
        "order": {"type": "integer"},
        "metadata": {"type": "object"},
        "validators": {"type": "array", "items": VALIDATOR_SCHEMA},
    },
    "required": ["name", "type"],
    "additionalProperties": False,
}

FORM_DEFINITION_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "fields": {"type": "array", "items": FIELD_SCHEMA},
    },
    "required": ["fields"],
}

_definition_validator = Draft7Validator(FORM_DEFINITION_SCHEMA)


def _describe(error: jsonschema.ValidationError) -> str:
    path = ".".join(str(p) for p in error.absolute_path) or "<root>"
    return f"{path}: {error.message}"


def check_definition(definition: Dict[str, Any]) -> List[str]:
    """Return one message per schema violation (empty when the definition is valid)."""
    errors = sorted(_definition_validator.iter_errors(definition), key=lambda e: list(map(str, e.absolute_path)))
    return [_describe(error) for error in errors]


def load_fields(definition: Dict[str, Any]) -> List[FieldConfig]:
    """Build FieldConfig objects from a declarative form definition.

    Args:
        definition: ``{"fields": [...]}`` using camelCase keys

    Returns:
        Field configurations in declaration order

    Raises:
        ConfigurationError: If the definition violates FORM_DEFINITION_SCHEMA
            or declares the same field name twice
    """
    problems = check_definition(definition)
    if problems:
        raise ConfigurationError("Invalid form definition: " + "; ".join(problems))

    fields = [FieldConfig.from_dict(item) for item in definition["fields"]]
    seen = set()
    for field_config in fields:
        if field_config.name in seen:
            raise ConfigurationError("Duplicate field name in form definition", field_name=field_config.name)
        seen.add(field_config.name)
    return fields


__all__ = [
    "FORM_DEFINITION_SCHEMA",
    "check_definition",
    "load_fields",
]
