"""Validator dispatch for formstate.

The ValidatorDispatcher routes a ValidatorConfig to the code that evaluates it:

1. an inline ``predicate`` on the config, when present (``kind`` is ignored);
2. for ``custom`` rules, a named validator in a ValidatorRegistry, looked up by
   the rule's ``name`` param;
3. otherwise the built-in function for the rule's ``kind``.

A ``custom`` rule that resolves to nothing is a ConfigurationError, never a
silent pass or fail.

Usage:
    >>> from formstate.dispatcher import ValidatorDispatcher, ValidatorRegistry
    >>> from formstate.fields import ValidatorConfig
    >>> registry = ValidatorRegistry()
    >>> registry.register("even", lambda v, rule, ctx: None if int(v) % 2 == 0 else "Must be even")
    >>> dispatcher = ValidatorDispatcher(registry)
    >>> rule = ValidatorConfig(kind="custom", message="", params={"name": "even"})
    >>> dispatcher.evaluate("3", rule, {}).message
    'Must be even'
"""

from typing import Any, Callable, Dict, List, Optional

from formstate.errors import ConfigurationError
from formstate.fields import ValidatorConfig
from formstate.logging import get_logger
from formstate.types import FormValues, ValidatorKind
from formstate.validators import BUILTIN_VALIDATORS

logger = get_logger(__name__)

NamedValidator = Callable[[Any, ValidatorConfig, FormValues], Optional[str]]
"""Registered validator: (value, rule, context) -> error message, or None if valid."""


class ValidatorRegistry:
    """Named custom validators, an alternative to inline predicates.

    A registry is an ordinary object owned by the host application and handed
    to the engines that should see it; there is no process-wide instance.

    Examples:
        >>> registry = ValidatorRegistry()
        >>> registry.register("no_spaces", lambda v, rule, ctx: "No spaces" if " " in str(v) else None)
        >>> registry.has("no_spaces")
        True
        >>> registry.names()
        ['no_spaces']
        >>> registry.unregister("no_spaces")
        True
    """

    def __init__(self):
        self._validators: Dict[str, NamedValidator] = {}

    def register(self, name: str, validator: NamedValidator) -> None:
        """Register a validator under ``name``, replacing any previous one.

        Raises:
            ValueError: If name is empty or validator is not callable
        """
        if not name:
            raise ValueError("Validator name must be a non-empty string")
        if not callable(validator):
            raise ValueError(f"Validator '{name}' must be callable")
        if name in self._validators:
            logger.warning("validator_replaced", name=name)
        self._validators[name] = validator

    def unregister(self, name: str) -> bool:
        """Remove a validator. Returns False when the name was not registered."""
        return self._validators.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._validators

    def get(self, name: str) -> Optional[NamedValidator]:
        return self._validators.get(name)

    def names(self) -> List[str]:
        """Registered names, sorted."""
        return sorted(self._validators)

    def clear(self) -> None:
        self._validators.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._validators

    def __len__(self) -> int:
        return len(self._validators)


class ValidatorDispatcher:
    """Evaluates one ValidatorConfig against a value and a context snapshot.

    Attributes:
        registry: Registry consulted for ``custom`` rules with a ``name`` param
    """

    def __init__(self, registry: Optional[ValidatorRegistry] = None):
        self.registry = registry if registry is not None else ValidatorRegistry()

    def evaluate(self, value: Any, validator: ValidatorConfig, context: FormValues) -> Optional[ValidatorConfig]:
        """Evaluate a rule.

        Args:
            value: The field value to check
            validator: The rule to apply
            context: Snapshot of all form values, for cross-field rules

        Returns:
            None when the value passes, otherwise the failing ValidatorConfig

        Raises:
            ConfigurationError: For a ``custom`` rule with no inline predicate
                and no registered validator
        """
        if validator.predicate is not None:
            return None if validator.predicate(value, context) else validator

        if validator.kind == ValidatorKind.CUSTOM:
            return self._evaluate_named(value, validator, context)

        check = BUILTIN_VALIDATORS.get(validator.kind)
        if check is None:
            raise ConfigurationError(f"No built-in validator for kind '{validator.kind.value}'")
        return None if check(value, validator, context) else validator

    def _evaluate_named(self, value: Any, validator: ValidatorConfig, context: FormValues) -> Optional[ValidatorConfig]:
        name = validator.params.get("name")
        named = self.registry.get(name) if isinstance(name, str) else None
        if named is None:
            if name is not None:
                hint = f"no validator named '{name}' is registered"
            else:
                hint = "it has no predicate and no 'name' param"
            raise ConfigurationError(
                f"Custom validator cannot be evaluated: {hint}. "
                "Pass predicate=lambda value, context: ... to ValidatorConfig, "
                "or register a named validator and set params={'name': ...}."
            )

        message = named(value, validator, context)
        if message is None:
            return None
        if not validator.message and message:
            return validator.copy_with(message=message)
        return validator


__all__ = [
    "NamedValidator",
    "ValidatorRegistry",
    "ValidatorDispatcher",
]
