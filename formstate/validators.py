"""Built-in validator functions.

Every function has the signature ``(value, validator, context) -> bool`` and is
pure: it reads the value, the ValidatorConfig params and the context snapshot of
all form values, and returns whether the value passes.

Empty-value policy: every validator except ``required`` accepts ``None`` and
values whose string form is empty. Enforcing presence is the job of the field's
``required`` flag, so an optional field left blank skips format checks.

Missing or wrongly typed params fail closed: the value is reported invalid
rather than the form crashing.

Comparison validators (match, equals, notEquals, oneOf) compare string forms,
so ``0`` and ``"0"`` are considered equal.

Format checks match the whole string, so a trailing newline is a failure.
Numbers must be plain ASCII decimal literals, and dates must carry a full
year-month-day.
"""

import re
from collections.abc import Mapping, Set
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

from dateutil.parser import isoparse

from formstate.fields import ValidatorConfig
from formstate.types import FormValues, ValidatorKind

ValidatorFunction = Callable[[Any, ValidatorConfig, FormValues], bool]

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
URL_RE = re.compile(
    r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"
)
PHONE_RE = re.compile(r"^[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}$")
NON_DIGIT_RE = re.compile(r"\D")
ALPHA_RE = re.compile(r"^[a-zA-Z]+$")
ALPHANUMERIC_RE = re.compile(r"^[a-zA-Z0-9]+$")
# ASCII decimal literals only: no "1_000", no non-ASCII digits, no "inf"
NUMBER_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)
INTEGER_RE = re.compile(r"[+-]?\d+", re.ASCII)
# Calendar date with year, month and day, optionally followed by a time part
FULL_DATE_RE = re.compile(r"\d{4}-?\d\d-?\d\d(?:[T ].*)?", re.ASCII | re.DOTALL)

MIN_PHONE_DIGITS = 10


def is_empty(value: Any) -> bool:
    """Emptiness used by the required check.

    None, blank strings, and empty lists, tuples, sets and mappings are empty.
    """
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, Set, Mapping)):
        return len(value) == 0
    return False


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _is_blank(value: Any) -> bool:
    return value is None or str(value) == ""


def _parse_number(value: Any) -> Optional[Union[int, float]]:
    text = str(value).strip()
    if NUMBER_RE.fullmatch(text) is None:
        return None
    if INTEGER_RE.fullmatch(text) is not None:
        return _parse_int(text)
    return float(text)


def _parse_int(value: Any) -> Optional[int]:
    text = str(value).strip()
    if INTEGER_RE.fullmatch(text) is None:
        return None
    try:
        return int(text)
    except ValueError:
        # beyond the interpreter's int string conversion limit
        return None


def _parse_date(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    # isoparse also takes reduced precision such as "2024" or "2024-03"
    if FULL_DATE_RE.fullmatch(text) is None:
        return None
    try:
        return isoparse(text)
    except (ValueError, OverflowError):
        return None


def _comparable(left: datetime, right: datetime):
    """Make two datetimes comparable; naive values are taken as local time."""
    if (left.tzinfo is None) != (right.tzinfo is None):
        return left.astimezone(timezone.utc), right.astimezone(timezone.utc)
    return left, right


def required(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    """Value is present: not None, not blank, not an empty collection."""
    return not is_empty(value)


def email(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return EMAIL_RE.fullmatch(str(value)) is not None


def url(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return URL_RE.fullmatch(str(value)) is not None


def phone(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    """At least ten digits, optional leading +, separators and parentheses."""
    if _is_blank(value):
        return True
    text = str(value)
    digits = NON_DIGIT_RE.sub("", text)
    return len(digits) >= MIN_PHONE_DIGITS and PHONE_RE.fullmatch(text) is not None


def min_length(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    length = validator.get_param("length", int)
    if length is None:
        return False
    return len(str(value)) >= length


def max_length(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    length = validator.get_param("length", int)
    if length is None:
        return False
    return len(str(value)) <= length


def min_value(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    minimum = validator.get_param("min", (int, float))
    if minimum is None:
        return False
    number = _parse_number(value)
    if number is None:
        return False
    return number >= minimum


def max_value(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    maximum = validator.get_param("max", (int, float))
    if maximum is None:
        return False
    number = _parse_number(value)
    if number is None:
        return False
    return number <= maximum


def pattern(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    """Value contains a match for ``pattern`` (a string or compiled regex)."""
    if _is_blank(value):
        return True
    raw = validator.params.get("pattern")
    if isinstance(raw, re.Pattern):
        regex = raw
    elif isinstance(raw, str):
        try:
            regex = re.compile(raw)
        except re.error:
            return False
    else:
        return False
    return regex.search(str(value)) is not None


def match(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    """Value equals the value of the field named by ``fieldName``."""
    if _is_blank(value):
        return True
    field_name = validator.get_param("fieldName", str)
    if field_name is None:
        return False
    return _text(value) == _text(context.get(field_name))


def equals(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    expected = validator.params.get("value")
    if expected is None:
        return False
    return _text(value) == _text(expected)


def not_equals(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    forbidden = validator.params.get("value")
    if forbidden is None:
        return False
    return _text(value) != _text(forbidden)


def one_of(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    allowed = validator.get_param("values", (list, tuple))
    if allowed is None:
        return False
    text = _text(value)
    return any(_text(candidate) == text for candidate in allowed)


def alpha(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return ALPHA_RE.fullmatch(str(value)) is not None


def alphanumeric(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return ALPHANUMERIC_RE.fullmatch(str(value)) is not None


def numeric(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return _parse_number(value) is not None


def integer(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    return _parse_int(value) is not None


def is_date(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    """Value is a date/datetime or an ISO-8601 date string."""
    if _is_blank(value):
        return True
    return _parse_date(value) is not None


def date_after(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    value_date = _parse_date(value)
    if value_date is None:
        return False
    raw = validator.params.get("date")
    bound = _parse_date(raw) if raw is not None else None
    if bound is None:
        return False
    left, right = _comparable(value_date, bound)
    return left > right


def date_before(value: Any, validator: ValidatorConfig, context: FormValues) -> bool:
    if _is_blank(value):
        return True
    value_date = _parse_date(value)
    if value_date is None:
        return False
    raw = validator.params.get("date")
    bound = _parse_date(raw) if raw is not None else None
    if bound is None:
        return False
    left, right = _comparable(value_date, bound)
    return left < right


# ValidatorKind.CUSTOM has no entry: it is resolved by the dispatcher.
BUILTIN_VALIDATORS: Dict[ValidatorKind, ValidatorFunction] = {
    ValidatorKind.REQUIRED: required,
    ValidatorKind.EMAIL: email,
    ValidatorKind.URL: url,
    ValidatorKind.PHONE: phone,
    ValidatorKind.MIN_LENGTH: min_length,
    ValidatorKind.MAX_LENGTH: max_length,
    ValidatorKind.MIN: min_value,
    ValidatorKind.MAX: max_value,
    ValidatorKind.PATTERN: pattern,
    ValidatorKind.MATCH: match,
    ValidatorKind.EQUALS: equals,
    ValidatorKind.NOT_EQUALS: not_equals,
    ValidatorKind.ONE_OF: one_of,
    ValidatorKind.ALPHA: alpha,
    ValidatorKind.ALPHANUMERIC: alphanumeric,
    ValidatorKind.NUMERIC: numeric,
    ValidatorKind.INTEGER: integer,
    ValidatorKind.DATE: is_date,
    ValidatorKind.DATE_AFTER: date_after,
    ValidatorKind.DATE_BEFORE: date_before,
}


__all__ = [
    "BUILTIN_VALIDATORS",
    "ValidatorFunction",
    "is_empty",
]
