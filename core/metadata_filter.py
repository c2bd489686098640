"""metadata_filter criteria: attribute tables, up-front validation, per-entry checks."""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

from core.criteria import MetadataFilter
from core.entries import EntryInfo, parse_iso_utc
from core.errors import ErrorCode, GatewayError

NUMERIC_ATTRIBUTES = frozenset({"size_bytes"})
TIMESTAMP_ATTRIBUTES = frozenset({"created_at", "modified_at"})
STRING_ATTRIBUTES = frozenset({"name", "entry_type", "mime_type"})

# Older clients send the *_iso spellings
ATTRIBUTE_ALIASES = {"created_at_iso": "created_at", "modified_at_iso": "modified_at"}

NUMERIC_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "eq": operator.eq,
    "neq": operator.ne,
    "gt": operator.gt,
    "gte": operator.ge,
    "lt": operator.lt,
    "lte": operator.le,
}
TIMESTAMP_OPERATORS = frozenset({"before", "after", "on_date", "eq"})
STRING_OPERATORS = frozenset(
    {"equals", "not_equals", "contains", "starts_with", "ends_with", "matches_regex"}
)


@dataclass(frozen=True)
class PreparedFilter:
    attribute: str
    predicate: Callable[[Any], bool]

    def matches(self, entry: EntryInfo) -> bool:
        value = _entry_value(entry, self.attribute)
        if value is None:
            return False
        return self.predicate(value)


def _invalid(message: str) -> GatewayError:
    return GatewayError(ErrorCode.INVALID_CRITERION, message)


def _entry_value(entry: EntryInfo, attribute: str) -> Any:
    if attribute == "entry_type":
        return entry.type
    return getattr(entry, attribute)


def _numeric_predicate(op: str, value: Any) -> Callable[[Any], bool]:
    if op not in NUMERIC_OPERATORS:
        raise _invalid(f"operator {op!r} is not valid for numeric attribute size_bytes")
    if isinstance(value, bool):
        raise _invalid("size_bytes filters need a numeric value")
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise _invalid(f"size_bytes filter value {value!r} is not a number") from None
    if not isinstance(value, (int, float)):
        raise _invalid("size_bytes filters need a numeric value")
    compare = NUMERIC_OPERATORS[op]
    return lambda actual: compare(actual, value)


def _parse_date_value(value: Any, attribute: str) -> datetime:
    if not isinstance(value, str):
        raise _invalid(f"{attribute} filters need an ISO-8601 string value")
    try:
        return parse_iso_utc(value)
    except ValueError:
        raise _invalid(f"{attribute} filter value {value!r} is not an ISO-8601 date") from None


def _timestamp_predicate(attribute: str, op: str, value: Any) -> Callable[[Any], bool]:
    if op not in TIMESTAMP_OPERATORS:
        raise _invalid(f"operator {op!r} is not valid for timestamp attribute {attribute}")
    target = _parse_date_value(value, attribute)
    if op == "on_date":
        day: date = target.date()
        return lambda actual: parse_iso_utc(actual).date() == day
    if op == "before":
        return lambda actual: parse_iso_utc(actual) < target
    if op == "after":
        return lambda actual: parse_iso_utc(actual) > target
    return lambda actual: parse_iso_utc(actual) == target


def _string_predicate(
    attribute: str, op: str, value: Any, case_sensitive: bool
) -> Callable[[Any], bool]:
    if op not in STRING_OPERATORS:
        raise _invalid(f"operator {op!r} is not valid for string attribute {attribute}")
    if not isinstance(value, str):
        raise _invalid(f"{attribute} filters need a string value")

    if op == "matches_regex":
        try:
            regex = re.compile(value, 0 if case_sensitive else re.IGNORECASE)
        except re.error as exc:
            raise _invalid(f"invalid regex {value!r} for {attribute}: {exc}") from None
        return lambda actual: regex.search(actual) is not None

    needle = value if case_sensitive else value.casefold()

    def fold(actual: str) -> str:
        return actual if case_sensitive else actual.casefold()

    if op == "equals":
        return lambda actual: fold(actual) == needle
    if op == "not_equals":
        return lambda actual: fold(actual) != needle
    if op == "contains":
        return lambda actual: needle in fold(actual)
    if op == "starts_with":
        return lambda actual: fold(actual).startswith(needle)
    return lambda actual: fold(actual).endswith(needle)


def prepare_filter(criterion: MetadataFilter) -> PreparedFilter:
    """Validate *criterion* against the attribute tables.  Raises GatewayError(InvalidCriterion)."""
    attribute = ATTRIBUTE_ALIASES.get(criterion.attribute, criterion.attribute)
    op = criterion.operator
    if attribute in NUMERIC_ATTRIBUTES:
        predicate = _numeric_predicate(op, criterion.value)
    elif attribute in TIMESTAMP_ATTRIBUTES:
        predicate = _timestamp_predicate(attribute, op, criterion.value)
    elif attribute in STRING_ATTRIBUTES:
        predicate = _string_predicate(
            attribute, op, criterion.value, bool(criterion.case_sensitive)
        )
    else:
        raise _invalid(f"unknown metadata attribute: {criterion.attribute!r}")
    return PreparedFilter(attribute=attribute, predicate=predicate)
