"""Find criteria: a closed union of three variants, parsed from request dicts.

Parsing only checks shape (required keys, value types).  Semantic checks
that need the attribute tables live in core.metadata_filter and run when the
evaluators are built, still before any filesystem access.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence, Union

from core.errors import ErrorCode, GatewayError


@dataclass(frozen=True)
class NamePattern:
    pattern: str


@dataclass(frozen=True)
class ContentPattern:
    pattern: str
    is_regex: bool = False
    case_sensitive: bool = False
    file_types_to_search: tuple[str, ...] | None = None


@dataclass(frozen=True)
class MetadataFilter:
    attribute: str
    operator: str
    value: Any
    case_sensitive: bool | None = None


Criterion = Union[NamePattern, ContentPattern, MetadataFilter]


def _invalid(message: str) -> GatewayError:
    return GatewayError(ErrorCode.INVALID_CRITERION, message)


def _require_str(raw: dict[str, Any], key: str, kind: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise _invalid(f"{kind} criterion requires a string '{key}'")
    return value


def _optional_bool(raw: dict[str, Any], key: str, default: bool | None) -> bool | None:
    value = raw.get(key, default)
    if value is not None and not isinstance(value, bool):
        raise _invalid(f"'{key}' must be a boolean")
    return value


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else "." + ext


def parse_criterion(raw: Any) -> Criterion:
    """dict from the wire → Criterion.  Raises GatewayError(InvalidCriterion)."""
    if isinstance(raw, (NamePattern, ContentPattern, MetadataFilter)):
        return raw
    if not isinstance(raw, dict):
        raise _invalid(f"criterion must be an object, got {type(raw).__name__}")

    kind = raw.get("type")
    if kind == "name_pattern":
        return NamePattern(pattern=_require_str(raw, "pattern", kind))

    if kind == "content_pattern":
        pattern = _require_str(raw, "pattern", kind)
        if not pattern:
            raise _invalid("content_pattern 'pattern' must not be empty")
        file_types = raw.get("file_types_to_search")
        if file_types is not None:
            if not isinstance(file_types, (list, tuple)) or not all(
                isinstance(t, str) and t.strip() for t in file_types
            ):
                raise _invalid("'file_types_to_search' must be a list of extensions")
            # an empty list places no restriction on extensions
            file_types = tuple(_normalize_extension(t) for t in file_types) or None
        return ContentPattern(
            pattern=pattern,
            is_regex=bool(_optional_bool(raw, "is_regex", False)),
            case_sensitive=bool(_optional_bool(raw, "case_sensitive", False)),
            file_types_to_search=file_types,
        )

    if kind == "metadata_filter":
        if "value" not in raw:
            raise _invalid("metadata_filter criterion requires a 'value'")
        return MetadataFilter(
            attribute=_require_str(raw, "attribute", kind),
            operator=_require_str(raw, "operator", kind),
            value=raw["value"],
            case_sensitive=_optional_bool(raw, "case_sensitive", None),
        )

    raise _invalid(f"unknown criterion type: {kind!r}")


def parse_criteria(raw: Sequence[Any] | None) -> list[Criterion]:
    if raw is None:
        return []
    if not isinstance(raw, (list, tuple)):
        raise _invalid("match_criteria must be a list")
    return [parse_criterion(item) for item in raw]
