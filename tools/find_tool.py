"""find tool — request dict in, result or error dict out."""

from __future__ import annotations

import logging
from typing import Any

from core.config import GatewayConfig
from core.criteria import parse_criteria
from core.errors import ErrorCode, GatewayError, error_result
from core.path_policy import PathResolver
from core.search import SearchCoordinator
from core.traversal import SearchOptions

logger = logging.getLogger(__name__)


def _optional_int(params: dict[str, Any], key: str) -> int | None:
    value = params.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise GatewayError(ErrorCode.INVALID_PARAMETER, f"'{key}' must be an integer")
    return value


def parse_options(params: dict[str, Any]) -> SearchOptions:
    recursive = params.get("recursive", False)
    if not isinstance(recursive, bool):
        raise GatewayError(ErrorCode.INVALID_PARAMETER, "'recursive' must be a boolean")
    entry_type = params.get("entry_type_filter", "any")
    if not isinstance(entry_type, str):
        raise GatewayError(ErrorCode.INVALID_PARAMETER, "'entry_type_filter' must be a string")
    return SearchOptions(
        recursive=recursive,
        max_depth=_optional_int(params, "max_depth"),
        entry_type_filter=entry_type,
        max_results=_optional_int(params, "max_results"),
        timeout_ms=_optional_int(params, "timeout_ms"),
    )


class FindTool:
    def __init__(self, config: GatewayConfig, resolver: PathResolver | None = None):
        self.config = config
        self.resolver = resolver or PathResolver.from_config(config)
        self.coordinator = SearchCoordinator(self.resolver, config)

    # ── public ────────────────────────────────────────────────────

    def run(self, params: dict[str, Any]) -> dict[str, Any]:
        """Execute a find request.  Never raises; failures become error dicts."""
        logger.info("find tool called for %r", params.get("base_path"))
        try:
            base_path = params.get("base_path")
            if not isinstance(base_path, str):
                raise GatewayError(ErrorCode.INVALID_PARAMETER, "'base_path' must be a string")
            criteria = parse_criteria(params.get("match_criteria"))
            result = self.coordinator.search(base_path, criteria, parse_options(params))
        except GatewayError as exc:
            return exc.to_result()
        except Exception as exc:
            logger.exception("unexpected error in find tool")
            return error_result(ErrorCode.INTERNAL_ERROR, f"Internal server error: {exc}")

        response: dict[str, Any] = {
            "tool_name": "find",
            "results": [hit.to_dict() for hit in result.hits],
            "truncated": result.truncated,
        }
        if result.notes:
            response["notes"] = list(result.notes)
        return response
