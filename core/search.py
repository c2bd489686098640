"""Find engine: authorize the root, validate criteria, walk once, AND every criterion."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from core.config import GatewayConfig
from core.criteria import Criterion
from core.entries import EntryInfo
from core.errors import ErrorCode, GatewayError
from core.evaluators import ContentEvaluator, Evaluator, MatchDetail, build_evaluators
from core.path_policy import PathResolver
from core.traversal import (
    ENTRY_TYPE_FILTERS,
    SearchOptions,
    SkippedEntry,
    TraversalEngine,
    WalkReport,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    entry: EntryInfo
    content_match: MatchDetail | None = None

    def to_dict(self) -> dict[str, Any]:
        data = self.entry.to_dict()
        if self.content_match is not None:
            data["matched_on"] = self.content_match.matched_on
            data["line_number"] = self.content_match.line_number
            data["line_preview"] = self.content_match.line_preview
        return data


@dataclass
class SearchResult:
    hits: list[SearchHit] = field(default_factory=list)
    truncated: bool = False
    timed_out: bool = False
    depth_limit_reached: bool = False
    notes: list[str] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)

    @property
    def entries(self) -> list[EntryInfo]:
        return [hit.entry for hit in self.hits]


class SearchCoordinator:
    def __init__(
        self,
        resolver: PathResolver,
        config: GatewayConfig,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.resolver = resolver
        self.config = config
        self.engine = TraversalEngine(resolver, clock=clock)

    def _effective_limits(self, options: SearchOptions) -> tuple[int, int, int]:
        limits = self.config.limits
        if options.entry_type_filter not in ENTRY_TYPE_FILTERS:
            raise GatewayError(
                ErrorCode.INVALID_PARAMETER,
                f"entry_type_filter must be one of {', '.join(ENTRY_TYPE_FILTERS)}",
            )
        max_depth = limits.max_recursive_depth
        if options.max_depth is not None:
            if options.max_depth < 1:
                raise GatewayError(ErrorCode.INVALID_PARAMETER, "max_depth must be at least 1")
            max_depth = min(options.max_depth, limits.max_recursive_depth)
        max_results = limits.max_results_default
        if options.max_results is not None:
            if options.max_results < 1:
                raise GatewayError(ErrorCode.INVALID_PARAMETER, "max_results must be at least 1")
            max_results = options.max_results
        timeout_ms = limits.recursive_timeout_ms
        if options.timeout_ms is not None:
            timeout_ms = min(options.timeout_ms, limits.recursive_timeout_ms)
        return max_depth, max_results, timeout_ms

    def search(
        self,
        raw_root: str,
        criteria: Sequence[Criterion],
        options: SearchOptions,
    ) -> SearchResult:
        """Run one find request.  Raises GatewayError for a bad root, criteria or options."""
        root = self.resolver.resolve_directory(raw_root)
        max_depth, max_results, timeout_ms = self._effective_limits(options)
        evaluators = build_evaluators(
            criteria,
            case_sensitive=self.config.default_case_sensitive,
            max_scan_bytes=self.config.limits.max_content_scan_bytes_per_file,
        )
        logger.info(
            "find in %s: %d criteria, recursive=%s, type=%s",
            root.resolved, len(evaluators), options.recursive, options.entry_type_filter,
        )

        report = WalkReport()
        result = SearchResult()
        walk = self.engine.walk(
            root, max_depth, timeout_ms, report, recursive=options.recursive
        )
        for entry in walk:
            if options.entry_type_filter != "any" and entry.type != options.entry_type_filter:
                continue
            hit = self._match(entry, root.resolved, evaluators, report)
            if hit is None:
                continue
            # the cap is only a truncation when a further match exists
            if len(result.hits) >= max_results:
                result.truncated = True
                report.note(f"Result limit of {max_results} reached; results are partial.")
                break
            result.hits.append(hit)
        walk.close()

        result.timed_out = report.timed_out
        result.truncated = result.truncated or report.timed_out
        result.depth_limit_reached = report.depth_limit_reached
        result.notes = report.notes
        result.skipped = report.skipped
        logger.info(
            "find in %s: %d result(s), truncated=%s, %d skipped",
            root.resolved, len(result.hits), result.truncated, len(result.skipped),
        )
        return result

    @staticmethod
    def _match(
        entry: EntryInfo, root: str, evaluators: Sequence[Evaluator], report: WalkReport
    ) -> SearchHit | None:
        """AND every evaluator against *entry*, stopping at the first miss."""
        relative = os.path.relpath(entry.path, root).replace(os.sep, "/")
        content_match: MatchDetail | None = None
        for evaluator in evaluators:
            try:
                detail = evaluator.evaluate(entry, relative)
            except OSError as exc:
                report.skip(entry.path, f"cannot read content: {exc.strerror or exc}")
                return None
            if detail is None:
                return None
            if isinstance(evaluator, ContentEvaluator) and content_match is None:
                content_match = detail
        return SearchHit(entry=entry, content_match=content_match)
