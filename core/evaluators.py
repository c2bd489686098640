"""One evaluator per criterion variant, built (and validated) before the walk starts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Sequence, Union

from core.content_scan import ContentHit, extension_of, scan_file
from core.criteria import ContentPattern, Criterion, MetadataFilter, NamePattern
from core.entries import EntryInfo
from core.glob_pattern import GlobError, GlobPattern
from core.metadata_filter import PreparedFilter, prepare_filter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchDetail:
    matched_on: str
    line_number: int | None = None
    line_preview: str | None = None


class NameEvaluator:
    kind = "name_pattern"

    def __init__(self, criterion: NamePattern, case_sensitive: bool):
        self.criterion = criterion
        self.glob: GlobPattern | None
        try:
            self.glob = GlobPattern(criterion.pattern, case_sensitive=case_sensitive)
        except GlobError as exc:
            logger.warning("name_pattern %r is not a valid glob (%s); it matches nothing",
                           criterion.pattern, exc)
            self.glob = None

    def evaluate(self, entry: EntryInfo, relative_path: str) -> MatchDetail | None:
        if self.glob is None or not self.glob.match(entry.name, relative_path):
            return None
        return MatchDetail(matched_on=self.kind)


class ContentEvaluator:
    """Raises OSError when the file cannot be read; the caller records it as skipped."""

    kind = "content_pattern"

    def __init__(self, criterion: ContentPattern, max_scan_bytes: int):
        self.criterion = criterion
        self.max_scan_bytes = max_scan_bytes
        self.line_matches: Callable[[str], bool] | None = self._compile(criterion)

    @staticmethod
    def _compile(criterion: ContentPattern) -> Callable[[str], bool] | None:
        if criterion.is_regex:
            flags = 0 if criterion.case_sensitive else re.IGNORECASE
            try:
                regex = re.compile(criterion.pattern, flags)
            except re.error as exc:
                logger.warning("content_pattern regex %r does not compile (%s); it matches nothing",
                               criterion.pattern, exc)
                return None
            return lambda line: regex.search(line) is not None
        if criterion.case_sensitive:
            needle = criterion.pattern
            return lambda line: needle in line
        folded = criterion.pattern.casefold()
        return lambda line: folded in line.casefold()

    def evaluate(self, entry: EntryInfo, relative_path: str) -> MatchDetail | None:
        if self.line_matches is None or entry.type != "file":
            return None
        wanted = self.criterion.file_types_to_search
        if wanted and extension_of(entry.name) not in wanted:
            return None
        hit: ContentHit | None = scan_file(entry.path, self.line_matches, self.max_scan_bytes)
        if hit is None:
            return None
        return MatchDetail(
            matched_on=self.kind,
            line_number=hit.line_number,
            line_preview=hit.line_preview,
        )


class MetadataEvaluator:
    kind = "metadata_filter"

    def __init__(self, criterion: MetadataFilter):
        self.criterion = criterion
        self.prepared: PreparedFilter = prepare_filter(criterion)

    def evaluate(self, entry: EntryInfo, relative_path: str) -> MatchDetail | None:
        if not self.prepared.matches(entry):
            return None
        return MatchDetail(matched_on=self.kind)


Evaluator = Union[NameEvaluator, ContentEvaluator, MetadataEvaluator]


def build_evaluator(criterion: Criterion, case_sensitive: bool, max_scan_bytes: int) -> Evaluator:
    if isinstance(criterion, NamePattern):
        return NameEvaluator(criterion, case_sensitive)
    if isinstance(criterion, ContentPattern):
        return ContentEvaluator(criterion, max_scan_bytes)
    if isinstance(criterion, MetadataFilter):
        return MetadataEvaluator(criterion)
    raise TypeError(f"not a criterion: {criterion!r}")


def build_evaluators(
    criteria: Sequence[Criterion], case_sensitive: bool, max_scan_bytes: int
) -> list[Evaluator]:
    """Validate every criterion up front.  Raises GatewayError(InvalidCriterion)."""
    return [build_evaluator(c, case_sensitive, max_scan_bytes) for c in criteria]
