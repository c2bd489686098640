"""Iterative, bounded directory walk.

The walk keeps an explicit stack of ``(path, canonical_path, depth)`` and
never recurses, so pathological trees cannot exhaust the interpreter stack.
Depth 0 is the root; its children are depth 1.  Per-entry failures are
folded into the WalkReport instead of aborting the walk.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator

from core.entries import EntryInfo, build_entry_info
from core.errors import ErrorCode, GatewayError
from core.path_policy import PathResolver, ResolvedPath, canonicalize

logger = logging.getLogger(__name__)

ENTRY_TYPE_FILTERS = ("file", "directory", "symlink", "any")


@dataclass(frozen=True)
class SearchOptions:
    recursive: bool = False
    max_depth: int | None = None
    entry_type_filter: str = "any"
    max_results: int | None = None
    timeout_ms: int | None = None


@dataclass(frozen=True)
class SkippedEntry:
    path: str
    reason: str


@dataclass
class WalkReport:
    timed_out: bool = False
    depth_limit_reached: bool = False
    notes: list[str] = field(default_factory=list)
    skipped: list[SkippedEntry] = field(default_factory=list)

    def note(self, message: str) -> None:
        if message not in self.notes:
            self.notes.append(message)

    def skip(self, path: str, reason: str) -> None:
        logger.debug("skipping %s: %s", path, reason)
        self.skipped.append(SkippedEntry(path=path, reason=reason))


class TraversalEngine:
    def __init__(self, resolver: PathResolver, clock: Callable[[], float] = time.monotonic):
        self.resolver = resolver
        self.clock = clock

    def walk(
        self,
        root: ResolvedPath,
        max_depth: int,
        timeout_ms: int,
        report: WalkReport,
        recursive: bool = True,
    ) -> Iterator[EntryInfo]:
        """Yield EntryInfo for everything under *root*, parents before children.

        Non-recursive walks are depth-1 walks.  Listing the root itself is the
        only failure that raises (GatewayError); anything below it is skipped.
        """
        limit = max(1, max_depth) if recursive else 1
        deadline = self.clock() + timeout_ms / 1000.0
        visited = {root.resolved}
        stack: list[tuple[str, str, int]] = [(root.resolved, root.resolved, 0)]

        while stack:
            path, canonical, depth = stack.pop()
            if self.clock() >= deadline:
                report.timed_out = True
                report.note(f"Search timed out after {timeout_ms} ms; results are partial.")
                logger.info("walk of %s timed out at %s", root.resolved, path)
                return

            if depth > 0 and not self._still_resolves_to(path, canonical, report):
                continue

            try:
                names = sorted(os.listdir(path))
            except OSError as exc:
                if depth == 0:
                    raise GatewayError(
                        ErrorCode.OPERATION_FAILED,
                        f"Failed to list directory: {root.original}. {exc.strerror or exc}",
                    ) from exc
                report.skip(path, f"cannot list directory: {exc.strerror or exc}")
                continue

            child_depth = depth + 1
            descend: list[tuple[str, str, int]] = []
            for name in names:
                child = os.path.join(path, name)
                try:
                    entry = build_entry_info(child, name, child_depth)
                except OSError as exc:
                    report.skip(child, f"cannot stat: {exc.strerror or exc}")
                    continue
                yield entry

                target = self._descent_target(entry, canonical, report)
                if target is None:
                    continue
                if child_depth >= limit:
                    if recursive:
                        report.depth_limit_reached = True
                        report.note(
                            f"Depth limit {limit} reached; deeper entries were not searched."
                        )
                    continue
                if target in visited:
                    report.note(f"Directory cycle at {child}; not re-entered.")
                    continue
                visited.add(target)
                descend.append((child, target, child_depth))

            # reversed so the first sibling is popped (and walked) first
            stack.extend(reversed(descend))

    @staticmethod
    def _still_resolves_to(path: str, canonical: str, report: WalkReport) -> bool:
        """False when *path* was swapped (e.g. for a symlink) after it was queued."""
        try:
            current = canonicalize(path)
        except OSError as exc:
            report.skip(path, f"cannot resolve directory: {exc.strerror or exc}")
            return False
        if current != canonical:
            logger.warning("not listing %s: it now resolves to a different location", path)
            report.skip(path, "directory changed during the walk; not listed")
            return False
        return True

    def _descent_target(
        self, entry: EntryInfo, parent_canonical: str, report: WalkReport
    ) -> str | None:
        """Canonical directory to descend into for *entry*, or None."""
        if entry.type == "directory":
            return os.path.join(parent_canonical, entry.name)
        if entry.type != "symlink":
            return None
        try:
            target = canonicalize(entry.path)
        except OSError as exc:
            report.skip(entry.path, f"cannot resolve symlink: {exc.strerror or exc}")
            return None
        if not os.path.isdir(target):
            return None
        if not self.resolver.allowed.contains(target):
            logger.warning("not following %s: target is outside the allowed paths", entry.path)
            report.note(f"Symlink {entry.path} points outside the allowed paths; not followed.")
            return None
        return target
