"""File-system tool — reads, writes and lists entries, constrained to the allowed paths.

Every function authorizes its path through the path gate first and then
touches only the resolved path.  Failures raise GatewayError.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

from core.config import GatewayConfig, default_config
from core.entries import EntryInfo
from core.errors import ErrorCode, GatewayError
from core.path_policy import PathResolver, default_resolver
from core.traversal import TraversalEngine, WalkReport

logger = logging.getLogger(__name__)

SIZE_TIMED_OUT = "Calculation timed out due to server limit"
SIZE_DEPTH_LIMITED = "Partial size: depth limit reached"
SIZE_ENTRIES_SKIPPED = "Partial size: some entries could not be read"


def _setup(config: GatewayConfig | None) -> tuple[GatewayConfig, PathResolver]:
    if config is None:
        return default_config(), default_resolver()
    return config, PathResolver.from_config(config)


def read_file(path: str, config: GatewayConfig | None = None) -> str:
    """Read and return file contents as UTF-8 text."""
    config, resolver = _setup(config)
    target = Path(resolver.resolve_existing(path).resolved)
    if target.is_dir():
        raise GatewayError(ErrorCode.PATH_IS_DIRECTORY, f"Expected a file but found a directory: {path}")
    try:
        size = target.stat().st_size
        if size > config.max_file_read_bytes:
            raise GatewayError(
                ErrorCode.RESOURCE_LIMIT_EXCEEDED,
                f"File size {size} bytes exceeds the read limit of {config.max_file_read_bytes} bytes: {path}",
            )
        return target.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise GatewayError(ErrorCode.OPERATION_FAILED, f"File is not UTF-8 text: {path}") from None
    except OSError as exc:
        raise GatewayError(ErrorCode.OPERATION_FAILED, f"Failed to read file: {path}. {exc.strerror}") from exc


def write_file(
    path: str,
    content: str,
    config: GatewayConfig | None = None,
    mode: str = "overwrite",
) -> int:
    """Write (or append) *content*; returns the number of bytes written."""
    if mode not in ("overwrite", "append"):
        raise GatewayError(ErrorCode.INVALID_PARAMETER, f"unknown write mode: {mode!r}")
    config, resolver = _setup(config)
    target = Path(resolver.resolve_for_creation(path).resolved)
    if target.is_dir():
        raise GatewayError(ErrorCode.PATH_IS_DIRECTORY, f"Cannot write to a directory: {path}")
    data = content.encode("utf-8")
    if len(data) > config.max_file_read_bytes:
        raise GatewayError(
            ErrorCode.RESOURCE_LIMIT_EXCEEDED,
            f"Content size {len(data)} bytes exceeds the write limit of {config.max_file_read_bytes} bytes",
        )
    try:
        with target.open("ab" if mode == "append" else "wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise GatewayError(ErrorCode.OPERATION_FAILED, f"Failed to write file: {path}. {exc.strerror}") from exc
    logger.info("wrote %d bytes to %s (%s)", len(data), target, mode)
    return len(data)


def directory_size(
    directory: Path, config: GatewayConfig, resolver: PathResolver
) -> tuple[int, str | None]:
    """Total bytes of the regular files under *directory*, plus a note when partial."""
    rp = resolver.resolve_directory(str(directory))
    report = WalkReport()
    engine = TraversalEngine(resolver)
    total = sum(
        entry.size_bytes or 0
        for entry in engine.walk(
            rp, config.limits.max_recursive_depth, config.limits.recursive_timeout_ms, report
        )
        if entry.type == "file"
    )
    if report.timed_out:
        return total, SIZE_TIMED_OUT
    if report.depth_limit_reached:
        return total, SIZE_DEPTH_LIMITED
    if report.skipped:
        return total, SIZE_ENTRIES_SKIPPED
    return total, None


def _with_size(entry: EntryInfo, config: GatewayConfig, resolver: PathResolver) -> EntryInfo:
    try:
        size, note = directory_size(Path(entry.path), config, resolver)
    except GatewayError as exc:
        logger.warning("size calculation failed for %s: %s", entry.path, exc.message)
        return dataclasses.replace(entry, recursive_size_calculation_note="Error during size calculation")
    return dataclasses.replace(entry, size_bytes=size, recursive_size_calculation_note=note)


def list_entries(
    path: str,
    config: GatewayConfig | None = None,
    recursive_depth: int = 0,
    calculate_size: bool = False,
) -> list[dict[str, Any]]:
    """List a directory.  recursive_depth=0 lists immediate children only.

    With *calculate_size*, each directory's ``size_bytes`` is the recursive
    total of its files, bounded by the configured depth and timeout.
    """
    if recursive_depth < 0:
        raise GatewayError(ErrorCode.INVALID_PARAMETER, "recursive_depth must not be negative")
    config, resolver = _setup(config)
    rp = resolver.resolve_directory(path)
    depth = min(recursive_depth, config.limits.max_recursive_depth) + 1
    report = WalkReport()
    engine = TraversalEngine(resolver)
    entries = []
    for entry in engine.walk(rp, depth, config.limits.recursive_timeout_ms, report):
        if calculate_size and entry.type == "directory":
            entry = _with_size(entry, config, resolver)
        entries.append(entry.to_dict())
    logger.debug("listed %d entries under %s (%d skipped)", len(entries), rp.resolved, len(report.skipped))
    return entries
