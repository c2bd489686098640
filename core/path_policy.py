"""Path gate.  Every filesystem action resolves and authorizes its path here first.

Resolution expands ``~``, refuses relative input, follows every symlink
(intermediate components included) and then checks the canonical result
against the allowlist with separator-terminated prefix containment, so
``/data`` never admits ``/database``.
"""

from __future__ import annotations

import errno
import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable

from core.config import GatewayConfig, default_config
from core.errors import ErrorCode, GatewayError

logger = logging.getLogger(__name__)


def _with_sep(path: str) -> str:
    return path if path.endswith(os.sep) else path + os.sep


def is_within(path: str, root: str) -> bool:
    """True when canonical *path* equals *root* or descends from it."""
    path = os.path.normcase(path)
    root = os.path.normcase(root)
    return path == root or _with_sep(path).startswith(_with_sep(root))


def canonicalize(path: str) -> str:
    """Resolve all symlinks in absolute *path*.

    A path whose tail does not exist yet (a write target) is resolved through
    its deepest existing ancestor and the missing suffix is re-appended.
    Raises OSError for symlink loops and other resolution failures.
    """
    try:
        return os.path.realpath(path, strict=True)
    except (FileNotFoundError, NotADirectoryError):
        # Missing components cannot be symlinks, so lexical joining of the
        # remainder is exact from here on.
        return os.path.realpath(path, strict=False)


@dataclass(frozen=True)
class AllowedPathSet:
    """Canonical allowlist of directories.  Built once, never mutated."""

    roots: tuple[str, ...]

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> AllowedPathSet:
        roots: list[str] = []
        for p in paths:
            canonical = os.path.realpath(os.path.abspath(os.path.expanduser(p)))
            if canonical not in roots:
                roots.append(canonical)
        return cls(tuple(roots))

    def containing_root(self, canonical_path: str) -> str | None:
        for root in self.roots:
            if is_within(canonical_path, root):
                return root
        return None

    def contains(self, canonical_path: str) -> bool:
        return self.containing_root(canonical_path) is not None

    def __len__(self) -> int:
        return len(self.roots)


@dataclass(frozen=True)
class ResolvedPath:
    original: str
    resolved: str
    allowed_root: str


class PathResolver:
    def __init__(
        self,
        allowed: AllowedPathSet,
        tilde_expansion_enabled: bool = True,
        home_dir: str | None = None,
    ):
        self.allowed = allowed
        self.tilde_expansion_enabled = tilde_expansion_enabled
        self.home_dir = home_dir or os.path.expanduser("~")

    @classmethod
    def from_config(cls, config: GatewayConfig) -> PathResolver:
        return cls(
            AllowedPathSet.from_paths(config.allowed_paths),
            tilde_expansion_enabled=config.tilde_expansion_enabled,
            home_dir=config.home_dir,
        )

    # ── resolution ────────────────────────────────────────────────

    def expand_tilde(self, input_path: str) -> str:
        if not input_path.startswith("~"):
            return input_path
        if not self.tilde_expansion_enabled:
            raise GatewayError(
                ErrorCode.INVALID_PATH,
                "Tilde (~) expansion is not allowed by server configuration.",
            )
        if input_path != "~" and not input_path.startswith("~/"):
            raise GatewayError(
                ErrorCode.INVALID_PATH,
                f"Only the current user's home (~ or ~/...) can be expanded: {input_path}",
            )
        return self.home_dir + input_path[1:]

    def resolve(self, input_path: str) -> ResolvedPath:
        """Canonicalize *input_path* and authorize it.  Raises GatewayError."""
        if not isinstance(input_path, str) or not input_path.strip():
            raise GatewayError(ErrorCode.INVALID_PATH, "Path must be a non-empty string.")

        expanded = self.expand_tilde(input_path)
        if not os.path.isabs(expanded):
            raise GatewayError(
                ErrorCode.INVALID_PATH,
                f"Path must be absolute or start with ~: {input_path}",
            )

        try:
            resolved = canonicalize(expanded)
        except OSError as exc:
            if exc.errno == errno.ELOOP:
                message = f"Too many symbolic links encountered while resolving path: {input_path}"
            else:
                message = f"Failed to resolve real path for: {input_path}. {exc.strerror or exc}"
            logger.error("path resolution failed for %r: %s", input_path, exc)
            raise GatewayError(ErrorCode.OPERATION_FAILED, message) from exc

        root = self.allowed.containing_root(resolved)
        if root is None:
            logger.warning("access denied: %r (resolved to %r)", input_path, resolved)
            raise GatewayError(ErrorCode.ACCESS_DENIED, f"Access to path is denied: {input_path}")
        return ResolvedPath(original=input_path, resolved=resolved, allowed_root=root)

    def resolve_existing(self, input_path: str) -> ResolvedPath:
        rp = self.resolve(input_path)
        if not os.path.lexists(rp.resolved):
            raise GatewayError(ErrorCode.PATH_NOT_FOUND, f"Path not found: {input_path}")
        return rp

    def resolve_directory(self, input_path: str) -> ResolvedPath:
        rp = self.resolve_existing(input_path)
        if not os.path.isdir(rp.resolved):
            raise GatewayError(
                ErrorCode.PATH_IS_FILE,
                f"Provided path is a file, not a directory: {input_path}",
            )
        return rp

    def resolve_for_creation(self, input_path: str) -> ResolvedPath:
        """Authorize a write target.  The parent directory must already exist."""
        rp = self.resolve(input_path)
        parent = os.path.dirname(rp.resolved)
        if not os.path.exists(parent):
            raise GatewayError(
                ErrorCode.PATH_NOT_FOUND,
                f"Parent directory not found for creation: {input_path}",
            )
        if not os.path.isdir(parent):
            raise GatewayError(
                ErrorCode.OPERATION_FAILED,
                f"Parent of {input_path} is not a directory",
            )
        return rp


@lru_cache
def default_resolver() -> PathResolver:
    """Resolver over the process-wide allowlist, loaded once from the environment."""
    return PathResolver.from_config(default_config())


def authorize_path(input_path: str, config: GatewayConfig | None = None) -> ResolvedPath:
    """The single entry point every filesystem-touching tool calls before any I/O.

    Callers must operate on the returned ``resolved`` path, never on the raw
    input.
    """
    resolver = default_resolver() if config is None else PathResolver.from_config(config)
    return resolver.resolve(input_path)
