"""Load and validate gateway configuration from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_ALLOWED_PATHS = os.pathsep.join(("~", "/tmp"))

# POSIX filesystems are case-sensitive by default, Windows ones are not.
FS_CASE_SENSITIVE: bool = os.path.normcase("A") == "A"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class SearchLimits:
    """Hard ceilings applied to every find request."""

    max_recursive_depth: int = 10
    recursive_timeout_ms: int = 60_000
    max_content_scan_bytes_per_file: int = 512 * 1024  # find only; read tool has its own cap
    max_results_default: int = 1000


@dataclass(frozen=True)
class GatewayConfig:
    allowed_paths: tuple[str, ...]
    limits: SearchLimits = field(default_factory=SearchLimits)
    max_file_read_bytes: int = 50 * 1024 * 1024
    default_case_sensitive: bool = FS_CASE_SENSITIVE
    tilde_expansion_enabled: bool = True
    home_dir: str = field(default_factory=lambda: os.path.expanduser("~"))
    log_level: str = "INFO"


def _getenv(name: str, default: str | None = None) -> str | None:
    """os.getenv wrapper that strips inline comments (e.g. '10  # note' → '10')."""
    raw = os.getenv(name, default)
    if raw is None:
        return None
    # Split on first ' #' (space-hash) to drop inline comments, then strip
    return raw.split(" #")[0].strip()


def _env_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("invalid integer for %s (%r); using default %d", name, raw, default)
        return default
    if value < 0:
        logger.warning("negative value for %s (%d); using default %d", name, value, default)
        return default
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = _getenv(name)
    if not raw:
        return default
    lowered = raw.lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    logger.warning("invalid boolean for %s (%r); using default %s", name, raw, default)
    return default


def _log_level() -> str:
    raw = (_getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    if raw == "WARN":
        raw = "WARNING"
    if raw not in _LOG_LEVELS:
        logger.warning("invalid LOG_LEVEL %r; using INFO", raw)
        return "INFO"
    return raw


def resolve_allowed_paths(raw: str, home_dir: str) -> tuple[str, ...]:
    """Split, expand and canonicalize the allowlist.  Non-directories are dropped."""
    resolved: list[str] = []
    for part in raw.split(os.pathsep):
        part = part.strip()
        if not part:
            continue
        if part == "~" or part.startswith("~/"):
            part = home_dir + part[1:]
        canonical = os.path.realpath(os.path.abspath(part))
        if not os.path.isdir(canonical):
            logger.warning("allowed path %r is not an existing directory; ignoring", part)
            continue
        if canonical not in resolved:
            resolved.append(canonical)
    return tuple(resolved)


def load_config() -> GatewayConfig:
    """Build GatewayConfig from environment. Raises EnvironmentError on an empty allowlist."""
    home_dir = os.path.expanduser("~")
    raw_paths = _getenv("GATEWAY_ALLOWED_PATHS", DEFAULT_ALLOWED_PATHS) or DEFAULT_ALLOWED_PATHS
    allowed = resolve_allowed_paths(raw_paths, home_dir)
    if not allowed:
        raise EnvironmentError(
            f"GATEWAY_ALLOWED_PATHS ({raw_paths!r}) resolved to no usable directories"
        )

    defaults = SearchLimits()
    config = GatewayConfig(
        allowed_paths=allowed,
        limits=SearchLimits(
            max_recursive_depth=_env_int("GATEWAY_MAX_RECURSIVE_DEPTH", defaults.max_recursive_depth),
            recursive_timeout_ms=_env_int("GATEWAY_RECURSIVE_TIMEOUT_MS", defaults.recursive_timeout_ms),
            max_content_scan_bytes_per_file=_env_int(
                "GATEWAY_MAX_CONTENT_SCAN_BYTES", defaults.max_content_scan_bytes_per_file
            ),
            max_results_default=_env_int("GATEWAY_MAX_RESULTS", defaults.max_results_default),
        ),
        max_file_read_bytes=_env_int("GATEWAY_MAX_FILE_READ_BYTES", 50 * 1024 * 1024),
        default_case_sensitive=_env_bool("GATEWAY_CASE_SENSITIVE", FS_CASE_SENSITIVE),
        tilde_expansion_enabled=_env_bool("GATEWAY_ALLOW_TILDE", True),
        home_dir=home_dir,
        log_level=_log_level(),
    )
    logger.info("config loaded: %d allowed path(s)", len(config.allowed_paths))
    return config


@lru_cache
def default_config() -> GatewayConfig:
    """Process-wide configuration, loaded once on first use."""
    return load_config()
