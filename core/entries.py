"""EntryInfo: one stat snapshot of a filesystem entry, taken without following the entry itself."""

from __future__ import annotations

import mimetypes
import os
import stat
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any

ENTRY_TYPES = ("file", "directory", "symlink", "other")


def format_iso_utc(timestamp: float) -> str:
    """Epoch seconds → '2025-05-16T15:30:00.123Z'."""
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso_utc(value: str) -> datetime:
    """Inverse of format_iso_utc; also accepts offsets and naive (UTC) values."""
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class EntryInfo:
    name: str
    path: str
    type: str
    created_at: str
    modified_at: str
    size_bytes: int | None = None
    mime_type: str | None = None
    last_accessed_at: str | None = None
    is_readonly: bool = False
    symlink_target: str | None = None
    recursive_size_calculation_note: str | None = None
    depth: int = 0

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data.pop("depth")
        return {k: v for k, v in data.items() if v is not None}


def _entry_type(mode: int) -> str:
    if stat.S_ISLNK(mode):
        return "symlink"
    if stat.S_ISDIR(mode):
        return "directory"
    if stat.S_ISREG(mode):
        return "file"
    return "other"


def build_entry_info(path: str, name: str | None = None, depth: int = 0) -> EntryInfo:
    """lstat *path* and describe it.  Raises OSError if the entry cannot be stat'ed.

    For a symlink the timestamps come from the target when it is reachable,
    and the link text is kept in ``symlink_target``.
    """
    lst = os.lstat(path)
    kind = _entry_type(lst.st_mode)
    effective = lst
    link_target: str | None = None
    if kind == "symlink":
        try:
            link_target = os.readlink(path)
            effective = os.stat(path)
        except OSError:
            effective = lst  # dangling or unreadable link: describe the link itself

    name = name or os.path.basename(path)
    created = getattr(effective, "st_birthtime", None) or effective.st_ctime
    is_file = kind == "file"
    return EntryInfo(
        name=name,
        path=path,
        type=kind,
        size_bytes=lst.st_size if is_file else None,
        created_at=format_iso_utc(created),
        modified_at=format_iso_utc(effective.st_mtime),
        last_accessed_at=format_iso_utc(effective.st_atime),
        is_readonly=not effective.st_mode & stat.S_IWUSR,
        mime_type=mimetypes.guess_type(name)[0] if is_file else None,
        symlink_target=link_target,
        depth=depth,
    )
