"""Bounded, line-oriented text search inside a single file."""

from __future__ import annotations

import codecs
import os
from dataclasses import dataclass
from typing import Callable

# Only the head of a file is sniffed for binary content
BINARY_SNIFF_BYTES = 8192
PREVIEW_CHARS = 200


@dataclass(frozen=True)
class ContentHit:
    line_number: int
    line_preview: str


def looks_binary(sample: bytes) -> bool:
    """NUL byte or invalid UTF-8 in *sample*.  A multibyte char cut at the end is fine."""
    if b"\x00" in sample:
        return True
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=False)
    except UnicodeDecodeError:
        return True
    return False


def _preview(line: str) -> str:
    line = line.strip()
    if len(line) > PREVIEW_CHARS:
        return line[:PREVIEW_CHARS] + "…"
    return line


def scan_file(
    path: str,
    line_matches: Callable[[str], bool],
    max_bytes: int,
) -> ContentHit | None:
    """First line (within the first *max_bytes*) accepted by *line_matches*.

    Returns None for binary files and for files with no matching line.
    Raises OSError when the file cannot be opened or read.
    """
    with open(path, "rb") as fh:
        data = fh.read(max_bytes)
    if looks_binary(data[:BINARY_SNIFF_BYTES]):
        return None
    text = data.decode("utf-8", errors="replace")
    for number, line in enumerate(text.splitlines(), 1):
        if line_matches(line):
            return ContentHit(line_number=number, line_preview=_preview(line))
    return None


def extension_of(name: str) -> str:
    return os.path.splitext(name)[1].lower()
