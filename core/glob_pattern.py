"""Glob matching for name_pattern criteria.

Supported syntax: ``*`` (within one path segment), ``**`` as a whole segment
(any number of segments), ``?``, ``[...]`` / ``[!...]`` / ``[^...]`` classes
and ``{a,b}`` alternation, nestable.  Segments are matched with fnmatch, so
``*`` can never cross a separator.
"""

from __future__ import annotations

from fnmatch import fnmatchcase


class GlobError(ValueError):
    """Malformed glob (unbalanced braces, unterminated class, empty pattern)."""


def _class_end(pattern: str, start: int) -> int:
    """Index of the ']' closing the class that opens at *start*."""
    i = start + 1
    if i < len(pattern) and pattern[i] in "!^":
        i += 1
    if i < len(pattern) and pattern[i] == "]":
        i += 1  # leading ']' is a literal member
    while i < len(pattern) and pattern[i] != "]":
        i += 1
    if i >= len(pattern):
        raise GlobError(f"unterminated character class in {pattern!r}")
    return i


def expand_braces(pattern: str) -> list[str]:
    """'a.{py,txt}' → ['a.py', 'a.txt'].  Raises GlobError on unbalanced braces."""
    depth = 0
    open_at = -1
    commas: list[int] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "[":
            i = _class_end(pattern, i)
        elif ch == "{":
            if depth == 0:
                open_at = i
                commas = []
            depth += 1
        elif ch == "}":
            if depth == 0:
                raise GlobError(f"unbalanced '}}' in {pattern!r}")
            depth -= 1
            if depth == 0:
                head, tail = pattern[:open_at], pattern[i + 1:]
                bounds = [open_at, *commas, i]
                options = [pattern[a + 1:b] for a, b in zip(bounds, bounds[1:])]
                expanded: list[str] = []
                for option in options:
                    expanded.extend(expand_braces(head + option + tail))
                return expanded
        elif ch == "," and depth == 1:
            commas.append(i)
        i += 1
    if depth:
        raise GlobError(f"unbalanced '{{' in {pattern!r}")
    return [pattern]


def _translate_segment(segment: str) -> str:
    # fnmatch only understands '!' for negated classes
    out = []
    i = 0
    while i < len(segment):
        if segment[i] == "[":
            end = _class_end(segment, i)
            body = segment[i + 1:end]
            if body.startswith("^"):
                body = "!" + body[1:]
            out.append("[" + body + "]")
            i = end + 1
        else:
            out.append(segment[i])
            i += 1
    return "".join(out)


def _match_segments(patterns: tuple[str, ...], parts: tuple[str, ...]) -> bool:
    if not patterns:
        return not parts
    head, rest = patterns[0], patterns[1:]
    if head == "**":
        return any(_match_segments(rest, parts[i:]) for i in range(len(parts) + 1))
    return bool(parts) and fnmatchcase(parts[0], head) and _match_segments(rest, parts[1:])


class GlobPattern:
    """Compiled glob.  ``match(name, relative_path)`` picks the subject by pattern shape."""

    def __init__(self, pattern: str, case_sensitive: bool = True):
        if not pattern:
            raise GlobError("empty pattern")
        self.pattern = pattern
        self.case_sensitive = case_sensitive
        self.uses_path = "/" in pattern
        self._alternatives: list[tuple[str, ...]] = []
        for alt in expand_braces(pattern):
            if not case_sensitive:
                alt = alt.lower()
            alt = alt.lstrip("/")
            segments = tuple(_translate_segment(s) for s in alt.split("/") if s not in ("", "."))
            self._alternatives.append(segments)

    def match(self, name: str, relative_path: str) -> bool:
        subject = relative_path if self.uses_path else name
        if not self.case_sensitive:
            subject = subject.lower()
        if self.uses_path:
            parts = tuple(p for p in subject.split("/") if p)
        else:
            parts = (subject,)
        return any(_match_segments(alt, parts) for alt in self._alternatives)
