"""Tests for core/glob_pattern.py — segments, **, braces, classes, bad syntax."""

from __future__ import annotations

import pytest

from core.glob_pattern import GlobError, GlobPattern, expand_braces


class TestExpandBraces:
    def test_no_braces(self) -> None:
        assert expand_braces("*.txt") == ["*.txt"]

    def test_simple_alternation(self) -> None:
        assert expand_braces("a.{py,txt}") == ["a.py", "a.txt"]

    def test_nested_alternation(self) -> None:
        assert expand_braces("{a,b{1,2}}.c") == ["a.c", "b1.c", "b2.c"]

    def test_brace_inside_class_is_literal(self) -> None:
        assert expand_braces("[{]x") == ["[{]x"]

    @pytest.mark.parametrize("bad", ["{a,b", "a}b", "x{{y}"])
    def test_unbalanced_raises(self, bad: str) -> None:
        with pytest.raises(GlobError):
            expand_braces(bad)


class TestBasenameMatching:
    def test_star_matches_extension(self) -> None:
        g = GlobPattern("*.txt")
        assert g.match("a.txt", "sub/a.txt")
        assert not g.match("b.log", "b.log")

    def test_question_mark_is_one_char(self) -> None:
        g = GlobPattern("?.txt")
        assert g.match("a.txt", "a.txt")
        assert not g.match("ab.txt", "ab.txt")

    def test_character_class_and_negation(self) -> None:
        assert GlobPattern("[ab].txt").match("b.txt", "b.txt")
        assert not GlobPattern("[!ab].txt").match("a.txt", "a.txt")
        assert GlobPattern("[^ab].txt").match("c.txt", "c.txt")

    def test_braces(self) -> None:
        g = GlobPattern("*.{py,md}")
        assert g.match("x.py", "x.py")
        assert g.match("README.md", "README.md")
        assert not g.match("x.txt", "x.txt")

    def test_case_insensitive(self) -> None:
        g = GlobPattern("*.TXT", case_sensitive=False)
        assert g.match("notes.txt", "notes.txt")

    def test_case_sensitive(self) -> None:
        assert not GlobPattern("*.TXT", case_sensitive=True).match("notes.txt", "notes.txt")


class TestPathMatching:
    def test_star_does_not_cross_separator(self) -> None:
        g = GlobPattern("src/*.py")
        assert g.match("a.py", "src/a.py")
        assert not g.match("a.py", "src/pkg/a.py")

    def test_double_star_crosses_separators(self) -> None:
        g = GlobPattern("src/**/*.py")
        assert g.match("a.py", "src/a.py")
        assert g.match("a.py", "src/pkg/deep/a.py")
        assert not g.match("a.py", "lib/a.py")

    def test_leading_double_star(self) -> None:
        g = GlobPattern("**/test_*.py")
        assert g.match("test_x.py", "test_x.py")
        assert g.match("test_x.py", "a/b/test_x.py")

    def test_leading_slash_is_root_anchored(self) -> None:
        assert GlobPattern("/sub/c.txt").match("c.txt", "sub/c.txt")


class TestInvalid:
    @pytest.mark.parametrize("bad", ["", "{a,b", "[abc", "*.{txt"])
    def test_invalid_pattern_raises(self, bad: str) -> None:
        with pytest.raises(GlobError):
            GlobPattern(bad)
