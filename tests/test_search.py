"""Tests for core/search.py — the find engine end to end over a real temp tree."""

from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from core.config import GatewayConfig, SearchLimits
from core.criteria import ContentPattern, MetadataFilter, NamePattern
from core.errors import ErrorCode, GatewayError
from core.path_policy import PathResolver
from core.search import SearchCoordinator, SearchResult
from core.traversal import SearchOptions

# ── fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def root(tmp_path: Path) -> Path:
    """root/{a.txt "hello", b.log, sub/c.txt "HELLO again"}"""
    r = tmp_path / "root"
    (r / "sub").mkdir(parents=True)
    (r / "a.txt").write_text("first line\nsay hello\n")
    (r / "b.log").write_text("nothing to see\n")
    (r / "sub" / "c.txt").write_text("HELLO again\n")
    return r


@pytest.fixture
def outside(tmp_path: Path) -> Path:
    o = tmp_path / "outside"
    o.mkdir()
    (o / "secret.txt").write_text("hello from outside\n")
    return o


def _make_config(root: Path, **limits: int) -> GatewayConfig:
    return GatewayConfig(
        allowed_paths=(str(root),),
        limits=SearchLimits(**limits),
        default_case_sensitive=True,
    )


@pytest.fixture
def coordinator(root: Path) -> SearchCoordinator:
    config = _make_config(root)
    return SearchCoordinator(PathResolver.from_config(config), config)


def _rel(result: SearchResult, root: Path) -> list[str]:
    prefix = str(root) + "/"
    return [e.path[len(prefix):] for e in result.entries]


RECURSIVE = SearchOptions(recursive=True)

# ── scenarios ─────────────────────────────────────────────────────────────────


class TestScenarios:
    def test_name_pattern_recursive(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(str(root), [NamePattern("*.txt")], RECURSIVE)
        assert _rel(result, root) == ["a.txt", "sub/c.txt"]

    def test_content_case_sensitive(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(
            str(root), [ContentPattern("hello", case_sensitive=True)], RECURSIVE
        )
        assert _rel(result, root) == ["a.txt"]
        hit = result.hits[0]
        assert hit.content_match is not None
        assert hit.content_match.line_number == 2
        assert hit.content_match.line_preview == "say hello"

    def test_content_case_insensitive(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(str(root), [ContentPattern("hello")], RECURSIVE)
        assert _rel(result, root) == ["a.txt", "sub/c.txt"]

    def test_base_path_is_file(self, coordinator: SearchCoordinator, root: Path) -> None:
        with pytest.raises(GatewayError) as exc_info:
            coordinator.search(str(root / "a.txt"), [], RECURSIVE)
        assert exc_info.value.code == ErrorCode.PATH_IS_FILE

    def test_base_path_outside(self, coordinator: SearchCoordinator, outside: Path) -> None:
        with pytest.raises(GatewayError) as exc_info:
            coordinator.search(str(outside), [], RECURSIVE)
        assert exc_info.value.code == ErrorCode.ACCESS_DENIED

    def test_base_path_missing(self, coordinator: SearchCoordinator, root: Path) -> None:
        with pytest.raises(GatewayError) as exc_info:
            coordinator.search(str(root / "nope"), [], RECURSIVE)
        assert exc_info.value.code == ErrorCode.PATH_NOT_FOUND

    def test_malformed_regex_matches_nothing(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        result = coordinator.search(
            str(root), [ContentPattern("[invalid", is_regex=True)], RECURSIVE
        )
        assert result.hits == []

    def test_outside_symlink_listed_not_descended(
        self, coordinator: SearchCoordinator, root: Path, outside: Path
    ) -> None:
        (root / "escape").symlink_to(outside)
        flat = coordinator.search(str(root), [], SearchOptions())
        assert "escape" in _rel(flat, root)

        deep = coordinator.search(str(root), [], RECURSIVE)
        assert "escape/secret.txt" not in _rel(deep, root)
        assert any("not followed" in n for n in deep.notes)


# ── properties ────────────────────────────────────────────────────────────────


class TestProperties:
    def test_empty_criteria_returns_everything(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        result = coordinator.search(str(root), [], RECURSIVE)
        assert _rel(result, root) == ["a.txt", "b.log", "sub", "sub/c.txt"]

    def test_entry_type_filter(self, coordinator: SearchCoordinator, root: Path) -> None:
        dirs = coordinator.search(
            str(root), [], SearchOptions(recursive=True, entry_type_filter="directory")
        )
        assert _rel(dirs, root) == ["sub"]

    def test_and_is_subset_of_each_criterion(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        name = NamePattern("*.txt")
        content = ContentPattern("hello", case_sensitive=True)
        both = set(_rel(coordinator.search(str(root), [name, content], RECURSIVE), root))
        assert both <= set(_rel(coordinator.search(str(root), [name], RECURSIVE), root))
        assert both <= set(_rel(coordinator.search(str(root), [content], RECURSIVE), root))
        assert both == {"a.txt"}

    def test_non_recursive_subset_of_depth_one(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        flat = _rel(coordinator.search(str(root), [], SearchOptions()), root)
        depth_one = _rel(
            coordinator.search(str(root), [], SearchOptions(recursive=True, max_depth=1)), root
        )
        assert set(flat) <= set(depth_one)
        assert flat == ["a.txt", "b.log", "sub"]

    def test_repeat_search_is_identical(self, coordinator: SearchCoordinator, root: Path) -> None:
        criteria = [NamePattern("*.{txt,log}")]
        first = coordinator.search(str(root), criteria, RECURSIVE)
        second = coordinator.search(str(root), criteria, RECURSIVE)
        assert _rel(first, root) == _rel(second, root)

    def test_metadata_filter_combined_with_name(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        criteria = [
            NamePattern("*.txt"),
            MetadataFilter(attribute="size_bytes", operator="lt", value=15),
        ]
        assert _rel(coordinator.search(str(root), criteria, RECURSIVE), root) == ["sub/c.txt"]


# ── limits ────────────────────────────────────────────────────────────────────


class TestLimits:
    def test_max_results_truncates(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(str(root), [], SearchOptions(recursive=True, max_results=2))
        assert len(result.hits) == 2
        assert result.truncated
        assert any("Result limit of 2" in n for n in result.notes)

    def test_exact_fit_is_not_truncated(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(
            str(root), [NamePattern("*.txt")], SearchOptions(recursive=True, max_results=2)
        )
        assert _rel(result, root) == ["a.txt", "sub/c.txt"]
        assert result.truncated is False
        assert result.notes == []

    def test_exact_fit_without_criteria(self, coordinator: SearchCoordinator, root: Path) -> None:
        result = coordinator.search(str(root), [], SearchOptions(max_results=3))
        assert len(result.hits) == 3
        assert not result.truncated

    def test_depth_capped_by_config(self, root: Path) -> None:
        config = _make_config(root, max_recursive_depth=1)
        coordinator = SearchCoordinator(PathResolver.from_config(config), config)
        result = coordinator.search(str(root), [], SearchOptions(recursive=True, max_depth=5))
        assert "sub/c.txt" not in _rel(result, root)
        assert result.depth_limit_reached

    def test_timeout_marks_result_partial(self, root: Path) -> None:
        config = _make_config(root)
        ticks = itertools.chain([0.0, 0.0], itertools.repeat(1000.0))
        coordinator = SearchCoordinator(
            PathResolver.from_config(config), config, clock=lambda: next(ticks)
        )
        result = coordinator.search(str(root), [], RECURSIVE)
        assert result.timed_out
        assert result.truncated
        assert _rel(result, root) == ["a.txt", "b.log", "sub"]

    @pytest.mark.parametrize(
        "options",
        [
            SearchOptions(entry_type_filter="socket"),
            SearchOptions(max_depth=0),
            SearchOptions(max_results=0),
        ],
    )
    def test_bad_options_rejected(
        self, coordinator: SearchCoordinator, root: Path, options: SearchOptions
    ) -> None:
        with pytest.raises(GatewayError) as exc_info:
            coordinator.search(str(root), [], options)
        assert exc_info.value.code == ErrorCode.INVALID_PARAMETER

    def test_invalid_metadata_filter_fails_before_walk(
        self, coordinator: SearchCoordinator, root: Path
    ) -> None:
        with pytest.raises(GatewayError) as exc_info:
            coordinator.search(
                str(root), [MetadataFilter(attribute="size_bytes", operator="contains", value="x")],
                RECURSIVE,
            )
        assert exc_info.value.code == ErrorCode.INVALID_CRITERION
