"""Tests for load result merge helpers."""

import pytest

from hoi4_preview.errors import ParseError
from hoi4_preview.errors import ResourceIOError
from hoi4_preview.loader import ContentLoader
from hoi4_preview.loader import LoaderSession
from hoi4_preview.loader import LoadResult
from hoi4_preview.loader import LoadWarning
from hoi4_preview.loader import empty_load_result
from hoi4_preview.loader import load_optional
from hoi4_preview.loader import merge_dependencies
from hoi4_preview.loader import merge_in_load_result


class TestMergeDependencies:
    def test_union_keeps_first_seen_order(self):
        assert merge_dependencies(["a", "b"], ["c", "a"], ["b", "d"]) == ["a", "b", "c", "d"]

    def test_empty(self):
        assert merge_dependencies() == []
        assert merge_dependencies([], []) == []


class TestMergeInLoadResult:
    def test_dependencies_are_unioned(self):
        results = [
            LoadResult(value=1, dependencies=["x", "shared"]),
            LoadResult(value=2, dependencies=["shared", "y"]),
        ]

        assert merge_in_load_result(results, "dependencies") == ["x", "shared", "y"]

    def test_warnings_are_concatenated_in_declaration_order(self):
        first = LoadWarning(message="first", source="a")
        second = LoadWarning(message="second", source="b")
        duplicate = LoadWarning(message="first", source="a")
        results = [
            LoadResult(value=1, warnings=[first]),
            empty_load_result(None),
            LoadResult(value=2, warnings=[second, duplicate]),
        ]

        assert merge_in_load_result(results, "warnings") == [first, second, duplicate]

    def test_empty_load_result(self):
        result = empty_load_result({})

        assert result.value == {}
        assert result.dependencies == []
        assert result.warnings == []


@pytest.mark.asyncio
class TestLoadOptional:
    async def test_success_passes_through(self, context, game_dir, write_file):
        write_file(game_dir, "a.txt", "A")
        loader = ContentLoader("a.txt", context, lambda c, d, e, s: _result(c))

        result = await load_optional(loader, LoaderSession(), fallback="fallback")

        assert result.value == "A"
        assert result.warnings == []

    async def test_missing_file_becomes_warning(self, context):
        loader = ContentLoader("missing.txt", context)

        result = await load_optional(loader, LoaderSession(), fallback="fallback")

        assert result.value == "fallback"
        assert result.dependencies == ["missing.txt"]
        assert len(result.warnings) == 1
        assert result.warnings[0].source == "missing.txt"

    async def test_unlisted_errors_propagate(self, context, game_dir, write_file):
        write_file(game_dir, "a.txt", "A")

        async def analyze(content, dependencies, error, session):
            raise ParseError("bad", "a.txt", 1, 1)

        loader = ContentLoader("a.txt", context, analyze)

        with pytest.raises(ParseError):
            await load_optional(loader, LoaderSession(), fallback=None, errors=(ResourceIOError,))

        result = await load_optional(loader, LoaderSession(), fallback=None, errors=(ResourceIOError, ParseError))
        assert result.warnings[0].message.endswith("bad")


async def _result(content):
    return LoadResult(value=content)
