"""Tests for loaders composed of shared sub-loaders."""

import asyncio
import logging

import pytest

from hoi4_preview.errors import LoadCancelledError
from hoi4_preview.loader import ContentLoader
from hoi4_preview.loader import LoaderSession
from hoi4_preview.loader import LoadResult
from hoi4_preview.loader import merge_in_load_result


class LeafLoader(ContentLoader[str]):
    gate: asyncio.Event | None = None

    def __init__(self, file, context):
        super().__init__(file, context)
        self.calls = 0
        self.started = asyncio.Event()

    async def post_load(self, content, dependencies, error, session):
        self.calls += 1
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if error is not None:
            raise error
        return LoadResult(value=content.strip())


class ComposerLoader(ContentLoader[str]):
    """Joins its own last line with the values of ``#! leaf:`` and ``#! compose:`` files."""

    gate: asyncio.Event | None = None
    optional = False

    def __init__(self, file, context):
        super().__init__(file, context)
        self.calls = 0

    async def post_load(self, content, dependencies, error, session):
        self.calls += 1
        if error is not None:
            raise error
        if self.gate is not None:
            await self.gate.wait()

        leaves = [d.path for d in dependencies if d.type == "leaf"]
        if self.optional:
            results = await self.loader_dependencies.load_multiple_optional(
                leaves, session, LeafLoader, fallback=lambda: "?"
            )
        else:
            results = await self.loader_dependencies.load_multiple(leaves, session, LeafLoader)
        results += await self.loader_dependencies.load_multiple(
            [d.path for d in dependencies if d.type == "compose"], session, ComposerLoader
        )

        own = content.strip().splitlines()[-1]
        return LoadResult(
            value="+".join([own, *(r.value for r in results)]),
            dependencies=merge_in_load_result(results, "dependencies"),
            warnings=merge_in_load_result(results, "warnings"),
        )


@pytest.fixture
def leaf_and_composer(context, game_dir, write_file):
    write_file(game_dir, "x.txt", "X")
    write_file(game_dir, "y.txt", "#! leaf: x.txt\nY")
    composer = context.loaders.get(ComposerLoader, "y.txt")
    leaf = context.loaders.get(LeafLoader, "x.txt")
    return composer, leaf


@pytest.mark.asyncio
class TestComposition:
    async def test_composite_merges_dependencies(self, leaf_and_composer):
        composer, leaf = leaf_and_composer

        result = await composer.load(LoaderSession())

        assert result.value == "Y+X"
        assert result.dependencies == ["y.txt", "x.txt"]

    async def test_change_to_composer_file_reuses_leaf(self, leaf_and_composer, game_dir, write_file):
        composer, leaf = leaf_and_composer
        await composer.load(LoaderSession())
        leaf_result = leaf.last_result

        write_file(game_dir, "y.txt", "#! leaf: x.txt\nY2")
        result = await composer.load(LoaderSession())

        assert result.value == "Y2+X"
        assert composer.calls == 2
        assert leaf.calls == 1
        assert leaf.last_result is leaf_result
        assert set(result.dependencies) >= {"x.txt", "y.txt"}

    async def test_change_to_leaf_recomputes_both(self, leaf_and_composer, game_dir, write_file):
        composer, leaf = leaf_and_composer
        await composer.load(LoaderSession())

        write_file(game_dir, "x.txt", "X2")
        result = await composer.load(LoaderSession())

        assert result.value == "Y+X2"
        assert composer.calls == 2
        assert leaf.calls == 2

    async def test_nothing_changed_reuses_everything(self, leaf_and_composer):
        composer, leaf = leaf_and_composer
        first = await composer.load(LoaderSession())

        second = await composer.load(LoaderSession())

        assert second is first
        assert (composer.calls, leaf.calls) == (1, 1)

    async def test_cancel_before_sub_load(self, leaf_and_composer, monkeypatch):
        composer, leaf = leaf_and_composer
        gate = asyncio.Event()
        monkeypatch.setattr(ComposerLoader, "gate", gate)
        session = LoaderSession()

        task = asyncio.ensure_future(composer.load(session))
        while composer.calls == 0:
            await asyncio.sleep(0)
        session.cancel()
        gate.set()

        with pytest.raises(LoadCancelledError):
            await task
        assert leaf.calls == 0
        assert composer.last_result is None

    async def test_cancelling_first_session_leaves_second_intact(self, leaf_and_composer, monkeypatch):
        composer, leaf = leaf_and_composer
        gate = asyncio.Event()
        monkeypatch.setattr(LeafLoader, "gate", gate)
        first_session = LoaderSession()
        second_session = LoaderSession()

        first = asyncio.ensure_future(composer.load(first_session))
        await leaf.started.wait()
        second = asyncio.ensure_future(composer.load(second_session))
        await asyncio.sleep(0)
        first_session.cancel()
        gate.set()

        with pytest.raises(LoadCancelledError):
            await first
        result = await second

        assert result.value == "Y+X"
        assert composer.last_result is result

    async def test_diamond_loads_shared_leaf_once(self, context, game_dir, write_file):
        write_file(game_dir, "x.txt", "X")
        write_file(game_dir, "left.txt", "#! leaf: x.txt\nL")
        write_file(game_dir, "right.txt", "#! leaf: x.txt\nR")
        write_file(game_dir, "top.txt", "#! compose: left.txt\n#! compose: right.txt\nT")
        top = context.loaders.get(ComposerLoader, "top.txt")

        result = await top.load(LoaderSession())

        assert result.value == "T+L+X+R+X"
        assert context.loaders.get(LeafLoader, "x.txt").calls == 1
        assert result.dependencies == ["top.txt", "left.txt", "x.txt", "right.txt"]

    async def test_cancelled_session_does_not_break_diamond_of_another(
        self, context, game_dir, write_file, monkeypatch
    ):
        write_file(game_dir, "x.txt", "X")
        write_file(game_dir, "left.txt", "#! leaf: x.txt\nL")
        write_file(game_dir, "right.txt", "#! leaf: x.txt\nR")
        write_file(game_dir, "top.txt", "#! compose: left.txt\n#! compose: right.txt\nT")
        gate = asyncio.Event()
        monkeypatch.setattr(LeafLoader, "gate", gate)
        leaf = context.loaders.get(LeafLoader, "x.txt")
        left = context.loaders.get(ComposerLoader, "left.txt")
        right = context.loaders.get(ComposerLoader, "right.txt")
        top = context.loaders.get(ComposerLoader, "top.txt")
        first_session = LoaderSession()
        second_session = LoaderSession()

        first = asyncio.ensure_future(leaf.load(first_session))
        await leaf.started.wait()
        second = asyncio.ensure_future(top.load(second_session))
        while not (left.calls and right.calls):
            await asyncio.sleep(0)
        for _ in range(10):
            await asyncio.sleep(0)
        first_session.cancel()
        gate.set()

        with pytest.raises(LoadCancelledError):
            await first
        result = await second

        assert result.value == "T+L+X+R+X"
        assert leaf.calls == 2
        assert leaf.last_result.value == "X"

    async def test_missing_optional_leaf_becomes_warning(self, context, game_dir, write_file, monkeypatch):
        monkeypatch.setattr(ComposerLoader, "optional", True)
        write_file(game_dir, "y.txt", "#! leaf: x.txt\nY")
        composer = context.loaders.get(ComposerLoader, "y.txt")

        result = await composer.load(LoaderSession())

        assert result.value == "Y+?"
        assert result.dependencies == ["y.txt", "x.txt"]
        assert [w.source for w in result.warnings] == ["x.txt"]

        write_file(game_dir, "x.txt", "X")
        result = await composer.load(LoaderSession())

        assert result.value == "Y+X"
        assert result.warnings == []

    async def test_progress_relayed_from_sub_loaders(self, leaf_and_composer):
        composer, leaf = leaf_and_composer
        events = []
        composer.on_progress.subscribe(events.append)

        await composer.load(LoaderSession())
        await composer.load(LoaderSession())

        phases = [(e.loader, e.phase) for e in events]
        assert ("[ComposerLoader y.txt]", "start") in phases
        assert ("[LeafLoader x.txt]", "loaded") in phases
        assert phases[-1] == ("[ComposerLoader y.txt]", "reuse")

    async def test_progress_on_cyclic_graph_is_finite(self, context, game_dir, write_file, caplog):
        write_file(game_dir, "a.txt", "A")
        a = context.loaders.get(ComposerLoader, "a.txt")
        await a.load(LoaderSession())
        events = []
        a.on_progress.subscribe(events.append)

        write_file(game_dir, "a.txt", "#! compose: b.txt\nA2")
        write_file(game_dir, "b.txt", "#! compose: a.txt\nB")
        with caplog.at_level(logging.ERROR):
            result = await a.load(LoaderSession())

        assert result.value == "A2+B+A"
        assert [(e.loader, e.phase) for e in events] == [
            ("[ComposerLoader a.txt]", "start"),
            ("[ComposerLoader b.txt]", "start"),
            ("[ComposerLoader b.txt]", "loaded"),
            ("[ComposerLoader a.txt]", "loaded"),
        ]
        assert "Error in progress handler" not in caplog.text
