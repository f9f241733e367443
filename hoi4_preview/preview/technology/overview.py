"""Composite loader over every technology file of the mod and game."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from dataclasses import field

from ...errors import ParseError
from ...errors import ResourceIOError
from ...hoiformat.spritetype import SpriteType
from ...loader import Loader
from ...loader import LoaderSession
from ...loader import LoadResult
from ...loader import empty_load_result
from ...loader import merge_dependencies
from ...loader import merge_in_load_result
from ..gui import GfxFileLoader
from .loader import TechnologyTreeLoader
from .loader import TechnologyTreeLoaderResult
from .schema import TechnologyTree

logger = logging.getLogger(__name__)

TECHNOLOGY_DIRECTORY = "common/technologies"


def technology_icon_name(technology_id: str) -> str:
    return f"GFX_{technology_id}_medium"


@dataclass
class TechnologyOverview:
    files: list[str] = field(default_factory=list)
    technology_trees: list[TechnologyTree] = field(default_factory=list)
    technologies_count: int = 0
    trees_count: int = 0
    sprites_count: int = 0
    missing_icons: list[str] = field(default_factory=list)
    missing_icons_count: int = 0
    sprites_resolved: bool = False


class TechnologyOverviewLoader(Loader[TechnologyOverview]):
    """All technology trees, optionally with their icons resolved.

    Technology files are loaded concurrently and merged in path order. A file
    that is missing or fails to parse becomes a warning. Sprite resolution is
    skipped entirely when ``preview.resolve_sprites`` is off.
    """

    async def should_reload_impl(self, session: LoaderSession) -> bool:
        # Toggling sprite resolution changes the result without touching any file
        last = self.last_result
        return last is not None and last.value.sprites_resolved != self.context.settings.preview.resolve_sprites

    async def load_impl(self, session: LoaderSession) -> LoadResult[TechnologyOverview]:
        files = await self.context.file_system.list_files(TECHNOLOGY_DIRECTORY, ".txt")
        session.throw_if_cancelled()

        tree_results = await self.loader_dependencies.load_multiple_optional(
            files,
            session,
            TechnologyTreeLoader,
            fallback=TechnologyTreeLoaderResult,
            errors=(ResourceIOError, ParseError),
        )
        session.throw_if_cancelled()

        technology_trees = [tree for r in tree_results for tree in r.value.technology_trees]
        gfx_files = merge_dependencies(*(r.value.gfx_files for r in tree_results))

        if self.context.settings.preview.resolve_sprites:
            sprite_results = await self.loader_dependencies.load_multiple_optional(
                gfx_files, session, GfxFileLoader, fallback=dict
            )
            session.throw_if_cancelled()
        else:
            sprite_results = [empty_load_result({})]

        sprites: dict[str, SpriteType] = {}
        for r in sprite_results:
            sprites.update(r.value)

        technology_ids = list(dict.fromkeys(tech.id for tree in technology_trees for tech in tree.technologies))
        missing_icons = []
        if self.context.settings.preview.resolve_sprites:
            missing_icons = [tech_id for tech_id in technology_ids if technology_icon_name(tech_id) not in sprites]

        logger.debug(f"Loader session: {session.loaded_loader_names()}")

        sub_results = [*tree_results, *sprite_results]
        overview = TechnologyOverview(
            files=files,
            technology_trees=technology_trees,
            technologies_count=len(technology_ids),
            trees_count=len(technology_trees),
            sprites_count=len(sprites),
            missing_icons=missing_icons,
            missing_icons_count=len(missing_icons),
            sprites_resolved=self.context.settings.preview.resolve_sprites,
        )
        dependencies = merge_dependencies([TECHNOLOGY_DIRECTORY], merge_in_load_result(sub_results, "dependencies"))
        logger.debug(f"Technology overview dependencies: {dependencies}")

        return LoadResult(
            value=overview,
            dependencies=dependencies,
            warnings=merge_in_load_result(sub_results, "warnings"),
        )

    def describe_result(self, result: LoadResult[TechnologyOverview]) -> str:
        value = result.value
        return f"{value.technologies_count} technologies in {value.trees_count} trees"
