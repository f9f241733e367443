"""Loaders for ``.gui`` and ``.gfx`` interface files."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

from ..hoiformat.gui import GuiFile
from ..hoiformat.gui import get_gui_file
from ..hoiformat.parser import parse_hoi4_file
from ..hoiformat.spritetype import SpriteType
from ..hoiformat.spritetype import get_sprite_types
from ..loader import ContentLoader
from ..loader import Dependency
from ..loader import LoaderSession
from ..loader import LoadResult


@dataclass
class GuiFileEntry:
    file: str
    data: GuiFile


@dataclass
class GuiFileLoaderResult:
    gui_files: list[GuiFileEntry] = field(default_factory=list)
    gfx_files: list[str] = field(default_factory=list)


class GuiFileLoader(ContentLoader[GuiFileLoaderResult]):
    """Parses one gui file; ``#! gfx:`` declarations name the gfx files it uses."""

    async def post_load(
        self,
        content: str | None,
        dependencies: list[Dependency],
        error: Exception | None,
        session: LoaderSession,
    ) -> LoadResult[GuiFileLoaderResult]:
        if error is not None or content is None:
            raise error

        gfx_files = [d.path for d in dependencies if d.type == "gfx"]
        data = get_gui_file(parse_hoi4_file(content, self.file))
        return LoadResult(
            value=GuiFileLoaderResult(gui_files=[GuiFileEntry(file=self.file, data=data)], gfx_files=gfx_files),
            dependencies=gfx_files,
        )


class GfxFileLoader(ContentLoader[dict[str, SpriteType]]):
    """Parses one gfx file into sprite types by name."""

    async def post_load(
        self,
        content: str | None,
        dependencies: list[Dependency],
        error: Exception | None,
        session: LoaderSession,
    ) -> LoadResult[dict[str, SpriteType]]:
        if error is not None or content is None:
            raise error

        sprite_types = get_sprite_types(parse_hoi4_file(content, self.file))
        return LoadResult(value={sprite.name: sprite for sprite in sprite_types})

    def describe_result(self, result: LoadResult[dict[str, SpriteType]]) -> str:
        return f"{len(result.value)} sprites"
