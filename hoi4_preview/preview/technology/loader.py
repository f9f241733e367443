"""Loader for one technology file."""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field

from ...hoiformat.parser import parse_hoi4_file
from ...loader import ContentLoader
from ...loader import Dependency
from ...loader import LoaderSession
from ...loader import LoadResult
from ...loader import merge_dependencies
from ...loader import merge_in_load_result
from ..gui import GuiFileEntry
from ..gui import GuiFileLoader
from ..gui import GuiFileLoaderResult
from .schema import TechnologyTree
from .schema import get_technology_trees

TECHNOLOGY_UI_GFX_FILES = ["interface/countrytechtreeview.gfx", "interface/countrytechnologyview.gfx"]
TECHNOLOGIES_GFX = "interface/technologies.gfx"
RELATED_GFX_FILES = [*TECHNOLOGY_UI_GFX_FILES, TECHNOLOGIES_GFX]
GUI_FILE_PATHS = ["interface/countrytechtreeview.gui", "interface/countrydoctrinetreeview.gui"]


@dataclass
class TechnologyTreeLoaderResult:
    technology_trees: list[TechnologyTree] = field(default_factory=list)
    gui_files: list[GuiFileEntry] = field(default_factory=list)
    gfx_files: list[str] = field(default_factory=list)


class TechnologyTreeLoader(ContentLoader[TechnologyTreeLoaderResult]):
    """Technology trees of one file plus the gui and gfx files needed to draw them.

    Gui files are non-primary: a missing one becomes a warning.
    """

    async def post_load(
        self,
        content: str | None,
        dependencies: list[Dependency],
        error: Exception | None,
        session: LoaderSession,
    ) -> LoadResult[TechnologyTreeLoaderResult]:
        if error is not None or content is None:
            raise error

        gfx_dependencies = [*RELATED_GFX_FILES, *(d.path for d in dependencies if d.type == "gfx")]
        technology_trees = get_technology_trees(parse_hoi4_file(content, self.file))
        gui_dependencies = [*GUI_FILE_PATHS, *(d.path for d in dependencies if d.type == "gui")]

        gui_dep_files = await self.loader_dependencies.load_multiple_optional(
            gui_dependencies, session, GuiFileLoader, fallback=GuiFileLoaderResult
        )

        return LoadResult(
            value=TechnologyTreeLoaderResult(
                technology_trees=technology_trees,
                gfx_files=merge_dependencies(gfx_dependencies, *(r.value.gfx_files for r in gui_dep_files)),
                gui_files=[entry for r in gui_dep_files for entry in r.value.gui_files],
            ),
            dependencies=merge_dependencies(
                [self.file],
                gfx_dependencies,
                gui_dependencies,
                merge_in_load_result(gui_dep_files, "dependencies"),
            ),
            warnings=merge_in_load_result(gui_dep_files, "warnings"),
        )

    def describe_result(self, result: LoadResult[TechnologyTreeLoaderResult]) -> str:
        return f"{len(result.value.technology_trees)} technology trees"
