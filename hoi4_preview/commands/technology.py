"""Technology preview commands."""

from __future__ import annotations

import asyncio

import click
from rich.table import Table

from ..console import console
from ..console import dependency_table
from ..console import print_progress
from ..console import print_warnings
from ..context import PreviewContext
from ..loader import LoaderSession
from ..loader import LoadResult
from ..preview import PreviewController
from ..preview.technology import TechnologyOverview
from ..preview.technology import TechnologyOverviewLoader
from ..preview.technology import TechnologyTreeLoader
from ..preview.technology import TechnologyTreeLoaderResult
from . import run_async


def _print_technology(result: LoadResult[TechnologyTreeLoaderResult]) -> None:
    value = result.value
    table = Table(title="Technology Trees")
    table.add_column("Folder", style="cyan")
    table.add_column("Start", style="green")
    table.add_column("Technologies", justify="right")
    for tree in value.technology_trees:
        table.add_row(tree.folder, tree.start_technology, str(len(tree.technologies)))

    console.print(table)
    console.print(
        f"[dim]{len(value.gui_files)} gui files, {len(value.gfx_files)} gfx files, "
        f"{len(result.dependencies)} dependencies[/dim]"
    )
    print_warnings(result.warnings)


def _print_overview(result: LoadResult[TechnologyOverview]) -> None:
    value = result.value
    table = Table(title="Technology Overview")
    table.add_column("Item", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Files", str(len(value.files)))
    table.add_row("Technologies", str(value.technologies_count))
    table.add_row("Trees", str(value.trees_count))
    if value.sprites_resolved:
        table.add_row("Sprites", str(value.sprites_count))
        table.add_row("Missing icons", str(value.missing_icons_count))

    console.print(table)
    print_warnings(result.warnings)


@click.command(name="technology")
@click.argument("file")
@click.option("--force", is_flag=True, help="Recompute everything instead of reusing cached results")
@click.option("--watch", is_flag=True, help="Keep polling and reprint whenever the preview changes")
@click.option("--interval", type=float, default=1.0, show_default=True, help="Seconds between polls")
@click.option("--progress", is_flag=True, help="Show loader progress events")
@click.pass_obj
def technology_cmd(context: PreviewContext, file: str, force: bool, watch: bool, interval: float, progress: bool):
    """Preview the technology trees of FILE (path relative to the game directory)."""
    loader = context.loaders.get(TechnologyTreeLoader, file)
    if progress:
        loader.on_progress.subscribe(print_progress)

    if not watch:
        _print_technology(run_async(loader.load(LoaderSession(force=force))))
        return

    controller = PreviewController(loader)
    controller.on_dependencies_changed(lambda deps: console.print(f"[dim]Watching {len(deps)} files[/dim]"))
    try:
        run_async(controller.watch(interval, _print_technology))
    except KeyboardInterrupt:
        controller.dispose()
        console.print("[dim]Stopped watching.[/dim]")


@click.command(name="deps")
@click.argument("file")
@click.pass_obj
def deps_cmd(context: PreviewContext, file: str):
    """List every file the technology preview of FILE depends on."""
    loader = context.loaders.get(TechnologyTreeLoader, file)

    async def collect() -> tuple[list[str], dict[str, str]]:
        result = await loader.load(LoaderSession())
        tokens = await asyncio.gather(*(context.expiry_token(d) for d in result.dependencies))
        return result.dependencies, dict(zip(result.dependencies, tokens, strict=True))

    dependencies, tokens = run_async(collect())
    console.print(dependency_table(dependencies, tokens))


@click.command(name="overview")
@click.option("--force", is_flag=True, help="Recompute everything instead of reusing cached results")
@click.option("--sprites/--no-sprites", default=None, help="Override preview.resolve_sprites")
@click.option("--progress", is_flag=True, help="Show loader progress events")
@click.pass_obj
def overview_cmd(context: PreviewContext, force: bool, sprites: bool | None, progress: bool):
    """Summarize every technology file of the mod and game."""
    if sprites is not None:
        context.settings.preview.resolve_sprites = sprites

    loader = TechnologyOverviewLoader(context)
    if progress:
        loader.on_progress.subscribe(print_progress)

    _print_overview(run_async(loader.load(LoaderSession(force=force))))
