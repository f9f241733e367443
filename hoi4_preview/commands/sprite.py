"""Sprite lookup command."""

import click

from ..console import console
from ..context import PreviewContext
from ..image import CorneredTileSprite
from ..preview.technology.loader import RELATED_GFX_FILES
from . import run_async


@click.command(name="sprite")
@click.argument("name")
@click.option("--gfx", "gfx_files", multiple=True, help="Gfx file to search (repeatable, searched in order)")
@click.pass_obj
def sprite_cmd(context: PreviewContext, name: str, gfx_files: tuple[str, ...]):
    """Resolve sprite NAME to its texture and print the image size."""
    search = list(gfx_files) or RELATED_GFX_FILES
    sprite = run_async(context.images.get_sprite(name, search))

    if sprite is None:
        console.print(f"[yellow]Sprite {name} not found in {', '.join(search)}[/yellow]")
        raise SystemExit(1)

    image = sprite.image
    console.print(f"[bold]{sprite.name}[/bold]")
    console.print(f"  Texture: [cyan]{image.path}[/cyan] [dim]({image.real_path})[/dim]")
    console.print(f"  Size:    {image.width}x{image.height} {image.format}")
    console.print(f"  Frames:  {sprite.frames} (frame width {sprite.frame_width})")
    if isinstance(sprite, CorneredTileSprite):
        console.print(f"  Border:  {sprite.bordersize[0]}x{sprite.bordersize[1]}")
