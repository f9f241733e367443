"""hoi4-preview CLI - preview mod assets from the command line."""

import logging
from pathlib import Path

import click

from .commands.settings import settings_group
from .commands.sprite import sprite_cmd
from .commands.technology import deps_cmd
from .commands.technology import overview_cmd
from .commands.technology import technology_cmd
from .context import PreviewContext
from .errors import UserError
from .logging_setup import init_json_logging
from .settings import SettingsManager

logger = logging.getLogger(__name__)


@click.group()
@click.option("--game", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Base game directory")
@click.option("--mod", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Mod directory (searched first)")
@click.option("--log-level", type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False))
@click.pass_context
def cli(ctx: click.Context, game: Path | None, mod: Path | None, log_level: str | None):
    """Preview technology trees and sprites of a mod."""
    overrides: dict = {}
    if game is not None:
        overrides.setdefault("paths", {})["game"] = str(game)
    if mod is not None:
        overrides.setdefault("paths", {})["mod"] = str(mod)

    try:
        settings = SettingsManager().load(overrides)
    except UserError as e:
        raise click.ClickException(str(e)) from e
    init_json_logging(settings.logging.path, log_level or settings.logging.level)

    if ctx.invoked_subcommand != "settings" and settings.paths.game is None and settings.paths.mod is None:
        raise click.UsageError("No game or mod directory configured. Pass --game/--mod or set paths.game.")

    ctx.obj = PreviewContext(settings)
    logger.info(f"Preview context ready for {ctx.invoked_subcommand}")


cli.add_command(technology_cmd)
cli.add_command(deps_cmd)
cli.add_command(overview_cmd)
cli.add_command(sprite_cmd)
cli.add_command(settings_group)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
