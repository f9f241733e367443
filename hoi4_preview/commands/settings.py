"""Settings commands."""

import click
import yaml

from ..console import console
from ..settings import SettingsManager


@click.group(name="settings", invoke_without_command=True)
@click.pass_context
def settings_group(ctx: click.Context):
    """Show or change preview settings."""
    if ctx.invoked_subcommand is None:
        click.echo("\n" + ctx.get_help())
        ctx.exit()


@settings_group.command(name="show")
def settings_show():
    """Show merged settings from all scopes."""
    manager = SettingsManager()
    settings = manager.load()
    console.print(yaml.safe_dump(settings.model_dump(mode="json"), sort_keys=False).rstrip())


@settings_group.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option(
    "--scope",
    type=click.Choice(["user", "project", "local"]),
    default="project",
    show_default=True,
    help="Settings file to write",
)
def settings_set(key: str, value: str, scope: str):
    """Set KEY (dotted, e.g. preview.resolve_sprites) to VALUE (parsed as YAML)."""
    manager = SettingsManager()
    manager.set_value(key, yaml.safe_load(value), scope=scope)
    console.print(f"[green]✓[/green] {key} = {value} ({scope})")
