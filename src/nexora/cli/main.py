"""
Nexora Main CLI

This module defines the main CLI group and entry point for Nexora commands.
"""

import click

from .. import __version__
from ..models.config_manager import ConfigManager
from .common import configure_logging
from .features import add, info, remove
from .manage import config, rename
from .new import create
from .update import update
from .wizard import wizard


@click.group(invoke_without_command=True)
@click.option('--verbose', '-v', is_flag=True, help='Show debug logging')
@click.version_option(version=__version__, prog_name="nexora-rn")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """
    Nexora: create and manage React Native projects with dynamic features.

    Generate a React Native app with the features you pick, then add,
    remove or update features as the project grows.
    """
    settings = ConfigManager().load_config()
    configure_logging(verbose, settings.log_level)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        click.echo()
        click.echo("Examples:")
        click.echo("  $ nexora-rn create MyAwesomeApp")
        click.echo("  $ nexora-rn add drawer")
        click.echo("  $ nexora-rn remove redux")


# Register subcommands
cli.add_command(create)
cli.add_command(add)
cli.add_command(remove)
cli.add_command(info)
cli.add_command(rename)
cli.add_command(config)
cli.add_command(update)
cli.add_command(wizard)


def main() -> None:
    """Main entry point for the Nexora CLI."""
    cli()
