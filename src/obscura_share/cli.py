"""
Command Line Interface for Obscura Share.

Manages the share server configuration, shared users and the audit log,
and probes remote libraries.

Built with Typer for automatic tab completion.
"""

from typing import Annotated

import typer

from . import __version__
from .commands import (
    register_audit_commands,
    register_config_commands,
    register_remote_commands,
    register_user_commands,
)
from .commands.common import console

# Create the main app
app = typer.Typer(
    name="obscura-share",
    help="Obscura Share - secure remote sharing for the Obscura media library",
    add_completion=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    if value:
        console.print(f"obscura-share version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[bool, typer.Option("--version", callback=version_callback, is_eager=True, help="Show version and exit.")] = False,
):
    """
    Obscura Share - expose this library to other installations and
    connect to theirs.
    """


register_config_commands(app)
register_user_commands(app)
register_audit_commands(app)
register_remote_commands(app)


# Entry point for the CLI
def cli():
    """Main entry point."""
    app()


if __name__ == "__main__":
    cli()
