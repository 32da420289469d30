"""
Client-side commands: this installation's identity, registered remote
libraries, health probing, and running the share server.
"""

from typing import Annotated, Optional

import typer
from rich.table import Table

from ..client.health import probe_health
from ..core.config import get_settings
from ..models.remote import RemoteLibraryConnection
from ..share import SharedLibrary
from .common import DataDirOption, console, open_share, run_with_share


def register_remote_commands(app: typer.Typer):
    """Register probe, token, remote and serve commands with the app."""

    remote_app = typer.Typer(
        help="Manage remote libraries this installation connects to.",
        no_args_is_help=True,
    )
    app.add_typer(remote_app, name="remote")

    @app.command("probe")
    def probe(
        target: Annotated[str, typer.Argument(help="Base URL, or the id or name of a registered remote")],
        token: Annotated[Optional[str], typer.Argument(help="'user:access' token, or a bare access token")] = None,
        user_token: Annotated[Optional[str], typer.Option("--user-token", help="User token for bare access tokens (default: this installation's)")] = None,
        retries: Annotated[Optional[int], typer.Option("--retries", "-r", help="Attempts before giving up", min=1)] = None,
        delay: Annotated[Optional[float], typer.Option("--delay", help="Seconds between attempts", min=0)] = None,
        data_dir: DataDirOption = None,
    ):
        """Check that a remote library is reachable with the given token."""
        settings = get_settings()

        async def action(share: SharedLibrary):
            remote = share.client.find_remote(target)
            if remote is None:
                if token is None:
                    console.print(f"[red]No remote named {target}; pass a URL and a token[/red]")
                    raise typer.Exit(2)
                remote = RemoteLibraryConnection(url=target, token=token, name=target)
            elif token is not None:
                remote = remote.model_copy(update={"token": token})

            working_url = await probe_health(
                remote,
                user_token or await share.client.get_user_token(),
                max_retries=retries or settings.probe.max_retries,
                retry_delay=settings.probe.retry_delay if delay is None else delay,
                timeout=settings.probe.timeout,
            )
            if working_url is not None and remote.id is not None:
                await share.client.mark_connected(remote.id, working_url)
            return working_url

        working_url = run_with_share(data_dir, action)
        if working_url is None:
            console.print(f"[red]Could not connect to {target}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] Connected: {working_url}[/green]")

    @app.command("token")
    def token(data_dir: DataDirOption = None):
        """Print this installation's user token, generating it on first use."""
        async def action(share: SharedLibrary):
            return await share.client.get_user_token()

        console.print(run_with_share(data_dir, action), soft_wrap=True)

    @remote_app.command("add")
    def remote_add(
        name: Annotated[str, typer.Argument(help="Display name")],
        url: Annotated[str, typer.Argument(help="Base URL of the remote library")],
        token: Annotated[str, typer.Argument(help="Token issued by the remote host")],
        data_dir: DataDirOption = None,
    ):
        """Register a remote library."""
        async def action(share: SharedLibrary):
            return await share.client.add_remote(name, url, token)

        try:
            remote = run_with_share(data_dir, action)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] Added {remote.name} ({remote.id})[/green]")

    @remote_app.command("list")
    def remote_list(data_dir: DataDirOption = None):
        """List registered remote libraries."""
        async def action(share: SharedLibrary):
            return share.client.get_remotes()

        remotes = run_with_share(data_dir, action)
        if not remotes:
            console.print("[yellow]No remote libraries[/yellow]")
            return

        table = Table(title="Remote Libraries")
        table.add_column("Id", style="dim")
        table.add_column("Name", style="cyan")
        table.add_column("URL")
        table.add_column("Last connected")

        for remote in remotes:
            table.add_row(
                remote.id or "-",
                remote.name,
                remote.url,
                remote.last_connected_at.strftime("%Y-%m-%d %H:%M") if remote.last_connected_at else "-",
            )

        console.print(table)

    @remote_app.command("remove")
    def remote_remove(
        remote_id: Annotated[str, typer.Argument(help="Id of the remote library")],
        data_dir: DataDirOption = None,
    ):
        """Forget a remote library."""
        async def action(share: SharedLibrary):
            return await share.client.remove_remote(remote_id)

        if not run_with_share(data_dir, action):
            console.print(f"[red]Remote library not found: {remote_id}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] Removed {remote_id}[/green]")

    @app.command("serve")
    def serve(
        host: Annotated[str, typer.Option("--host", help="Address to bind")] = "0.0.0.0",
        port: Annotated[Optional[int], typer.Option("--port", "-p", help="Override the configured port")] = None,
        data_dir: DataDirOption = None,
    ):
        """Run the share API with the configured port and certificates."""
        from ..api.app import run_server

        share = open_share(data_dir)
        try:
            run_server(share, host=host, port=port)
        except ValueError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(1)
