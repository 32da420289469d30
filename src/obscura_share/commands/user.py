"""
Shared user commands.

Contains: add, list, remove, toggle, enable, disable.
"""

from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..models.remote import TokenPair
from ..models.user import Permission
from ..share import SharedLibrary
from .common import DataDirOption, console, run_with_share


def register_user_commands(app: typer.Typer):
    """Register user subcommands with the app."""

    user_app = typer.Typer(
        help="Manage users the library is shared with.",
        no_args_is_help=True,
    )
    app.add_typer(user_app, name="user")

    @user_app.command("add")
    def user_add(
        nickname: Annotated[str, typer.Argument(help="Display name of the remote user")],
        permission: Annotated[Optional[list[Permission]], typer.Option("--permission", "-p", help="Permission to grant (repeatable)")] = None,
        user_token: Annotated[Optional[str], typer.Option("--user-token", help="Token the remote installation presents")] = None,
        data_dir: DataDirOption = None,
    ):
        """Enroll a remote user and print their credentials once."""
        async def action(share: SharedLibrary):
            return await share.users.enroll(
                nickname,
                permissions=permission or [Permission.READ_ONLY],
                user_token=user_token,
            )

        user = run_with_share(data_dir, action)
        pair = TokenPair(user_token=user.user_token, access_token=user.access_token)
        console.print(Panel(
            f"[bold green]User enrolled:[/bold green] {user.nickname}\n\n"
            f"Id:           [cyan]{user.id}[/cyan]\n"
            f"Token:        [cyan]{pair.combined()}[/cyan]\n"
            f"Permissions:  [cyan]{', '.join(p.value for p in user.permissions)}[/cyan]\n\n"
            f"[yellow]Give the token to the remote user. It won't be shown again.[/yellow]",
            title="New Shared User",
            border_style="green",
        ))

    @user_app.command("list")
    def user_list(data_dir: DataDirOption = None):
        """List shared users."""
        async def action(share: SharedLibrary):
            return share.users.get_all_users()

        users = run_with_share(data_dir, action)
        if not users:
            console.print("[yellow]No shared users[/yellow]")
            return

        table = Table(title="Shared Users")
        table.add_column("Id", style="dim")
        table.add_column("Nickname", style="cyan")
        table.add_column("Permissions", style="green")
        table.add_column("Active")
        table.add_column("Last access")
        table.add_column("IP")

        for user in users:
            table.add_row(
                user.id,
                user.nickname,
                ", ".join(p.value for p in user.permissions),
                "[green]yes[/green]" if user.is_active else "[red]no[/red]",
                user.last_access_at.strftime("%Y-%m-%d %H:%M") if user.last_access_at else "-",
                user.ip_address or "-",
            )

        console.print(table)

    @user_app.command("remove")
    def user_remove(
        user_id: Annotated[str, typer.Argument(help="Id of the user to remove")],
        data_dir: DataDirOption = None,
    ):
        """Remove a shared user."""
        async def action(share: SharedLibrary):
            return await share.users.delete_user(user_id)

        if not run_with_share(data_dir, action):
            console.print(f"[red]User not found: {user_id}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] Removed {user_id}[/green]")

    @user_app.command("toggle")
    def user_toggle(
        user_id: Annotated[str, typer.Argument(help="Id of the user")],
        permission: Annotated[Permission, typer.Argument(help="Permission to flip")],
        data_dir: DataDirOption = None,
    ):
        """Flip one permission (FULL grants or keeps the others)."""
        async def action(share: SharedLibrary):
            return await share.users.toggle_permission(user_id, permission)

        permissions = run_with_share(data_dir, action)
        if permissions is None:
            console.print(f"[red]User not found: {user_id}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] Permissions: {', '.join(p.value for p in permissions) or 'none'}[/green]")

    def _set_active(user_id: str, active: bool, data_dir) -> None:
        async def action(share: SharedLibrary):
            return await share.users.set_active(user_id, active)

        if run_with_share(data_dir, action) is None:
            console.print(f"[red]User not found: {user_id}[/red]")
            raise typer.Exit(1)
        console.print(f"[green][OK] {user_id} {'enabled' if active else 'disabled'}[/green]")

    @user_app.command("enable")
    def user_enable(
        user_id: Annotated[str, typer.Argument(help="Id of the user")],
        data_dir: DataDirOption = None,
    ):
        """Allow a user to authenticate again."""
        _set_active(user_id, True, data_dir)

    @user_app.command("disable")
    def user_disable(
        user_id: Annotated[str, typer.Argument(help="Id of the user")],
        data_dir: DataDirOption = None,
    ):
        """Stop a user from authenticating without deleting them."""
        _set_active(user_id, False, data_dir)
