"""
Audit log commands.
"""

from typing import Annotated, Optional

import typer
from rich.table import Table

from ..share import SharedLibrary
from .common import DataDirOption, console, run_with_share


def register_audit_commands(app: typer.Typer):
    """Register audit subcommands with the app."""

    audit_app = typer.Typer(
        help="Inspect the audit log.",
        no_args_is_help=True,
    )
    app.add_typer(audit_app, name="audit")

    @audit_app.command("list")
    def audit_list(
        user_id: Annotated[Optional[str], typer.Option("--user", "-u", help="Only entries for this user id")] = None,
        limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum entries to show", min=1)] = 100,
        data_dir: DataDirOption = None,
    ):
        """Show the most recent audit entries."""
        async def action(share: SharedLibrary):
            if user_id:
                return share.audit.get_logs_by_user(user_id, limit)
            return share.audit.get_logs(limit)

        entries = run_with_share(data_dir, action)
        if not entries:
            console.print("[yellow]No audit entries[/yellow]")
            return

        table = Table(title="Audit Log")
        table.add_column("Time")
        table.add_column("User", style="cyan")
        table.add_column("Action")
        table.add_column("Resource")
        table.add_column("IP")
        table.add_column("Result")

        for entry in entries:
            resource = entry.resource_type
            if entry.resource_id is not None:
                resource = f"{resource}:{entry.resource_id}"
            table.add_row(
                entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
                entry.nickname,
                entry.action,
                resource,
                entry.ip_address,
                "[green]ok[/green]" if entry.success else "[red]failed[/red]",
            )

        console.print(table)

    @audit_app.command("clear")
    def audit_clear(
        yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
        data_dir: DataDirOption = None,
    ):
        """Delete every audit entry."""
        if not yes:
            typer.confirm("Clear the audit log?", abort=True)

        async def action(share: SharedLibrary):
            await share.audit.clear_logs()

        run_with_share(data_dir, action)
        console.print("[green][OK] Audit log cleared[/green]")
