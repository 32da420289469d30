"""
Server configuration commands.

Contains: show, set-port, audit, allow-ip, https, reset-secret.
"""

from enum import Enum
from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from ..share import SharedLibrary
from .common import DataDirOption, console, run_with_share


class Switch(str, Enum):
    ON = "on"
    OFF = "off"


def _print_config(share: SharedLibrary) -> None:
    config = share.config.get_config()

    table = Table(title="Share Server Configuration", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Enabled", "[green]yes[/green]" if config.is_enabled else "[dim]no[/dim]")
    table.add_row("Port", str(config.port))
    table.add_row("Allowed IPs", ", ".join(config.allowed_ips) or "[dim]any[/dim]")
    table.add_row("Max connections", str(config.max_connections))
    table.add_row("Max upload size", f"{config.max_upload_size} MB")
    table.add_row("Max upload rate", f"{config.max_upload_rate} MB/s" if config.max_upload_rate else "unlimited")
    table.add_row("Audit log", "on" if config.enable_audit_log else "off")
    table.add_row("Require HTTPS", "yes" if config.require_https else "no")
    table.add_row("Certificate", config.ssl_cert_path or "[dim]-[/dim]")
    table.add_row("Key", config.ssl_key_path or "[dim]-[/dim]")
    table.add_row("Published library", config.publish_library_path or "[dim]-[/dim]")
    table.add_row("Token encryption", "on" if share.users.can_encrypt else "[yellow]off (weak secret)[/yellow]")

    console.print(table)


def register_config_commands(app: typer.Typer):
    """Register config subcommands with the app."""

    config_app = typer.Typer(
        help="Manage the share server configuration.",
        no_args_is_help=True,
    )
    app.add_typer(config_app, name="config")

    @config_app.command("show")
    def config_show(data_dir: DataDirOption = None):
        """Show the current server configuration."""
        async def action(share: SharedLibrary):
            _print_config(share)

        run_with_share(data_dir, action)

    @config_app.command("set-port")
    def config_set_port(
        port: Annotated[int, typer.Argument(help="Port the share server listens on", min=1, max=65535)],
        data_dir: DataDirOption = None,
    ):
        """Change the share server port."""
        async def action(share: SharedLibrary):
            await share.config.update_config(port=port)

        run_with_share(data_dir, action)
        console.print(f"[green][OK] Port set to {port}[/green]")

    @config_app.command("audit")
    def config_audit(
        state: Annotated[Switch, typer.Argument(help="on or off", case_sensitive=False)],
        data_dir: DataDirOption = None,
    ):
        """Turn the audit log on or off."""
        enabled = state is Switch.ON

        async def action(share: SharedLibrary):
            await share.config.update_config(enable_audit_log=enabled)

        run_with_share(data_dir, action)
        console.print(f"[green][OK] Audit log {'enabled' if enabled else 'disabled'}[/green]")

    @config_app.command("allow-ip")
    def config_allow_ip(
        ips: Annotated[Optional[list[str]], typer.Argument(help="Addresses to allow; none clears the allowlist")] = None,
        data_dir: DataDirOption = None,
    ):
        """Replace the IP allowlist."""
        async def action(share: SharedLibrary):
            return await share.config.update_config(allowed_ips=ips or [])

        config = run_with_share(data_dir, action)
        if config.allowed_ips:
            console.print(f"[green][OK] Allowed: {', '.join(config.allowed_ips)}[/green]")
        else:
            console.print("[green][OK] Allowlist cleared, any address may connect[/green]")

    @config_app.command("https")
    def config_https(
        cert: Annotated[Optional[str], typer.Option("--cert", help="Certificate file")] = None,
        key: Annotated[Optional[str], typer.Option("--key", help="Private key file")] = None,
        require: Annotated[Optional[bool], typer.Option("--require/--optional", help="Refuse to serve without HTTPS")] = None,
        data_dir: DataDirOption = None,
    ):
        """Configure the certificate and key handed to the HTTPS server."""
        updates = {}
        if cert is not None:
            updates["ssl_cert_path"] = cert
        if key is not None:
            updates["ssl_key_path"] = key
        if require is not None:
            updates["require_https"] = require

        if not updates:
            console.print("[yellow]Nothing to change[/yellow]")
            return

        async def action(share: SharedLibrary):
            await share.config.update_config(**updates)

        run_with_share(data_dir, action)
        console.print("[green][OK] HTTPS settings saved[/green]")

    @config_app.command("reset-secret")
    def config_reset_secret(
        yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
        data_dir: DataDirOption = None,
    ):
        """Generate a new host secret."""
        if not yes:
            console.print(Panel(
                "Tokens encrypted with the current secret will no longer be readable.\n"
                "Remote users may have to be enrolled again.",
                title="Warning",
                border_style="yellow",
            ))
            typer.confirm("Reset the host secret?", abort=True)

        async def action(share: SharedLibrary):
            return await share.config.reset_host_secret()

        run_with_share(data_dir, action)
        console.print("[green][OK] Host secret reset[/green]")
