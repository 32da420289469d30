"""
Helpers shared by the CLI command modules.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Awaitable, Callable, Optional, TypeVar

import typer
from rich.console import Console

from ..core.config import get_settings
from ..core.logging import setup_logging
from ..share import SharedLibrary

console = Console()

T = TypeVar("T")

DataDirOption = Annotated[
    Optional[Path],
    typer.Option("--data-dir", "-d", help="Directory holding the share files"),
]


def open_share(data_dir: Optional[Path]) -> SharedLibrary:
    """Build the shared library for a command, configuring logging first."""
    settings = get_settings()
    setup_logging(settings.log.level, settings.log.format, settings.log.file)
    if data_dir is not None:
        return SharedLibrary(data_dir)
    return SharedLibrary.from_settings(settings)


def run_with_share(data_dir: Optional[Path], action: Callable[[SharedLibrary], Awaitable[T]]) -> T:
    """Initialize the shared library and run ``action`` against it."""
    share = open_share(data_dir)

    async def _run() -> T:
        await share.initialize()
        return await action(share)

    return asyncio.run(_run())
