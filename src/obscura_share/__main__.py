"""
Main entry point for running obscura-share as a module.

Usage:
    python -m obscura_share user add alice
    python -m obscura_share probe https://host:8765 <user:access>
"""

from .cli import cli

if __name__ == "__main__":
    cli()
