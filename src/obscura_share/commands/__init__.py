"""
Command modules for the Obscura Share CLI.

Split into logical groupings:
- config: server configuration and host secret
- user: shared user management
- audit: audit log inspection
- remote: health probing, token generation, serving
"""

from .config import register_config_commands
from .user import register_user_commands
from .audit import register_audit_commands
from .remote import register_remote_commands

__all__ = [
    "register_config_commands",
    "register_user_commands",
    "register_audit_commands",
    "register_remote_commands",
]
