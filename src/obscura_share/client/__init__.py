"""
Client-side helpers for connecting to remote shared libraries.
"""

from .health import HealthProber, probe_health, swap_protocol

__all__ = [
    "HealthProber",
    "probe_health",
    "swap_protocol",
]
