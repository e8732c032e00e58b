"""
Core module initialization.
Exports configuration, logging and session utilities.
"""

from backoffice.core.config import get_settings, setup_logging, Settings, EnvironmentMode
from backoffice.core.session import Session, Liveness

__all__ = [
    "get_settings",
    "setup_logging",
    "Settings",
    "EnvironmentMode",
    "Session",
    "Liveness",
]
