"""
Configuration module for the sync server.
"""

from core.config.loader import (
    SyncConfig,
    get_config,
    load_env_file,
    reset_config,
)

__all__ = [
    "SyncConfig",
    "get_config",
    "load_env_file",
    "reset_config",
]
