"""
Voting Machine Configuration

Loads config.toml; environment variables override TOML values.
"""

from .loader import (
    AppConfig,
    LoggingConfig,
    MachineConfig,
    load_config,
)

__all__ = [
    "AppConfig",
    "LoggingConfig",
    "MachineConfig",
    "load_config",
]
