"""Configuration module."""

from riskgate.common.config.settings import (
    Config,
    Environment,
    LogLevel,
    StoreBackend,
    AlertSinkType,
    get_config,
    reset_config,
)

__all__ = [
    "Config",
    "Environment",
    "LogLevel",
    "StoreBackend",
    "AlertSinkType",
    "get_config",
    "reset_config",
]
