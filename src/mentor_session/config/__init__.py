"""Configuration for mentor-session."""

from .settings import SessionSettings, get_settings
from .logging_config import LoggingConfig, LogFormat, LogLevel, LogVerbosity, setup_logging

__all__ = [
    "SessionSettings",
    "get_settings",
    "LoggingConfig",
    "LogFormat",
    "LogLevel",
    "LogVerbosity",
    "setup_logging",
]
