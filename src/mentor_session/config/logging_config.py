"""Centralized logging configuration for mentor-session.

Provides consistent, configurable logging with environment-based control
over verbosity and format.
"""

import logging
import logging.config
import os
from enum import Enum
from typing import Any, Dict


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogVerbosity(str, Enum):
    """Log verbosity modes."""
    QUIET = "QUIET"      # Only errors and critical
    NORMAL = "NORMAL"    # Standard logging (warnings and above)
    VERBOSE = "VERBOSE"  # Info level logging
    DEBUG = "DEBUG"      # Full debug logging


class LogFormat(str, Enum):
    """Log format options."""
    SIMPLE = "simple"
    DETAILED = "detailed"
    JSON = "json"


FORMAT_STRINGS = {
    LogFormat.SIMPLE: "%(asctime)s - %(levelname)s - %(message)s",
    LogFormat.DETAILED: "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
    LogFormat.JSON: '{"time":"%(asctime)s","level":"%(levelname)s","module":"%(name)s","message":"%(message)s"}',
}


def get_log_level_from_verbosity(verbosity: str) -> str:
    """Map verbosity mode to log level."""
    verbosity_map = {
        LogVerbosity.QUIET: LogLevel.ERROR.value,
        LogVerbosity.NORMAL: LogLevel.WARNING.value,
        LogVerbosity.VERBOSE: LogLevel.INFO.value,
        LogVerbosity.DEBUG: LogLevel.DEBUG.value,
    }
    try:
        return verbosity_map[LogVerbosity(verbosity.upper())]
    except ValueError:
        return LogLevel.WARNING.value


class LoggingConfig:
    """Centralized logging configuration manager."""
    
    # Per-tick heartbeat logging, silenced unless ENABLE_HEARTBEAT_LOGGING=true
    DEFAULT_QUIET_MODULES = [
        "mentor_session.application.activity_heartbeat",
    ]
    
    # Modules that should only log errors
    ERROR_ONLY_MODULES = [
        "redis",
        "asyncio",
        "jose",
    ]
    
    @classmethod
    def build(cls) -> Dict[str, Any]:
        """Build the dictConfig mapping from environment variables."""
        log_verbosity = os.getenv("LOG_VERBOSITY", "NORMAL").upper()
        log_format = os.getenv("LOG_FORMAT", LogFormat.SIMPLE.value).lower()
        enable_heartbeat_logging = os.getenv("ENABLE_HEARTBEAT_LOGGING", "false").lower() == "true"
        
        # Explicit LOG_LEVEL wins over verbosity
        effective_log_level = os.getenv("LOG_LEVEL", "").upper() or get_log_level_from_verbosity(log_verbosity)
        if effective_log_level not in LogLevel.__members__:
            effective_log_level = LogLevel.WARNING.value
        
        try:
            format_string = FORMAT_STRINGS[LogFormat(log_format)]
        except ValueError:
            format_string = FORMAT_STRINGS[LogFormat.SIMPLE]
        
        logging_config: Dict[str, Any] = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": format_string,
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "level": effective_log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stdout",
                },
            },
            "root": {
                "level": effective_log_level,
                "handlers": ["console"],
            },
            "loggers": {}
        }
        
        if not enable_heartbeat_logging:
            for module in cls.DEFAULT_QUIET_MODULES:
                logging_config["loggers"][module] = {
                    "level": "WARNING" if effective_log_level != "DEBUG" else "DEBUG",
                    "handlers": ["console"],
                    "propagate": False,
                }
        
        for module in cls.ERROR_ONLY_MODULES:
            logging_config["loggers"][module] = {
                "level": "ERROR",
                "handlers": ["console"],
                "propagate": False,
            }
        
        return logging_config
    
    @classmethod
    def configure(cls) -> None:
        """Configure logging based on environment variables."""
        logging_config = cls.build()
        logging.config.dictConfig(logging_config)
        
        logger = logging.getLogger(__name__)
        logger.debug(f"Logging configured: level={logging_config['root']['level']}")
    
    @classmethod
    def set_module_level(cls, module_name: str, level: str) -> None:
        """Set log level for a specific module.
        
        Args:
            module_name: Name of the module
            level: Log level to set
        """
        logging.getLogger(module_name).setLevel(getattr(logging, level.upper()))


def setup_logging() -> None:
    """Setup logging configuration from environment variables.
    
    Call once at application startup.
    """
    LoggingConfig.configure()
