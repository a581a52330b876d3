"""
==============================================
Core infrastructure package for the SQL engine.
==============================================

This package provides configuration management, logging, the exception
hierarchy and execution metrics used throughout the statement builders
and the execution coordinator.

Modules:
    config: Configuration management from environment variables
    logger: Centralized logging configuration and utilities
    exceptions: Error taxonomy shared by builders and coordinator
    performance: Execution metrics collected with psutil

Example:
    >>> from core.config import config
    >>> from core.logger import get_logger
    >>>
    >>> logger = get_logger(__name__)
    >>> logger.info(f"Using driver {config.db_driver}")
"""

__version__ = "1.0.0"
__all__ = [
    'config',
    'Config',
    'get_logger',
    'setup_logging',
    'ExecutionMonitor',
    'SqlBuilderError',
    'MissingValueError',
    'DriverNotSetError',
    'FeatureNotSupportedError',
    'UnsupportedOperationError',
    'UnsupportedValueError',
    'DatabaseNotConnectedError',
    'DriverNotLoadedError',
    'RequestNotExecutableError',
]

from core.config import Config, config
from core.exceptions import (
    DatabaseNotConnectedError,
    DriverNotLoadedError,
    DriverNotSetError,
    FeatureNotSupportedError,
    MissingValueError,
    RequestNotExecutableError,
    SqlBuilderError,
    UnsupportedOperationError,
    UnsupportedValueError,
)
from core.logger import get_logger, setup_logging
from core.performance import ExecutionMonitor
