"""
======================================================
Centralized logging configuration for the SQL engine.
======================================================

Provides consistent logging setup across all modules with:
- Colored console output with level indicators
- Optional file output
- Module-specific loggers

The execution coordinator accepts any logging.Logger, so applications can
plug their own sink; the helpers here only provide sensible defaults.

Example:
    >>> from core.logger import get_logger, setup_logging
    >>>
    >>> # Setup logging at application start
    >>> setup_logging(log_level='DEBUG', log_file='statements.log')
    >>>
    >>> # Get module logger
    >>> logger = get_logger(__name__)
    >>> logger.debug("Executing query: SELECT 1;")
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """Formatter adding ANSI colors and level markers for console output.

    Attributes:
        COLORS: Dict mapping log levels to ANSI color codes
        MARKERS: Dict mapping log levels to short prefix markers
    """

    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'
    }

    MARKERS = {
        'DEBUG': '🔍',
        'INFO': 'ℹ️ ',
        'WARNING': '⚠️ ',
        'ERROR': '❌',
        'CRITICAL': '🔥'
    }

    def format(self, record):
        """Format a record with color and marker without mutating it for other handlers."""
        levelname = record.levelname
        record.marker = self.MARKERS.get(levelname, '')
        if levelname in self.COLORS:
            record.levelname = f"{self.COLORS[levelname]}{levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a logger instance for the specified module.

    Args:
        name: Logger name (typically __name__ of calling module)
        level: Optional logging level override (DEBUG/INFO/WARNING/ERROR/CRITICAL)

    Returns:
        Configured Logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> sql_logger = get_logger('execution.query', level='DEBUG')
    """
    logger = logging.getLogger(name)

    if level:
        logger.setLevel(getattr(logging, level.upper()))

    return logger


def setup_logging(
    log_level: str = 'INFO',
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console_output: bool = True,
    use_colors: bool = True
) -> logging.Logger:
    """Setup root logging with console and/or file handlers.

    Should be called once at application startup. Calling it again replaces
    the previously installed handlers.

    Args:
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR/CRITICAL)
        log_file: Optional log file name (e.g., 'statements.log')
        log_dir: Optional log directory path (defaults to 'logs/')
        console_output: If True, output to console (stdout)
        use_colors: If True, use colored output for console

    Returns:
        The configured root logger
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)

        if use_colors:
            console_formatter = ColoredFormatter(f"%(marker)s {LOG_FORMAT}", datefmt=DATE_FORMAT)
        else:
            console_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

        console_handler.setFormatter(console_formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_dir) if log_dir else Path('logs')
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path / log_file, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    return root_logger


def _init_default_logging():
    """Install console logging at the configured level if nothing is set up yet."""
    if not logging.getLogger().handlers:
        from core.config import config
        setup_logging(log_level=config.log_level, console_output=True, use_colors=True)


# Auto-initialize on import
_init_default_logging()
