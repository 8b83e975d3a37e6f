"""Logging configuration for bucketgit."""

import logging
from pathlib import Path
from typing import Optional
from rich.logging import RichHandler
from rich.console import Console
from rich.traceback import install

# Install rich traceback handler
install(show_locals=False)

# Console for rich output
console = Console()


class Logger:
    """Centralized logging for bucketgit."""

    _instance: Optional['Logger'] = None
    _logger: Optional[logging.Logger] = None
    _debug_mode: bool = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._logger is None:
            self.setup_logger()

    def setup_logger(self, debug: bool = False, log_file: Optional[Path] = None):
        """Setup the logger with appropriate handlers."""
        Logger._debug_mode = debug

        self._logger = logging.getLogger("bucketgit")
        self._logger.setLevel(logging.DEBUG if debug else logging.INFO)
        self._logger.handlers.clear()

        # Console handler with rich formatting
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=debug,
            rich_tracebacks=True,
            tracebacks_show_locals=debug
        )
        console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        self._logger.addHandler(console_handler)

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)

    @classmethod
    def configure(cls, debug: bool = False, log_file: Optional[Path] = None):
        """Create the singleton if needed and (re)apply handler settings."""
        cls().setup_logger(debug=debug, log_file=log_file)

    @classmethod
    def debug(cls, message: str, *args, **kwargs):
        """Log debug message."""
        if cls._instance and cls._instance._logger:
            cls._instance._logger.debug(message, *args, **kwargs)

    @classmethod
    def info(cls, message: str, *args, **kwargs):
        """Log info message."""
        if cls._instance and cls._instance._logger:
            cls._instance._logger.info(message, *args, **kwargs)

    @classmethod
    def warning(cls, message: str, *args, **kwargs):
        """Log warning message."""
        if cls._instance and cls._instance._logger:
            cls._instance._logger.warning(message, *args, **kwargs)

    @classmethod
    def error(cls, message: str, *args, **kwargs):
        """Log error message."""
        if cls._instance and cls._instance._logger:
            cls._instance._logger.error(message, *args, **kwargs)

    @classmethod
    def success(cls, message: str):
        """Log success message (using rich)."""
        console.print(f"✅ {message}", style="green")

