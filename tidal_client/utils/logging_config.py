"""
TIDAL Client Logging Configuration

structlog on top of stdlib logging, for applications embedding the client:
- Colored console output for development
- Optional rotating file output
- Quieter defaults for the HTTP stack

The library itself only ever calls ``structlog.get_logger(__name__)``; it
never configures logging on import.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

import structlog


class TidalLogger:
    """
    Logging setup for applications using the TIDAL client.

    Routes structlog events through stdlib handlers so the client's logs
    land wherever the host application sends its own.
    """

    # Libraries whose chatter drowns out client logs
    EXTERNAL_MODULES = ["aiohttp.access", "aiohttp.client", "aiohttp.internal", "asyncio"]

    def __init__(
        self,
        log_level: str = "INFO",
        enable_console: bool = True,
        log_file: Optional[str] = None,
        max_file_size: int = 10 * 1024 * 1024,  # 10MB
        backup_count: int = 5
    ):
        """
        Initialize the logging system.

        Args:
            log_level: Default log level name
            enable_console: Whether to log to stdout
            log_file: Optional path of a rotating log file
            max_file_size: Maximum size per log file before rotation
            backup_count: Number of rotated files to keep
        """
        self.log_level = getattr(logging, log_level.upper())
        self.enable_console = enable_console
        self.log_file = Path(log_file) if log_file else None
        self.max_file_size = max_file_size
        self.backup_count = backup_count

        self._setup_logging()

    def _setup_logging(self):
        root_logger = logging.getLogger()
        root_logger.handlers.clear()

        self._configure_structlog()

        if self.log_file is not None:
            root_logger.addHandler(self._create_rotating_file_handler())

        if self.enable_console:
            root_logger.addHandler(self._create_console_handler())

        self._quiet_external_loggers()

        root_logger.setLevel(self.log_level)

    def _configure_structlog(self):
        shared_processors = [
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
        ]

        structlog.configure(
            processors=shared_processors + [
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

    def _create_rotating_file_handler(self) -> logging.handlers.RotatingFileHandler:
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            filename=self.log_file,
            maxBytes=self.max_file_size,
            backupCount=self.backup_count,
            encoding="utf-8"
        )
        handler.setLevel(self.log_level)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=False),
            )
        )
        return handler

    def _create_console_handler(self) -> logging.StreamHandler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(self.log_level)
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=True),
            )
        )
        return handler

    def _quiet_external_loggers(self):
        external_level = logging.WARNING
        for module in self.EXTERNAL_MODULES:
            logging.getLogger(module).setLevel(external_level)

    def get_logger(self, name: str) -> structlog.BoundLogger:
        """Get a structured logger for a specific component."""
        return structlog.get_logger(name)


# Global logger instance
_logger_instance: Optional[TidalLogger] = None


def setup_logging(
    log_level: str = "INFO",
    enable_console: bool = True,
    log_file: Optional[str] = None,
    **kwargs
) -> TidalLogger:
    """
    Setup the global logging configuration.

    Args:
        log_level: Default log level name
        enable_console: Whether to log to stdout
        log_file: Optional path of a rotating log file
        **kwargs: Additional arguments for TidalLogger

    Returns:
        Configured logger instance
    """
    global _logger_instance

    _logger_instance = TidalLogger(
        log_level=log_level,
        enable_console=enable_console,
        log_file=log_file,
        **kwargs
    )

    return _logger_instance


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Get a logger for a specific component.

    Works before ``setup_logging()`` too; structlog then uses its defaults.
    """
    if _logger_instance is None:
        return structlog.get_logger(name)
    return _logger_instance.get_logger(name)
