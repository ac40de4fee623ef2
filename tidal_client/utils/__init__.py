"""
Utilities Module

Logging configuration helpers for applications embedding the client.
"""

from .logging_config import TidalLogger, setup_logging, get_logger

__all__ = [
    "TidalLogger",
    "setup_logging",
    "get_logger",
]
