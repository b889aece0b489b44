"""
Utility Functions Module for Terramate Selector

This module provides various utility functions used throughout the application.

Functions:
    setup_logging: Configures application logging
    parse_log_level: Converts a level name into a logging level
"""

import logging

logger = logging.getLogger(__name__)


def setup_logging(level: int = logging.WARNING) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_log_level(name: str) -> int:
    """Convert a level name such as 'debug' into a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level '{name}'")
    return level
