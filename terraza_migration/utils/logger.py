# -*- coding: utf-8 -*-
"""
Centralized logging configuration for the terrace migration pipeline

Provides consistent logging setup across all modules with optional file output.
The CLI entry point calls setup_logging() once, then every module uses
logger = get_logger(__name__). Phase and rule banners go through log_section()
so that the console report keeps one layout across normalizer, projector and
stats passes.

Examples:
# In the entry point
    from terraza_migration.utils.logger import setup_logging
    setup_logging(log_file="logs/migration.log")

    # In any module
    from terraza_migration.utils.logger import get_logger, log_section
    logger = get_logger(__name__)
    log_section(logger, "GRAPH PROJECTION")
    logger.info("Projected 1,204 records")

"""
# Standard library
import logging
import sys
from pathlib import Path
from typing import Optional

# Global flag to prevent duplicate configuration
_logging_configured = False

SECTION_WIDTH = 60


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    format_string: str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
) -> None:
    """
    Configure logging for the migration run.

    Sets up console output and optional file output with consistent formatting.
    Safe to call multiple times (only the first call configures handlers).

    Args:
        level: Logging level (default: logging.INFO)
        log_file: Optional path to log file. Parent directories are created
        format_string: Log message format
    """
    global _logging_configured

    if _logging_configured:
        return

    formatter = logging.Formatter(format_string)
    handlers = []

    # Console handler (always included)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    # File handler (optional)
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True  # Override any existing configuration
    )

    # pymongo and neo4j are chatty at INFO
    logging.getLogger('neo4j').setLevel(max(level, logging.WARNING))
    logging.getLogger('pymongo').setLevel(max(level, logging.WARNING))

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_section(logger: logging.Logger, title: str, char: str = "=") -> None:
    """
    Log a banner around a section title.

    Args:
        logger: Target logger
        title: Section title (printed upper-case)
        char: Banner character
    """
    logger.info(char * SECTION_WIDTH)
    logger.info(title.upper())
    logger.info(char * SECTION_WIDTH)
