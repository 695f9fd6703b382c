"""
Logging configuration and utilities.
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional


BUILD_LOGGER_NAME = "qc_automation.build"


def get_build_logger() -> logging.Logger:
    """
    Logger standing for the build's log stream.

    Streamed process output and recovered installer/run logs are written here
    so that operators see them next to the provisioning messages.
    """
    return logging.getLogger(BUILD_LOGGER_NAME)


def setup_root_logger(log_file: Optional[Path] = None,
                     level: str = "INFO",
                     max_file_size_mb: int = 10,
                     backup_count: int = 5,
                     format_string: Optional[str] = None):
    """
    Set up the root logger for the application.

    Args:
        log_file: Optional log file path
        level: Logging level
        max_file_size_mb: Size at which the log file is rotated
        backup_count: Number of rotated files to keep
        format_string: Format of console and file records, a detailed default if None
    """
    root_logger = logging.getLogger()

    # Clear any existing handlers
    root_logger.handlers.clear()

    root_logger.setLevel(getattr(logging, level.upper()))

    formatter = logging.Formatter(
        format_string or
        "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
    )
    # Process output is already formatted by the producing program
    build_formatter = logging.Formatter("%(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.addFilter(lambda record: not record.name.startswith(BUILD_LOGGER_NAME))
    root_logger.addHandler(console_handler)

    build_handler = logging.StreamHandler()
    build_handler.setFormatter(build_formatter)
    build_handler.addFilter(lambda record: record.name.startswith(BUILD_LOGGER_NAME))
    root_logger.addHandler(build_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set levels for third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
