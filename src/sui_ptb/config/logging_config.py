"""
Logging Configuration for the PTB builder

Provides structured logging with:
- Timestamps
- Log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
- File rotation (1 file per day)
- Separate error log
- Console and file handlers
"""

import logging
import os
import sys
from pathlib import Path
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional


# Log directory (created on first use)
DEFAULT_LOG_DIR = Path.cwd() / "logs"

# Log formats
DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
SIMPLE_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_dir(log_dir: str | Path | None = None) -> Path:
    """Resolve the log directory from the argument, PTB_LOG_DIR, or the default."""
    path = Path(log_dir or os.getenv("PTB_LOG_DIR") or DEFAULT_LOG_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def setup_logger(
    name: str,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    console: bool = True,
    detailed: bool = False,
    log_dir: str | Path | None = None,
) -> logging.Logger:
    """
    Setup a logger with console and file handlers.

    Args:
        name: Logger name (typically module name)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional log file name (defaults to name.log)
        console: Whether to log to console
        detailed: Whether to use detailed format (includes file/line)
        log_dir: Directory for log files (defaults to PTB_LOG_DIR or ./logs)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger("sui_ptb", level=logging.DEBUG)
        >>> logger.info("Building execute PTB")
        >>> logger.error("Build failed", exc_info=True)
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    log_format = DETAILED_FORMAT if detailed else SIMPLE_FORMAT
    formatter = logging.Formatter(log_format, datefmt=DATE_FORMAT)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    # File handler with daily rotation
    directory = get_log_dir(log_dir)
    if log_file is None:
        log_file = f"{name}.log"

    file_handler = TimedRotatingFileHandler(
        directory / log_file,
        when="midnight",
        interval=1,
        backupCount=30,  # Keep 30 days of logs
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Separate error log
    error_handler = RotatingFileHandler(
        directory / f"{name}_errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding="utf-8",
    )
    error_handler.setLevel(logging.ERROR)
    error_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(error_handler)

    return logger


def get_builder_logger(
    debug: bool = False,
    log_dir: str | Path | None = None,
    level: Optional[int] = None,
) -> logging.Logger:
    """Get the root logger of the sui_ptb package, with file output.

    An explicit ``level`` wins over ``debug``.
    """
    if level is None:
        level = logging.DEBUG if debug else logging.INFO
    debug = debug or level <= logging.DEBUG
    return setup_logger("sui_ptb", level=level, detailed=debug, log_dir=log_dir)


def log_build(
    logger: logging.Logger,
    template_name: str,
    operation_name: str,
    command_count: int,
    input_count: int,
    success: bool = True,
    error: Optional[str] = None,
):
    """
    Log a PTB build in structured format.

    Args:
        logger: Logger instance
        template_name: Template (module) the build used
        operation_name: Operation (function) within the template
        command_count: Number of commands in the built PTB
        input_count: Number of inputs in the built PTB
        success: Whether the build succeeded
        error: Error message for failed builds
    """
    status = "SUCCESS" if success else "FAILED"
    msg = (
        f"BUILD {status} | {template_name}.{operation_name} | "
        f"Commands: {command_count} | Inputs: {input_count}"
    )
    if error:
        msg += f" | Error: {error}"

    if success:
        logger.info(msg)
    else:
        logger.error(msg)
