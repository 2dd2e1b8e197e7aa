"""
Centralized logging configuration for the Sigmora engine.
"""
import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Union


_LOGGERS = {}


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = "logs"
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR) as int or name
        log_file: Optional specific log file name
        log_dir: Directory for log files; None for console-only logging
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s'
    )
    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_dir is None:
        logging.info("Logging initialized (console only)")
        return

    Path(log_dir).mkdir(parents=True, exist_ok=True)
    if log_file is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = f"sigmora_{timestamp}.log"
    log_path = Path(log_dir) / log_file

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(logging.DEBUG)  # Always log everything to file
    file_handler.setFormatter(detailed_formatter)
    root_logger.addHandler(file_handler)

    logging.info(f"Logging initialized. Log file: {log_path}")


def setup_logging_from_config(config) -> None:
    """Configure logging from a config.settings.Config instance."""
    setup_logging(
        level=config.logging.level,
        log_file=config.logging.log_file,
        log_dir=config.logging.log_dir
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name not in _LOGGERS:
        _LOGGERS[name] = logging.getLogger(name)
    return _LOGGERS[name]
