"""
Logging for discovery runs: colored console output at the configured level,
full DEBUG detail (every skipped table) in a rotating discovery.log.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog
from config.settings import Settings

LOG_FILE = 'discovery.log'

# Libraries that log every metadata statement or parse step
QUIET_LOGGERS = {
    'sqlalchemy': logging.WARNING,
    'sqlglot': logging.ERROR,
}

LEVEL_COLORS = {
    'DEBUG': 'cyan',
    'INFO': 'green',
    'WARNING': 'yellow',
    'ERROR': 'red',
    'CRITICAL': 'red,bg_white',
}


def _console_handler(level_name: str) -> logging.Handler:
    handler = colorlog.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level_name.upper(), logging.INFO))
    handler.setFormatter(colorlog.ColoredFormatter(
        '%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s: %(message)s',
        log_colors=LEVEL_COLORS,
    ))
    return handler


def _file_handler(log_dir: Path) -> logging.Handler:
    handler = RotatingFileHandler(
        log_dir / LOG_FILE,
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding='utf-8',
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    ))
    return handler


def setup_logging(settings: Settings) -> logging.Logger:
    """
    Replace the root logger's handlers with the console and file handlers.

    Returns:
        Configured root logger
    """
    settings.paths.log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(settings.logging.level))
    root_logger.addHandler(_file_handler(settings.paths.log_dir))

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger
