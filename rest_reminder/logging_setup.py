"""
Logging configuration for the console and service runs.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

LEVELS = {
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warn': logging.WARNING,
    'warning': logging.WARNING,
    'error': logging.ERROR,
}


def resolve_level(level: Optional[str], verbose: bool = False) -> int:
    """Map a config level name to a logging level (unknown names -> INFO)"""
    if verbose:
        return logging.DEBUG
    return LEVELS.get((level or 'info').strip().lower(), logging.INFO)


def setup_logging(level: Optional[str] = 'info', log_file: Optional[str] = None, verbose: bool = False):
    """
    Configure the root logger.

    Args:
        level: debug, info, warn or error
        log_file: Also append to this file when set
        verbose: Force DEBUG regardless of level
    """
    handlers = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding='utf-8'))

    logging.basicConfig(
        level=resolve_level(level, verbose),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True
    )
