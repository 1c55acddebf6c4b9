"""
Logging helpers.

All modules log below the ``multihypotracking`` logger so a single call to
``set_log_level`` controls the whole package.
"""

import logging
from typing import Optional, Union

ROOT_LOGGER_NAME = 'multihypotracking'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def _root_logger() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)
        root.propagate = False
    return root


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Get a package logger.

    Args:
        name: Dotted child name (e.g. 'optimization.solver'). If None,
              the package root logger is returned.

    Returns:
        Configured logger.
    """
    root = _root_logger()
    if not name:
        return root
    return root.getChild(name)


def set_log_level(level: Union[int, str]):
    """Set the level of the package root logger."""
    if isinstance(level, str):
        level = level.upper()
    _root_logger().setLevel(level)
