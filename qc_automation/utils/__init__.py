"""
Utility modules for the Quality Center automation system.
"""

from .logging import BUILD_LOGGER_NAME, setup_root_logger, get_build_logger
from .macros import expand, replace_macro, resolve, scoped_variables

__all__ = [
    "setup_root_logger",
    "BUILD_LOGGER_NAME",
    "get_build_logger",
    "expand",
    "replace_macro",
    "resolve",
    "scoped_variables",
]
