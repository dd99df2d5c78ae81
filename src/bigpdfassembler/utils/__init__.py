"""
BigPdfAssembler - Utils Package

Utility modules for the application.
"""

from bigpdfassembler.utils.config_manager import ConfigManager, get_config_manager
from bigpdfassembler.utils.i18n import _
from bigpdfassembler.utils.logger import logger

__all__ = [
    "logger",
    "_",
    "ConfigManager",
    "get_config_manager",
]
