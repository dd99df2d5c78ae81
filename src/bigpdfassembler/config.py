#!/usr/bin/env python3
"""
BigPdfAssembler - Configuration Module

This module contains all configuration constants and paths used by the application.
"""

import logging
import os
from typing import Final

# ============================================================================
# Application Constants
# ============================================================================

APP_NAME: Final[str] = "Big PDF Assembler"
APP_ID: Final[str] = "br.com.biglinux.bigpdfassembler"
APP_VERSION: Final[str] = "1.0.0"
APP_DESCRIPTION: Final[str] = "Merge, split, rotate and protect PDF documents locally"

# ============================================================================
# Output Defaults
# ============================================================================

DEFAULT_MERGE_FILENAME: Final[str] = "merged-document"
DEFAULT_MERGE_TITLE: Final[str] = "Merged Document"
DEFAULT_MERGE_AUTHOR: Final[str] = APP_NAME
PDF_EXTENSION: Final[str] = ".pdf"

# ============================================================================
# Configuration Directory
# ============================================================================

CONFIG_DIR: Final[str] = os.path.expanduser("~/.config/bigpdfassembler")
CONFIG_FILE_PATH: Final[str] = os.path.join(CONFIG_DIR, "settings.json")

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_LEVEL: int = logging.INFO
LOG_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOGGER_NAME: Final[str] = "BigPdfAssembler"
