#!/usr/bin/env python3
"""
BigPdfAssembler - Entry point for python -m bigpdfassembler

This module allows the package to be run as a module:
    python -m bigpdfassembler
"""

import sys

from bigpdfassembler import main

if __name__ == "__main__":
    sys.exit(main())
