"""
BigPdfAssembler - Python package for merging and splitting PDF files

This package plans page selections, rotations and partitions of PDF
documents and exports the result locally through pikepdf.
"""

import locale

__version__ = "1.0.0"
__author__ = "BigLinux Team"
__license__ = "GPL-3.0"


def setup_locale() -> None:
    """Initialize the process locale for translated messages."""
    try:
        locale.setlocale(locale.LC_ALL, "")
    except locale.Error:
        # Fallback to C locale if system locale is not properly configured
        locale.setlocale(locale.LC_ALL, "C")


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application.

    Returns:
        The application exit code.
    """
    setup_locale()

    from bigpdfassembler.cli import main as cli_main

    return cli_main(argv)


__all__ = ["main", "__version__", "__author__", "__license__", "setup_locale"]
