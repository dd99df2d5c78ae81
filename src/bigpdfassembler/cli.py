#!/usr/bin/env python3
"""
BigPdfAssembler CLI - merge and split PDF documents from the terminal.

Usage:
    python -m bigpdfassembler <command> [options]

Commands:
    merge       Merge several PDFs into one
    split       Split a PDF into several files
    info        Show PDF metadata and page count

Examples:
    # Merge, keeping pages 1-3 of the first file and rotating page 2 of the second
    bigpdfassembler-cli merge a.pdf b.pdf -o out/ --pages 1:1-3 --rotate 2:2:90

    # Merge with metadata, a password and compression
    bigpdfassembler-cli merge a.pdf b.pdf -o out/ --title "Report" \\
        --encrypt --user-password secret --deny printing --compress high

    # Split
    bigpdfassembler-cli split input.pdf -o parts/ --all
    bigpdfassembler-cli split input.pdf -o parts/ --ranges "1-3, 5, 7-9"
    bigpdfassembler-cli split input.pdf -o parts/ --every 10 --zip

    # Info
    bigpdfassembler-cli info document.pdf
"""

import argparse
import logging
import sys
from pathlib import Path

from bigpdfassembler.config import APP_DESCRIPTION
from bigpdfassembler.constants import DEFAULT_DELIVERY_DELAY_MS
from bigpdfassembler.services.export_config import (
    PERMISSION_NAMES,
    CompressionConfig,
    CompressionLevel,
    DocumentMetadata,
    MergeConfiguration,
    Permissions,
    SecurityConfig,
    SplitConfiguration,
    SplitMethod,
    parse_keywords,
)
from bigpdfassembler.services.export_service import (
    DirectoryDelivery,
    ExportOrchestrator,
    OutputArtifact,
    bundle_artifacts,
    open_source_document,
)
from bigpdfassembler.services.page_model import (
    DocumentQueue,
    RotationDirection,
    SourceDocument,
    normalize_rotation,
)
from bigpdfassembler.services.pdf_codec import get_pdf_info
from bigpdfassembler.services.range_parser import parse_page_ranges
from bigpdfassembler.utils.config_manager import ConfigManager, get_config_manager
from bigpdfassembler.utils.exceptions import BigPdfAssemblerError, ValidationError
from bigpdfassembler.utils.format_utils import format_file_size
from bigpdfassembler.utils.i18n import _

# ---------------------------------------------------------------------------
# Per-file page options
# ---------------------------------------------------------------------------


def _parse_file_option(text: str, expected: str, option: str) -> tuple[int, list[str]]:
    """Split ``FILE:...`` into the 0-indexed file position and the remaining fields.

    Args:
        text: Raw option value, e.g. "2:1-3" or "1:4:90"
        expected: Expected layout, e.g. "FILE:RANGES"
        option: Option name used in error messages
    """
    fields = text.split(":")
    if len(fields) != expected.count(":") + 1:
        raise ValidationError(option, text, _("expected {0}").format(expected))
    try:
        position = int(fields[0]) - 1
    except ValueError:
        raise ValidationError(option, text, _("file number must be an integer")) from None
    return position, fields[1:]


def _selected_pages(ranges: str, page_count: int) -> list[int]:
    return sorted({page for group in parse_page_ranges(ranges, page_count) for page in group})


def _apply_page_options(queue: DocumentQueue, args: argparse.Namespace) -> None:
    """Apply --pages and --rotate to the queued documents."""
    for value in args.pages or []:
        position, (ranges,) = _parse_file_option(value, "FILE:RANGES", "--pages")
        document = _document_at(queue, position, value, "--pages")
        document.page_set.select_pages(_selected_pages(ranges, document.page_count))

    for value in args.rotate or []:
        position, (ranges, degrees_s) = _parse_file_option(
            value, "FILE:RANGES:DEGREES", "--rotate"
        )
        document = _document_at(queue, position, value, "--rotate")
        try:
            degrees = int(degrees_s)
        except ValueError:
            raise ValidationError("--rotate", value, _("degrees must be an integer")) from None
        if degrees % 90:
            raise ValidationError("--rotate", value, _("degrees must be a multiple of 90"))

        if degrees > 0:
            direction = RotationDirection.CLOCKWISE
        else:
            direction = RotationDirection.COUNTERCLOCKWISE
        turns = normalize_rotation(abs(degrees)) // 90
        for index in _selected_pages(ranges, document.page_count):
            for _turn in range(turns):
                document.page_set.rotate(index, direction)


def _document_at(
    queue: DocumentQueue, position: int, value: str, option: str
) -> SourceDocument:
    if not 0 <= position < len(queue):
        raise ValidationError(
            option, value, _("file number must be between 1 and {0}").format(len(queue))
        )
    return queue[position]


def _output_dir(args: argparse.Namespace, config: ConfigManager) -> Path:
    output = args.output or config.get("delivery.output_dir", "")
    if not output:
        raise ValidationError("--output", None, _("no output directory given"))
    return Path(output)


# ---------------------------------------------------------------------------
# Argument parser construction
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with subcommands."""
    p = argparse.ArgumentParser(
        prog="bigpdfassembler-cli",
        description=APP_DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("-v", "--verbose", action="store_true", help=_("Verbose logging (DEBUG)"))
    p.add_argument("--config", type=Path, default=None, help=_("Settings file to use"))

    sub = p.add_subparsers(dest="command", help=_("Available commands"))

    # --- merge ---
    merge_p = sub.add_parser("merge", help=_("Merge several PDFs into one"))
    merge_p.add_argument("inputs", nargs="+", type=Path, help=_("Input PDF files (in order)"))
    merge_p.add_argument("-o", "--output", type=Path, default=None, help=_("Output directory"))
    merge_p.add_argument(
        "--filename", type=str, default=None, help=_("Output file name (default from settings)")
    )
    merge_p.add_argument(
        "--pages",
        action="append",
        metavar="FILE:RANGES",
        help=_("Keep only these pages of input FILE (1-based), e.g. '2:1-3,5'. Repeatable."),
    )
    merge_p.add_argument(
        "--rotate",
        action="append",
        metavar="FILE:RANGES:DEGREES",
        help=_("Rotate pages of input FILE by a multiple of 90 degrees. Repeatable."),
    )

    merge_m = merge_p.add_argument_group(_("Metadata"))
    merge_m.add_argument("--title", type=str, default=None, help=_("Document title"))
    merge_m.add_argument("--author", type=str, default=None, help=_("Document author"))
    merge_m.add_argument("--subject", type=str, default="", help=_("Document subject"))
    merge_m.add_argument(
        "--keywords", type=str, default="", help=_("Comma-separated keywords")
    )

    merge_s = merge_p.add_argument_group(_("Security"))
    merge_s.add_argument("--encrypt", action="store_true", help=_("Password-protect the output"))
    merge_s.add_argument("--user-password", type=str, default="", help=_("Password to open"))
    merge_s.add_argument(
        "--owner-password",
        type=str,
        default="",
        help=_("Password to change permissions (default: the user password)"),
    )
    merge_s.add_argument(
        "--deny",
        action="append",
        choices=PERMISSION_NAMES,
        default=[],
        metavar="PERMISSION",
        help=_("Withhold a permission ({0}). Repeatable.").format(", ".join(PERMISSION_NAMES)),
    )

    merge_p.add_argument(
        "--compress",
        choices=[level.value for level in CompressionLevel],
        default=None,
        help=_("Compress the output at this level"),
    )

    # --- split ---
    split_p = sub.add_parser("split", help=_("Split a PDF into several files"))
    split_p.add_argument("input", type=Path, help=_("Input PDF file"))
    split_p.add_argument("-o", "--output", type=Path, default=None, help=_("Output directory"))
    split_mode = split_p.add_mutually_exclusive_group(required=True)
    split_mode.add_argument("--all", action="store_true", help=_("One file per page"))
    split_mode.add_argument(
        "--ranges",
        type=str,
        metavar="RANGES",
        help=_("One file per range (e.g. '1-3, 5, 7-9')"),
    )
    split_mode.add_argument("--every", type=int, metavar="N", help=_("Split every N pages"))
    split_p.add_argument(
        "--no-page-numbers",
        action="store_true",
        default=None,
        help=_("Number output files by part instead of page"),
    )
    split_p.add_argument(
        "--zip", action="store_true", help=_("Write all parts into a single ZIP archive")
    )
    split_p.add_argument(
        "--delay-ms",
        type=int,
        default=None,
        metavar="MS",
        help=_("Gap between two written files (default from settings)"),
    )

    # --- info ---
    info_p = sub.add_parser("info", help=_("Show PDF metadata and page count"))
    info_p.add_argument("input", type=Path, help=_("Input PDF file"))

    return p


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _merge_configuration(args: argparse.Namespace, config: ConfigManager) -> MergeConfiguration:
    metadata = DocumentMetadata(
        title=args.title if args.title is not None else config.get("merge.title", ""),
        author=args.author if args.author is not None else config.get("merge.author", ""),
        subject=args.subject,
        keywords=parse_keywords(args.keywords),
    )

    security = SecurityConfig(
        enable_encryption=args.encrypt,
        user_password=args.user_password,
        owner_password=args.owner_password,
        permissions=Permissions(**{name: False for name in args.deny}),
    )

    compression = CompressionConfig()
    if args.compress is not None:
        compression = CompressionConfig(enabled=True, level=CompressionLevel(args.compress))

    filename = args.filename if args.filename is not None else config.get("merge.filename", "")
    return MergeConfiguration(
        filename=filename, metadata=metadata, security=security, compression=compression
    )


def _cmd_merge(args, config: ConfigManager, logger) -> int:
    """Handle the 'merge' command."""
    output_dir = _output_dir(args, config)
    queue = DocumentQueue(open_source_document(p) for p in args.inputs)
    _apply_page_options(queue, args)
    merge_config = _merge_configuration(args, config)

    delivery = DirectoryDelivery(output_dir, config.get("delivery.overwrite_existing", False))
    with ExportOrchestrator(None, delivery) as orchestrator:
        artifact = orchestrator.export_merge(queue.ordered(), merge_config)

    print(f"Merged {len(queue)} files → {delivery.written[-1]}")
    logger.debug(f"Merged output size: {format_file_size(artifact.size_bytes)}")
    return 0


def _split_configuration(args: argparse.Namespace, config: ConfigManager) -> SplitConfiguration:
    if args.no_page_numbers:
        include_page_numbers = False
    else:
        include_page_numbers = config.get("split.include_page_numbers", True)

    if args.all:
        return SplitConfiguration(
            method=SplitMethod.ALL_PAGES, include_page_numbers=include_page_numbers
        )
    if args.ranges is not None:
        return SplitConfiguration(
            method=SplitMethod.PAGE_RANGES,
            ranges=args.ranges,
            include_page_numbers=include_page_numbers,
        )
    return SplitConfiguration(
        method=SplitMethod.EVERY_N_PAGES,
        chunk_size=args.every,
        include_page_numbers=include_page_numbers,
    )


def _cmd_split(args, config: ConfigManager, logger) -> int:
    """Handle the 'split' command."""
    output_dir = _output_dir(args, config)
    document = open_source_document(args.input)
    split_config = _split_configuration(args, config)
    delivery = DirectoryDelivery(output_dir, config.get("delivery.overwrite_existing", False))

    if args.zip:
        collected: list[OutputArtifact] = []
        with ExportOrchestrator(None, collected.append, delay_ms=0) as orchestrator:
            orchestrator.export_split(document, split_config)
        delivery(bundle_artifacts(collected, document.stem))
        print(f"Split into {len(collected)} parts → {delivery.written[-1]}")
        return 0

    if args.delay_ms is not None:
        delay_ms = args.delay_ms
    else:
        delay_ms = config.get("delivery.delay_ms", DEFAULT_DELIVERY_DELAY_MS)

    orchestrator = ExportOrchestrator(None, delivery, delay_ms=delay_ms)
    try:
        try:
            artifacts = orchestrator.export_split(document, split_config)
        finally:
            # Parts produced before a failure are still written
            orchestrator.wait_for_delivery()
    except KeyboardInterrupt:
        dropped = orchestrator.close()
        print(
            f"Interrupted: {len(delivery.written)} files written, {dropped} dropped",
            file=sys.stderr,
        )
        return 1
    finally:
        orchestrator.close()

    print(f"Split into {len(artifacts)} parts ({document.page_count} total pages)")
    for f in delivery.written:
        print(f"  → {f}")
    logger.debug(f"Split method: {split_config.method.value}")
    return 0


def _cmd_info(args, _config: ConfigManager, _logger) -> int:
    """Handle the 'info' command."""
    info = get_pdf_info(args.input)
    print(f"File:       {info.path}")
    print(f"Pages:      {info.page_count}")
    print(f"Size:       {format_file_size(info.file_size_bytes)} ({info.file_size_bytes:,} bytes)")
    print(f"Version:    PDF {info.pdf_version}")
    print(f"Encrypted:  {'Yes' if info.encrypted else 'No'}")
    if info.title:
        print(f"Title:      {info.title}")
    if info.author:
        print(f"Author:     {info.author}")
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Configure logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger().setLevel(level)
    logger = logging.getLogger("bigpdfassembler.cli")

    config = ConfigManager(str(args.config)) if args.config else get_config_manager()

    handlers = {
        "merge": _cmd_merge,
        "split": _cmd_split,
        "info": _cmd_info,
    }

    handler = handlers.get(args.command)
    if not handler:
        parser.print_help()
        return 1

    try:
        return handler(args, config, logger)
    except BigPdfAssemblerError as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
