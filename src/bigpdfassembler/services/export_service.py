"""
BigPdfAssembler - Export Service Module

Turns merge and split plans into output artifacts through the PDF codec
and hands them to a delivery target.

Merges produce exactly one artifact, delivered immediately. Splits
produce one artifact per group, processed strictly one at a time and
delivered through a rate-limited, cancellable DeliveryQueue.
"""

import io
import os
import threading
import time
import zipfile
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bigpdfassembler.config import DEFAULT_MERGE_FILENAME, PDF_EXTENSION
from bigpdfassembler.constants import DEFAULT_DELIVERY_DELAY_MS
from bigpdfassembler.services.delivery_queue import DeliveryQueue
from bigpdfassembler.services.export_config import (
    MergeConfiguration,
    SplitConfiguration,
    SplitMethod,
)
from bigpdfassembler.services.merge_planner import PlannedPage, plan_merge
from bigpdfassembler.services.page_model import SourceDocument
from bigpdfassembler.services.partition_planner import plan_partition
from bigpdfassembler.services.pdf_codec import (
    EncryptionOptions,
    PdfCodec,
    PikepdfCodec,
    SaveOptions,
    codec_error,
)
from bigpdfassembler.services.range_parser import format_page_ranges
from bigpdfassembler.utils.exceptions import (
    CodecError,
    EmptySelectionError,
    ExportBusyError,
    OutputPathError,
    ValidationError,
)
from bigpdfassembler.utils.format_utils import format_file_size
from bigpdfassembler.utils.i18n import _
from bigpdfassembler.utils.logger import logger
from bigpdfassembler.utils.timer import TimerFactory

ZIP_EXTENSION = ".zip"


@dataclass
class OutputArtifact:
    """One finished output file awaiting delivery.

    Attributes:
        filename: File name the delivery target should use
        data: Serialized file content
        index: Position in delivery order (0-based)
    """

    filename: str
    data: bytes = field(repr=False)
    index: int = 0

    @property
    def size_bytes(self) -> int:
        return len(self.data)


# ---------------------------------------------------------------------------
# Filename rules
# ---------------------------------------------------------------------------


def _strip_pdf_extension(name: str) -> str:
    if name.lower().endswith(PDF_EXTENSION):
        return name[: -len(PDF_EXTENSION)]
    return name


def merge_filename(custom: str = "") -> str:
    """File name of a merged document.

    A trailing ``.pdf`` in the custom name is not doubled; an empty name
    falls back to the default merge file name.
    """
    stem = _strip_pdf_extension(custom.strip())
    return f"{stem or DEFAULT_MERGE_FILENAME}{PDF_EXTENSION}"


def split_filename(
    source_name: str,
    method: SplitMethod,
    group: Iterable[int],
    index: int,
    include_page_numbers: bool = True,
) -> str:
    """File name of one split output.

    Args:
        source_name: Source file name, with or without ``.pdf``
        method: Split method the group was produced by
        group: 0-indexed pages of the group, ascending
        index: Position of the group in the partition plan
        include_page_numbers: Name files after their pages instead of
            their position

    Returns:
        The output file name
    """
    stem = _strip_pdf_extension(source_name)
    pages = list(group)

    if method is SplitMethod.ALL_PAGES:
        if include_page_numbers:
            return f"{stem}_page_{pages[0] + 1}{PDF_EXTENSION}"
        return f"{stem}_{index + 1}{PDF_EXTENSION}"

    if include_page_numbers:
        return f"{stem}_pages_{pages[0] + 1}-{pages[-1] + 1}{PDF_EXTENSION}"
    return f"{stem}_part_{index + 1}{PDF_EXTENSION}"


# ---------------------------------------------------------------------------
# Sources and delivery targets
# ---------------------------------------------------------------------------


def open_source_document(path: str | Path, codec: PdfCodec | None = None) -> SourceDocument:
    """Open a PDF file and pre-extract what the planners need.

    Args:
        path: Path to a ``.pdf`` file
        codec: Codec used to count pages (PikepdfCodec by default)

    Returns:
        A SourceDocument with every page selected and unrotated

    Raises:
        ValidationError: The file is not a PDF.
        CodecError: The file cannot be read or parsed.
    """
    path = str(path)
    name = os.path.basename(path)
    if not name.lower().endswith(PDF_EXTENSION):
        raise ValidationError("file", path, _("only PDF files are supported"))

    codec = codec or PikepdfCodec()
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise codec_error(name, e) from e

    handle, page_count = codec.load(data, name)
    codec.close(handle)

    logger.info(f"Opened {name}: {page_count} pages, {format_file_size(len(data))}")
    return SourceDocument(name=name, page_count=page_count, size_bytes=len(data), path=path)


def bundle_artifacts(artifacts: Iterable[OutputArtifact], name: str) -> OutputArtifact:
    """Package several artifacts into a single ZIP artifact.

    Args:
        artifacts: Artifacts to bundle, in delivery order
        name: Archive name; ``.zip`` is appended when missing

    Returns:
        One artifact holding the archive
    """
    if not name.lower().endswith(ZIP_EXTENSION):
        name += ZIP_EXTENSION

    buf = io.BytesIO()
    count = 0
    with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for artifact in artifacts:
            archive.writestr(artifact.filename, artifact.data)
            count += 1

    logger.info(f"Bundled {count} files into {name}")
    return OutputArtifact(filename=name, data=buf.getvalue(), index=0)


class DirectoryDelivery:
    """Delivery target writing each artifact into a directory.

    Existing files are kept unless ``overwrite`` is set; a numbered name
    such as ``report (1).pdf`` is used instead.
    """

    def __init__(self, output_dir: str | Path, overwrite: bool = False) -> None:
        self.output_dir = str(output_dir)
        self.overwrite = overwrite
        self.written: list[str] = []
        self._lock = threading.Lock()

    def __call__(self, artifact: OutputArtifact) -> None:
        with self._lock:
            try:
                os.makedirs(self.output_dir, exist_ok=True)
                target = self._target_path(artifact.filename)
                with open(target, "wb") as f:
                    f.write(artifact.data)
            except OSError as e:
                raise OutputPathError(self.output_dir, str(e)) from e

            self.written.append(target)
        logger.info(
            _("Saved {0} ({1})").format(target, format_file_size(artifact.size_bytes))
        )

    def _target_path(self, filename: str) -> str:
        target = os.path.join(self.output_dir, filename)
        if self.overwrite or not os.path.exists(target):
            return target

        stem, ext = os.path.splitext(filename)
        counter = 1
        while os.path.exists(target):
            target = os.path.join(self.output_dir, f"{stem} ({counter}){ext}")
            counter += 1
        return target


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class ExportOrchestrator:
    """Runs merge and split exports, one at a time.

    Every export works on snapshots of its input documents taken when it
    starts; later edits only affect the next export.
    """

    def __init__(
        self,
        codec: PdfCodec | None,
        deliver: Callable[[OutputArtifact], None],
        delay_ms: int = DEFAULT_DELIVERY_DELAY_MS,
        *,
        clock: Callable[[], float] = time.monotonic,
        timer_factory: TimerFactory | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            codec: PDF codec; PikepdfCodec when None
            deliver: Delivery target receiving finished artifacts
            delay_ms: Minimum gap between two split deliveries
            clock: Monotonic clock in seconds, forwarded to the queue
            timer_factory: Timer factory, forwarded to the queue
        """
        self._codec = codec or PikepdfCodec()
        self._deliver = deliver
        self._queue: DeliveryQueue[OutputArtifact] = DeliveryQueue(
            self._deliver_artifact,
            delay_ms=delay_ms,
            clock=clock,
            timer_factory=timer_factory,
        )
        self._busy = threading.Lock()
        self._running: str | None = None
        self._closed = False

    def __enter__(self) -> "ExportOrchestrator":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def is_busy(self) -> bool:
        return self._running is not None

    @property
    def pending_deliveries(self) -> int:
        return self._queue.pending_count

    def close(self) -> int:
        """Stop delivering: artifacts not delivered yet are dropped.

        Returns:
            Number of dropped artifacts
        """
        self._closed = True
        return self._queue.cancel()

    def wait_for_delivery(self, timeout: float | None = None) -> bool:
        """Block until every queued artifact was delivered or dropped.

        Returns:
            True if delivery finished, False on timeout

        Raises:
            The error of a failed timer-driven delivery, reported once.
        """
        done = self._queue.wait_until_idle(timeout)
        error = self._queue.take_error()
        if error is not None:
            raise error
        return done

    @contextmanager
    def _exclusive(self, kind: str) -> Iterator[None]:
        if self._closed:
            raise RuntimeError("export orchestrator has been closed")
        if not self._busy.acquire(blocking=False):
            raise ExportBusyError(self._running or kind)
        self._running = kind
        try:
            yield
        finally:
            self._running = None
            self._busy.release()

    def _deliver_artifact(self, artifact: OutputArtifact) -> None:
        logger.info(f"Delivering {artifact.filename} (#{artifact.index + 1})")
        self._deliver(artifact)

    def _load(self, document: SourceDocument) -> Any:
        try:
            data = document.read_bytes()
        except OSError as e:
            raise codec_error(document.name, e) from e
        handle, page_count = self._codec.load(data, document.name)
        if page_count != document.page_count:
            logger.warning(
                f"{document.name} now has {page_count} pages, "
                f"{document.page_count} expected"
            )
        return handle

    # -- merge ---------------------------------------------------------------

    def export_merge(
        self, documents: Iterable[SourceDocument], config: MergeConfiguration
    ) -> OutputArtifact:
        """Merge the selected pages of ``documents`` into one PDF.

        Args:
            documents: Source documents in merge order
            config: Merge settings

        Returns:
            The delivered artifact

        Documents without selected pages contribute nothing; if no page is
        selected at all, the merged document has no pages.

        Raises:
            EmptySelectionError: No document was given.
            CodecError: A source could not be processed; nothing is delivered.
        """
        with self._exclusive("merge"):
            snapshot = [document.snapshot() for document in documents]
            if not snapshot:
                raise EmptySelectionError()
            plan = plan_merge(snapshot)

            filename = merge_filename(config.filename)
            logger.info(
                f"Merging {len(plan)} pages from {len(snapshot)} documents into {filename}"
            )

            by_id = {document.doc_id: document for document in snapshot}
            output = self._codec.create_document(filename)
            # Copied pages may still read stream data from their sources,
            # so sources stay open until the output is saved.
            sources: list[Any] = []
            try:
                for doc_id, run in plan.by_document():
                    document = by_id[doc_id]
                    self._merge_run(output, document, run, sources)

                self._codec.set_metadata(output, config.metadata.resolved())

                security = config.security
                if security.enable_encryption:
                    self._codec.encrypt(
                        output,
                        EncryptionOptions(
                            user_password=security.user_password,
                            owner_password=security.effective_owner_password,
                            permissions=security.permissions,
                        ),
                    )
                    logger.info("Encryption enabled for merged document")

                compression = config.compression
                data = self._codec.save(
                    output,
                    SaveOptions(
                        compress=compression.enabled,
                        tuning=compression.level if compression.enabled else None,
                    ),
                )
            finally:
                for source in sources:
                    self._codec.close(source)
                self._codec.close(output)

            artifact = OutputArtifact(filename=filename, data=data, index=0)
            logger.info(f"Merged {filename}: {format_file_size(artifact.size_bytes)}")
            self._deliver_artifact(artifact)
            return artifact

    def _merge_run(
        self,
        output: Any,
        document: SourceDocument,
        run: list[PlannedPage],
        sources: list[Any],
    ) -> None:
        indices = [planned.page_index for planned in run]
        logger.debug(f"Adding pages {format_page_ranges(indices)} of {document.name}")
        try:
            source = self._load(document)
            sources.append(source)
            pages = self._codec.copy_pages(source, indices)
            for planned, page in zip(run, pages):
                added = self._codec.add_page(output, page)
                if planned.rotation:
                    self._codec.set_rotation(added, planned.rotation)
        except CodecError as e:
            if e.file_name == document.name:
                raise
            raise CodecError(document.name, e.reason, error_code=e.error_code) from e

    # -- split ---------------------------------------------------------------

    def export_split(
        self, document: SourceDocument, config: SplitConfiguration
    ) -> list[OutputArtifact]:
        """Split ``document`` into one PDF per partition group.

        Each artifact is queued for delivery as soon as it is produced. If a
        group fails, the remaining groups are skipped; artifacts already
        queued are still delivered.

        Returns:
            The produced artifacts, in delivery order

        Raises:
            ValidationError: The split settings do not fit the document.
            CodecError: A group could not be produced.
        """
        with self._exclusive("split"):
            document = document.snapshot()
            plan = plan_partition(config, document.page_count)
            self._queue.restart_schedule()
            logger.info(
                f"Splitting {document.name} ({config.method.value}) into {len(plan)} files"
            )
            if not len(plan):
                return []

            artifacts: list[OutputArtifact] = []
            source = self._load(document)
            try:
                for index, group in enumerate(plan.groups):
                    filename = split_filename(
                        document.name, plan.method, group, index, config.include_page_numbers
                    )
                    data = self._split_group(source, document, group, index, filename)
                    artifact = OutputArtifact(filename=filename, data=data, index=index)
                    logger.info(
                        f"Produced {filename} (pages {format_page_ranges(group)}, "
                        f"{format_file_size(artifact.size_bytes)})"
                    )
                    artifacts.append(artifact)
                    self._queue.enqueue(artifact)
            finally:
                self._codec.close(source)

            return artifacts

    def _split_group(
        self,
        source: Any,
        document: SourceDocument,
        group: tuple[int, ...],
        index: int,
        filename: str,
    ) -> bytes:
        output = self._codec.create_document(filename)
        try:
            for page in self._codec.copy_pages(source, list(group)):
                self._codec.add_page(output, page)
            return self._codec.save(output, SaveOptions())
        except CodecError as e:
            raise CodecError(
                document.name, e.reason, group_index=index, error_code=e.error_code
            ) from e
        finally:
            self._codec.close(output)
