"""
BigPdfAssembler - PDF Codec

Byte-level PDF operations behind a small codec contract:
load, copy pages, create, add page, rotate, set metadata, encrypt, save.

The export orchestrator only talks to the PdfCodec protocol; PikepdfCodec
is the implementation used by the application.
"""

import io
import logging
import os
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any, Protocol

import pikepdf

from bigpdfassembler.constants import (
    HIGH_COMPRESSION_IMAGE_DPI,
    HIGH_COMPRESSION_JPEG_QUALITY,
    MIN_IMAGE_DIMENSION_PX,
)
from bigpdfassembler.services.export_config import (
    CompressionLevel,
    DocumentMetadata,
    Permissions,
)
from bigpdfassembler.services.page_model import normalize_rotation
from bigpdfassembler.utils.exceptions import CodecError
from bigpdfassembler.utils.i18n import _

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Error classification for codec operations."""

    NONE = auto()
    FILE_NOT_FOUND = auto()
    PERMISSION_DENIED = auto()
    CORRUPT_PDF = auto()
    PASSWORD_PROTECTED = auto()
    DISK_FULL = auto()
    UNKNOWN = auto()


def _classify_error(e: Exception) -> ErrorCode:
    """Classify an exception into an ErrorCode."""
    if isinstance(e, FileNotFoundError):
        return ErrorCode.FILE_NOT_FOUND
    if isinstance(e, PermissionError):
        return ErrorCode.PERMISSION_DENIED
    if isinstance(e, pikepdf.PasswordError):
        return ErrorCode.PASSWORD_PROTECTED
    if isinstance(e, pikepdf.PdfError):
        return ErrorCode.CORRUPT_PDF
    if isinstance(e, OSError) and e.errno == 28:
        return ErrorCode.DISK_FULL
    return ErrorCode.UNKNOWN


def _friendly_error(e: Exception) -> str:
    """Map common exceptions to user-friendly messages."""
    if isinstance(e, FileNotFoundError):
        return _("Could not find the file. Was it moved or deleted?")
    if isinstance(e, PermissionError):
        return _("Cannot read this file. Check its permissions.")
    if isinstance(e, pikepdf.PasswordError):
        return _("This PDF is password-protected. Remove the password first.")
    if isinstance(e, pikepdf.PdfError):
        return _("The PDF file appears to be damaged or invalid: {error}").format(error=e)
    return str(e)


def codec_error(file_name: str, e: Exception) -> CodecError:
    """Wrap a low-level exception into a CodecError for ``file_name``."""
    return CodecError(file_name, _friendly_error(e), error_code=_classify_error(e))


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


@dataclass
class EncryptionOptions:
    """Passwords and permissions handed to ``PdfCodec.encrypt``."""

    user_password: str = ""
    owner_password: str = ""
    permissions: Permissions = field(default_factory=Permissions)


@dataclass
class SaveOptions:
    """Serialization options handed to ``PdfCodec.save``.

    ``tuning`` is opaque to the orchestrator; codecs interpret it.
    """

    compress: bool = False
    tuning: CompressionLevel | None = None


class PdfCodec(Protocol):
    """Operations the export orchestrator needs from a PDF library."""

    def load(self, data: bytes, name: str = "") -> tuple[Any, int]: ...

    def copy_pages(self, source: Any, indices: list[int]) -> list[Any]: ...

    def create_document(self, name: str = "") -> Any: ...

    def add_page(self, document: Any, page: Any) -> Any: ...

    def set_rotation(self, page: Any, degrees: int) -> None: ...

    def set_metadata(self, document: Any, metadata: DocumentMetadata) -> None: ...

    def encrypt(self, document: Any, options: EncryptionOptions) -> None: ...

    def save(self, document: Any, options: SaveOptions) -> bytes: ...

    def close(self, document: Any) -> None: ...


# ---------------------------------------------------------------------------
# pikepdf implementation
# ---------------------------------------------------------------------------


@dataclass
class PdfHandle:
    """An open pikepdf document plus state applied when it is saved."""

    pdf: pikepdf.Pdf
    name: str = ""
    encryption: pikepdf.Encryption | None = None


def _to_pikepdf_permissions(permissions: Permissions) -> pikepdf.Permissions:
    return pikepdf.Permissions(
        accessibility=permissions.content_accessibility,
        extract=permissions.copying,
        modify_annotation=permissions.annotating,
        modify_assembly=permissions.document_assembly,
        modify_form=permissions.filling_forms,
        modify_other=permissions.modifying,
        print_lowres=permissions.printing,
        print_highres=permissions.printing,
    )


def _resolve_source_rotation(page: pikepdf.Page) -> int:
    """Resolve the effective /Rotate of a page, including inherited values."""
    node = page.obj
    while node is not None:
        if "/Rotate" in node:
            return int(node["/Rotate"])
        node = node.get("/Parent")
    return 0


class PikepdfCodec:
    """PdfCodec implementation backed by pikepdf (and Pillow for images)."""

    def load(self, data: bytes, name: str = "") -> tuple[PdfHandle, int]:
        try:
            pdf = pikepdf.open(io.BytesIO(data))
        except (pikepdf.PdfError, OSError, ValueError) as e:
            logger.error("Failed to open %s: %s", name or "<memory>", e)
            raise codec_error(name, e) from e
        count = len(pdf.pages)
        logger.debug("Loaded %s (%d pages)", name or "<memory>", count)
        return PdfHandle(pdf=pdf, name=name), count

    def copy_pages(self, source: PdfHandle, indices: list[int]) -> list[pikepdf.Page]:
        total = len(source.pdf.pages)
        for index in indices:
            if not 0 <= index < total:
                raise CodecError(
                    source.name,
                    f"page index {index} out of range (document has {total} pages)",
                )
        return [source.pdf.pages[i] for i in indices]

    def create_document(self, name: str = "") -> PdfHandle:
        return PdfHandle(pdf=pikepdf.Pdf.new(), name=name)

    def add_page(self, document: PdfHandle, page: pikepdf.Page) -> pikepdf.Page:
        try:
            document.pdf.pages.append(page)
        except (pikepdf.PdfError, ValueError) as e:
            raise codec_error(document.name, e) from e
        return document.pdf.pages[-1]

    def set_rotation(self, page: pikepdf.Page, degrees: int) -> None:
        """Rotate a page by ``degrees`` on top of its inherent /Rotate."""
        source_rotation = _resolve_source_rotation(page)
        final_rotation = normalize_rotation(source_rotation + degrees)
        if final_rotation != 0:
            page.Rotate = final_rotation
        elif "/Rotate" in page:
            del page["/Rotate"]
        logger.debug(
            "Page rotation: source=%d + editor=%d = %d", source_rotation, degrees, final_rotation
        )

    def set_metadata(self, document: PdfHandle, metadata: DocumentMetadata) -> None:
        info = document.pdf.docinfo
        info["/Title"] = pikepdf.String(metadata.title)
        info["/Author"] = pikepdf.String(metadata.author)
        info["/Subject"] = pikepdf.String(metadata.subject)
        info["/Keywords"] = pikepdf.String(", ".join(metadata.keywords))

    def encrypt(self, document: PdfHandle, options: EncryptionOptions) -> None:
        # pikepdf applies encryption while writing; keep it until save()
        document.encryption = pikepdf.Encryption(
            owner=options.owner_password,
            user=options.user_password,
            allow=_to_pikepdf_permissions(options.permissions),
        )

    def save(self, document: PdfHandle, options: SaveOptions) -> bytes:
        kwargs: dict[str, Any] = {}
        if options.compress:
            kwargs.update(self._compression_kwargs(document, options.tuning))
        if document.encryption is not None:
            kwargs["encryption"] = document.encryption

        buf = io.BytesIO()
        try:
            document.pdf.save(buf, **kwargs)
        except (pikepdf.PdfError, OSError, ValueError) as e:
            logger.error("Failed to save %s: %s", document.name or "<memory>", e)
            raise codec_error(document.name, e) from e
        return buf.getvalue()

    def close(self, document: PdfHandle) -> None:
        document.pdf.close()

    def _compression_kwargs(
        self, document: PdfHandle, level: CompressionLevel | None
    ) -> dict[str, Any]:
        """Translate a compression level into pikepdf save arguments."""
        level = level or CompressionLevel.MEDIUM
        kwargs: dict[str, Any] = {"compress_streams": True}

        if level is CompressionLevel.LOW:
            kwargs["object_stream_mode"] = pikepdf.ObjectStreamMode.preserve
            return kwargs

        kwargs["object_stream_mode"] = pikepdf.ObjectStreamMode.generate
        if level is CompressionLevel.HIGH:
            kwargs["recompress_flate"] = True
            seen_objgen: set = set()
            images = sum(
                _compress_page_images(
                    page,
                    HIGH_COMPRESSION_JPEG_QUALITY,
                    HIGH_COMPRESSION_IMAGE_DPI,
                    seen_objgen,
                )
                for page in document.pdf.pages
            )
            document.pdf.remove_unreferenced_resources()
            logger.info("High compression re-encoded %d images", images)
        return kwargs


def _compress_page_images(
    page: pikepdf.Page,
    quality: int,
    target_dpi: int,
    seen_objgen: set,
) -> int:
    """Re-encode large images of a page as JPEG when that makes them smaller.

    Args:
        seen_objgen: Object ids already processed, shared across pages so a
            shared XObject is only re-encoded once.

    Returns:
        Number of images replaced.
    """
    from PIL import Image

    count = 0

    try:
        xobjects = page.obj.get("/Resources", {}).get("/XObject", {})
    except (AttributeError, TypeError):
        return 0

    for key in list(xobjects.keys()):
        try:
            obj = xobjects[key]
            if not isinstance(obj, pikepdf.Stream):
                continue
            if obj.get("/Subtype") != pikepdf.Name.Image:
                continue

            objgen = obj.objgen
            if objgen in seen_objgen:
                continue
            seen_objgen.add(objgen)

            width = int(obj.get("/Width", 0))
            height = int(obj.get("/Height", 0))
            if width < MIN_IMAGE_DIMENSION_PX or height < MIN_IMAGE_DIMENSION_PX:
                continue

            try:
                pil_img = pikepdf.PdfImage(obj).as_pil_image()
            except (pikepdf.PdfError, OSError, ValueError, NotImplementedError):
                continue

            original_size = len(obj.read_raw_bytes())

            # Current effective DPI from the page media box
            mbox = page.mediabox
            page_width_pt = float(mbox[2]) - float(mbox[0])
            page_height_pt = float(mbox[3]) - float(mbox[1])
            if page_width_pt > 0 and page_height_pt > 0:
                current_dpi = max(width / (page_width_pt / 72), height / (page_height_pt / 72))
            else:
                current_dpi = 300

            if current_dpi > target_dpi * 1.2:
                scale = target_dpi / current_dpi
                new_w = max(MIN_IMAGE_DIMENSION_PX, int(width * scale))
                new_h = max(MIN_IMAGE_DIMENSION_PX, int(height * scale))
                pil_img = pil_img.resize((new_w, new_h), Image.LANCZOS)

            if pil_img.mode not in ("RGB", "L"):
                pil_img = pil_img.convert("RGB")

            buf = io.BytesIO()
            pil_img.save(buf, format="JPEG", quality=quality, optimize=True)
            jpeg_data = buf.getvalue()

            # Only replace if the new stream is clearly smaller
            if len(jpeg_data) >= original_size * 0.90:
                continue

            obj.write(jpeg_data, filter=pikepdf.Name.DCTDecode)
            obj.Width = pil_img.width
            obj.Height = pil_img.height
            obj.BitsPerComponent = 8
            obj.ColorSpace = (
                pikepdf.Name.DeviceGray if pil_img.mode == "L" else pikepdf.Name.DeviceRGB
            )
            for stale in ("/DecodeParms", "/Decode"):
                if stale in obj:
                    del obj[stale]
            count += 1

        except (pikepdf.PdfError, OSError, ValueError) as e:
            logger.debug("Skipping image %s: %s", key, e)
            continue

    return count


# ---------------------------------------------------------------------------
# Info / Inspection
# ---------------------------------------------------------------------------


@dataclass
class PDFInfo:
    """Basic information about a PDF file."""

    path: str
    page_count: int
    file_size_bytes: int
    title: str = ""
    author: str = ""
    encrypted: bool = False
    pdf_version: str = ""


def get_pdf_info(pdf_path: str | Path) -> PDFInfo:
    """Get basic information about a PDF file.

    Args:
        pdf_path: Path to the PDF file.

    Returns:
        PDFInfo with metadata.

    Raises:
        CodecError: If the file is missing or not a valid PDF.
    """
    pdf_path = str(pdf_path)
    name = os.path.basename(pdf_path)

    try:
        file_size = os.path.getsize(pdf_path)
        with pikepdf.open(pdf_path) as pdf:
            info = PDFInfo(
                path=pdf_path,
                page_count=len(pdf.pages),
                file_size_bytes=file_size,
                pdf_version=str(pdf.pdf_version),
                encrypted=pdf.is_encrypted,
            )
            if "/Title" in pdf.docinfo:
                info.title = str(pdf.docinfo["/Title"])
            if "/Author" in pdf.docinfo:
                info.author = str(pdf.docinfo["/Author"])
    except (OSError, pikepdf.PdfError) as e:
        raise codec_error(name, e) from e

    return info
