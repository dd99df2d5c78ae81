"""
BigPdfAssembler - Custom Exceptions Module

This module defines custom exception classes for specific error cases
in the BigPdfAssembler application.
"""


class BigPdfAssemblerError(Exception):
    """Base exception for all BigPdfAssembler errors.

    All custom exceptions should inherit from this class to allow
    catching any BigPdfAssembler-specific error.
    """

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional technical details for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} ({self.details})"
        return self.message


class ValidationError(BigPdfAssemblerError):
    """Raised when input validation fails.

    Validation always happens before any codec call, so no partial plan
    or artifact exists when this is raised.
    """

    def __init__(
        self,
        field: str,
        value: str | None = None,
        reason: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            field: Name of the field that failed validation
            value: Optional value that failed validation
            reason: Optional reason for the validation failure
        """
        self.field = field
        self.value = value
        self.reason = reason

        msg = f"Validation error for '{field}'"
        if reason:
            msg += f": {reason}"

        details = f"value={value!r}" if value is not None else None
        super().__init__(msg, details=details)


class EmptyTokenError(ValidationError):
    """Raised when a page range expression contains an empty token."""

    def __init__(self, position: int, text: str) -> None:
        self.position = position
        super().__init__(
            "ranges",
            value=text,
            reason=f"empty entry at position {position + 1}",
        )


class InvalidRangeError(ValidationError):
    """Raised when a ``start-end`` token is malformed, inverted or out of bounds."""

    def __init__(self, token: str, page_count: int) -> None:
        self.token = token
        self.page_count = page_count
        super().__init__(
            "ranges",
            value=token,
            reason=f"invalid range '{token}' (document has {page_count} pages)",
        )


class InvalidPageError(ValidationError):
    """Raised when a single-page token is not a page of the document."""

    def __init__(self, token: str, page_count: int) -> None:
        self.token = token
        self.page_count = page_count
        super().__init__(
            "ranges",
            value=token,
            reason=f"invalid page '{token}' (document has {page_count} pages)",
        )


class InvalidChunkSizeError(ValidationError):
    """Raised when the EveryNPages chunk size is not a positive integer."""

    def __init__(self, chunk_size: object) -> None:
        self.chunk_size = chunk_size
        super().__init__(
            "chunk_size",
            value=str(chunk_size),
            reason="must be an integer greater than or equal to 1",
        )


class EmptySelectionError(ValidationError):
    """Raised when a merge is requested without any document."""

    def __init__(self, reason: str = "no documents to merge") -> None:
        super().__init__("documents", reason=reason)


class PageIndexError(BigPdfAssemblerError, IndexError):
    """Raised when a page or document index is outside its container."""

    def __init__(self, index: int, size: int, what: str = "page") -> None:
        self.index = index
        self.size = size
        super().__init__(
            f"{what.capitalize()} index {index} out of range",
            details=f"valid range is [0, {size})",
        )


class CodecError(BigPdfAssemblerError):
    """Raised when the PDF codec fails to load, copy, encrypt or save.

    Attributes:
        file_name: Display name of the document involved
        reason: Human-readable failure reason
        group_index: Split group being processed, if any
        error_code: Classification of the underlying failure
    """

    def __init__(
        self,
        file_name: str,
        reason: str | None = None,
        *,
        group_index: int | None = None,
        error_code: object = None,
    ) -> None:
        self.file_name = file_name
        self.reason = reason
        self.group_index = group_index
        self.error_code = error_code

        msg = f"Error processing {file_name}"
        if reason:
            msg += f": {reason}"

        details = None
        if group_index is not None:
            details = f"group={group_index}"

        super().__init__(msg, details=details)


class ExportBusyError(BigPdfAssemblerError):
    """Raised when an export is requested while another one is running."""

    def __init__(self, running: str) -> None:
        self.running = running
        super().__init__(f"An export is already in progress ({running})")


class OutputPathError(BigPdfAssemblerError):
    """Raised when there's an issue with the output path."""

    def __init__(self, output_path: str, reason: str | None = None) -> None:
        """Initialize the exception.

        Args:
            output_path: The problematic output path
            reason: Optional reason for the error
        """
        self.output_path = output_path
        self.reason = reason

        msg = f"Output path error: {output_path}"
        if reason:
            msg += f" - {reason}"

        super().__init__(msg, details=f"path={output_path}")


# Exception hierarchy summary:
# BigPdfAssemblerError (base)
# ├── ValidationError
# │   ├── EmptyTokenError
# │   ├── InvalidRangeError
# │   ├── InvalidPageError
# │   ├── InvalidChunkSizeError
# │   └── EmptySelectionError
# ├── PageIndexError (also IndexError)
# ├── CodecError
# ├── ExportBusyError
# └── OutputPathError
