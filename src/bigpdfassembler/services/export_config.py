"""Merge and split export configuration records."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum

from bigpdfassembler.config import DEFAULT_MERGE_AUTHOR, DEFAULT_MERGE_FILENAME, DEFAULT_MERGE_TITLE


class SplitMethod(Enum):
    """Partitioning strategy for a split export."""

    ALL_PAGES = "all"
    PAGE_RANGES = "ranges"
    EVERY_N_PAGES = "every"


class CompressionLevel(Enum):
    """Compression effort requested from the codec."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_keywords(text: str) -> list[str]:
    """Split a comma-separated keyword string into trimmed, non-empty keywords."""
    return [k.strip() for k in text.split(",") if k.strip()]


@dataclass
class DocumentMetadata:
    """Document information written into a merged PDF."""

    title: str = DEFAULT_MERGE_TITLE
    author: str = DEFAULT_MERGE_AUTHOR
    subject: str = ""
    keywords: list[str] = field(default_factory=list)

    def resolved(self) -> DocumentMetadata:
        """Copy with empty title/author replaced by the application defaults."""
        return DocumentMetadata(
            title=self.title or DEFAULT_MERGE_TITLE,
            author=self.author or DEFAULT_MERGE_AUTHOR,
            subject=self.subject,
            keywords=list(self.keywords),
        )


@dataclass(frozen=True)
class Permissions:
    """The seven document permissions granted to user-password holders."""

    printing: bool = True
    modifying: bool = True
    copying: bool = True
    annotating: bool = True
    filling_forms: bool = True
    content_accessibility: bool = True
    document_assembly: bool = True


PERMISSION_NAMES: tuple[str, ...] = tuple(f.name for f in fields(Permissions))


@dataclass
class SecurityConfig:
    """Password protection settings for a merged PDF."""

    enable_encryption: bool = False
    user_password: str = ""
    owner_password: str = ""
    permissions: Permissions = field(default_factory=Permissions)

    @property
    def effective_owner_password(self) -> str:
        """Owner password actually applied.

        An empty owner password falls back to the user password so the
        owner lock is never weaker than the user lock.
        """
        return self.owner_password or self.user_password


@dataclass
class CompressionConfig:
    """Output compression settings."""

    enabled: bool = False
    level: CompressionLevel = CompressionLevel.MEDIUM


@dataclass
class MergeConfiguration:
    """Everything a merge export needs besides the ordered documents."""

    filename: str = DEFAULT_MERGE_FILENAME
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    compression: CompressionConfig = field(default_factory=CompressionConfig)


@dataclass
class SplitConfiguration:
    """Partitioning settings for a split export.

    ``ranges`` is only read for PAGE_RANGES and ``chunk_size`` only for
    EVERY_N_PAGES.
    """

    method: SplitMethod = SplitMethod.ALL_PAGES
    ranges: str = ""
    chunk_size: int = 1
    include_page_numbers: bool = True
