"""
BigPdfAssembler - Page Model

Data models for source documents and their per-page selection/rotation state.
"""

import copy
import uuid
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TypeVar

from bigpdfassembler.constants import ROTATION_STEP_DEGREES
from bigpdfassembler.utils.exceptions import PageIndexError

T = TypeVar("T")


class RotationDirection(Enum):
    """Direction of a single 90 degree page rotation."""

    CLOCKWISE = "clockwise"
    COUNTERCLOCKWISE = "counterclockwise"


def normalize_rotation(degrees: int) -> int:
    """Map any angle onto 0, 90, 180 or 270.

    Python's modulo already wraps negative values upward (-90 -> 270);
    angles that are not a multiple of 90 snap to the nearest quarter turn.
    """
    rotation = degrees % 360
    if rotation % ROTATION_STEP_DEGREES:
        rotation = round(rotation / ROTATION_STEP_DEGREES) * ROTATION_STEP_DEGREES % 360
    return rotation


@dataclass
class PageState:
    """State of a single page.

    Attributes:
        index: Page index inside its document (0-indexed)
        selected: Whether the page is included in a merge
        rotation: Rotation angle in degrees (0, 90, 180, 270)
    """

    index: int
    selected: bool = True
    rotation: int = 0

    def __post_init__(self) -> None:
        """Validate and normalize rotation angle."""
        self.rotation = normalize_rotation(self.rotation)

    @property
    def page_number(self) -> int:
        """1-indexed page number shown to the user."""
        return self.index + 1

    def rotate_left(self) -> None:
        """Rotate page 90 degrees counter-clockwise."""
        self.rotation = normalize_rotation(self.rotation - ROTATION_STEP_DEGREES)

    def rotate_right(self) -> None:
        """Rotate page 90 degrees clockwise."""
        self.rotation = normalize_rotation(self.rotation + ROTATION_STEP_DEGREES)


class PageSet:
    """Selection and rotation state for every page of one document.

    A PageSet is owned by exactly one SourceDocument. Exports never read
    it directly; they work on a ``snapshot()`` taken when the export starts.
    """

    def __init__(self, page_count: int) -> None:
        if page_count < 0:
            raise ValueError("page_count must be >= 0")
        self._pages = [PageState(index=i) for i in range(page_count)]

    def __len__(self) -> int:
        return len(self._pages)

    def __iter__(self) -> Iterator[PageState]:
        return iter(self._pages)

    def __getitem__(self, index: int) -> PageState:
        return self._pages[self._check_index(index)]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageSet):
            return NotImplemented
        return self._pages == other._pages

    def __repr__(self) -> str:
        return f"PageSet(pages={len(self._pages)}, selected={len(self.selected_indices())})"

    @property
    def page_count(self) -> int:
        return len(self._pages)

    def _check_index(self, index: int) -> int:
        if not 0 <= index < len(self._pages):
            raise PageIndexError(index, len(self._pages))
        return index

    def toggle_selection(self, index: int) -> bool:
        """Flip the selection of one page.

        Returns:
            The new selection state
        """
        page = self._pages[self._check_index(index)]
        page.selected = not page.selected
        return page.selected

    def set_all_selection(self, selected: bool) -> None:
        """Select or deselect every page."""
        for page in self._pages:
            page.selected = selected

    def select_pages(self, indices: Iterable[int]) -> None:
        """Select exactly the given pages and deselect all others."""
        wanted = {self._check_index(i) for i in indices}
        for page in self._pages:
            page.selected = page.index in wanted

    def rotate(self, index: int, direction: RotationDirection) -> int:
        """Rotate one page a quarter turn.

        Returns:
            The page's new rotation
        """
        page = self._pages[self._check_index(index)]
        if direction is RotationDirection.CLOCKWISE:
            page.rotate_right()
        else:
            page.rotate_left()
        return page.rotation

    def selected_indices(self) -> list[int]:
        """Indices of the selected pages in ascending order."""
        return [p.index for p in self._pages if p.selected]

    def snapshot(self) -> "PageSet":
        """Return an independent copy of this page set."""
        return copy.deepcopy(self)


@dataclass
class SourceDocument:
    """One opened PDF plus its pre-extracted page metadata.

    Attributes:
        name: Display name (usually the file name)
        page_count: Total number of pages
        size_bytes: Size of the source file in bytes
        path: Source file path; empty when ``data`` holds the bytes
        data: In-memory PDF bytes, used instead of ``path`` when set
        page_set: Per-page selection and rotation state
        position: Position in the caller-controlled merge order
        doc_id: Stable identity of the document
    """

    name: str
    page_count: int
    size_bytes: int = 0
    path: str = ""
    data: bytes | None = field(default=None, repr=False)
    page_set: PageSet | None = None
    position: int = 0
    doc_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        """Create a fresh page set (all selected, no rotation) if not provided."""
        if self.page_set is None:
            self.page_set = PageSet(self.page_count)
        elif self.page_set.page_count != self.page_count:
            raise ValueError(
                f"page_set has {self.page_set.page_count} pages, document has {self.page_count}"
            )

    @property
    def stem(self) -> str:
        """Display name without a trailing .pdf extension."""
        if self.name.lower().endswith(".pdf"):
            return self.name[:-4]
        return self.name

    def read_bytes(self) -> bytes:
        """Return the raw PDF bytes of this document."""
        if self.data is not None:
            return self.data
        return Path(self.path).read_bytes()

    def snapshot(self) -> "SourceDocument":
        """Copy of this document with an independent page set.

        The byte payload is shared, it is never mutated.
        """
        return SourceDocument(
            name=self.name,
            page_count=self.page_count,
            size_bytes=self.size_bytes,
            path=self.path,
            data=self.data,
            page_set=self.page_set.snapshot(),
            position=self.position,
            doc_id=self.doc_id,
        )


def reorder(sequence: Sequence[T], source_index: int, destination_index: int) -> list[T]:
    """Return a new list with one item moved from source to destination.

    Args:
        sequence: The ordered items
        source_index: Current position of the item to move
        destination_index: Position the item ends up at

    Returns:
        A reordered copy; the input is left untouched
    """
    size = len(sequence)
    if not 0 <= source_index < size:
        raise PageIndexError(source_index, size, what="source")
    if not 0 <= destination_index < size:
        raise PageIndexError(destination_index, size, what="destination")

    items = list(sequence)
    item = items.pop(source_index)
    items.insert(destination_index, item)
    return items


class DocumentQueue:
    """Ordered list of source documents awaiting a merge."""

    def __init__(self, documents: Iterable[SourceDocument] = ()) -> None:
        self._documents: list[SourceDocument] = []
        for document in documents:
            self.add(document)

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[SourceDocument]:
        return iter(self._documents)

    def __getitem__(self, index: int) -> SourceDocument:
        return self._documents[index]

    def add(self, document: SourceDocument) -> None:
        """Append a document at the end of the merge order."""
        self._documents.append(document)
        self._update_positions()

    def remove(self, index: int) -> SourceDocument:
        """Remove and return the document at ``index``."""
        if not 0 <= index < len(self._documents):
            raise PageIndexError(index, len(self._documents), what="document")
        document = self._documents.pop(index)
        self._update_positions()
        return document

    def move(self, source_index: int, destination_index: int) -> None:
        """Move one document to a new position in the merge order."""
        self._documents = reorder(self._documents, source_index, destination_index)
        self._update_positions()

    def ordered(self) -> list[SourceDocument]:
        """Documents in merge order (a shallow copy of the list)."""
        return list(self._documents)

    def _update_positions(self) -> None:
        """Update positions to be sequential after changes."""
        for i, document in enumerate(self._documents):
            document.position = i
