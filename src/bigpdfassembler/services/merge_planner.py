"""
BigPdfAssembler - Merge Planner

Computes the exact page sequence of a merged document from the ordered
source documents and their page sets. Never reads PDF bytes.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from itertools import groupby
from typing import NamedTuple

from bigpdfassembler.services.page_model import SourceDocument


class PlannedPage(NamedTuple):
    """One page of the merged output."""

    document_id: str
    page_index: int
    rotation: int


@dataclass(frozen=True)
class PagePlan:
    """Final ordered page sequence of a merge."""

    pages: tuple[PlannedPage, ...]

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self):
        return iter(self.pages)

    def by_document(self) -> list[tuple[str, list[PlannedPage]]]:
        """Split the plan into consecutive per-document runs, in plan order."""
        return [
            (document_id, list(run))
            for document_id, run in groupby(self.pages, key=lambda p: p.document_id)
        ]


def plan_merge(documents: Iterable[SourceDocument]) -> PagePlan:
    """Build the page plan of a merge.

    Documents are taken in the given order; within a document, selected
    pages are taken in ascending page order with their current rotation.
    A document without selected pages contributes nothing.

    Args:
        documents: Source documents in merge order

    Returns:
        The PagePlan
    """
    pages = [
        PlannedPage(document.doc_id, state.index, state.rotation)
        for document in documents
        for state in document.page_set
        if state.selected
    ]
    return PagePlan(pages=tuple(pages))
