"""
BigPdfAssembler - Partition Planner

Computes the page groups of a split export, one group per output file.
"""

from dataclasses import dataclass

from bigpdfassembler.services.export_config import SplitConfiguration, SplitMethod
from bigpdfassembler.services.range_parser import parse_page_ranges
from bigpdfassembler.utils.exceptions import InvalidChunkSizeError


@dataclass(frozen=True)
class PartitionPlan:
    """Ordered page groups of a split; each group is ascending and 0-indexed."""

    method: SplitMethod
    groups: tuple[tuple[int, ...], ...]

    def __len__(self) -> int:
        return len(self.groups)

    def as_lists(self) -> list[list[int]]:
        return [list(g) for g in self.groups]


def plan_all_pages(page_count: int) -> list[list[int]]:
    """One singleton group per page."""
    return [[i] for i in range(page_count)]


def plan_every_n_pages(page_count: int, chunk_size: int) -> list[list[int]]:
    """Consecutive groups of ``chunk_size`` pages; the last one may be shorter.

    Raises:
        InvalidChunkSizeError: chunk_size is not an integer >= 1.
    """
    if isinstance(chunk_size, bool) or not isinstance(chunk_size, int) or chunk_size < 1:
        raise InvalidChunkSizeError(chunk_size)

    return [
        list(range(start, min(start + chunk_size, page_count)))
        for start in range(0, page_count, chunk_size)
    ]


def plan_page_ranges(text: str, page_count: int) -> list[list[int]]:
    """Groups exactly as parsed; they may overlap or leave pages out."""
    return parse_page_ranges(text, page_count)


def plan_partition(config: SplitConfiguration, page_count: int) -> PartitionPlan:
    """Compute the partition plan for a split configuration.

    Args:
        config: The split settings
        page_count: Number of pages in the source document

    Returns:
        The PartitionPlan, validated before any PDF is touched
    """
    if config.method is SplitMethod.ALL_PAGES:
        groups = plan_all_pages(page_count)
    elif config.method is SplitMethod.PAGE_RANGES:
        groups = plan_page_ranges(config.ranges, page_count)
    elif config.method is SplitMethod.EVERY_N_PAGES:
        groups = plan_every_n_pages(page_count, config.chunk_size)
    else:
        raise ValueError(f"Unknown split method: {config.method!r}")

    return PartitionPlan(method=config.method, groups=tuple(tuple(g) for g in groups))
