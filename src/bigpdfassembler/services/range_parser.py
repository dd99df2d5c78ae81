"""
BigPdfAssembler - Page Range Parser

Converts the user-facing range syntax ("1-3, 5, 7-9", 1-indexed, inclusive)
into groups of 0-indexed page numbers, one group per comma-separated token.
"""

from bigpdfassembler.utils.exceptions import (
    EmptyTokenError,
    InvalidPageError,
    InvalidRangeError,
)


def _parse_range_token(token: str, page_count: int) -> list[int]:
    start_s, sep, end_s = token.partition("-")
    if not sep or "-" in end_s:
        raise InvalidRangeError(token, page_count)

    try:
        start = int(start_s.strip()) - 1
        end = int(end_s.strip()) - 1
    except ValueError:
        raise InvalidRangeError(token, page_count) from None

    if not 0 <= start <= end < page_count:
        raise InvalidRangeError(token, page_count)

    return list(range(start, end + 1))


def _parse_page_token(token: str, page_count: int) -> list[int]:
    try:
        page = int(token) - 1
    except ValueError:
        raise InvalidPageError(token, page_count) from None

    if not 0 <= page < page_count:
        raise InvalidPageError(token, page_count)

    return [page]


def parse_page_ranges(text: str, page_count: int) -> list[list[int]]:
    """Parse a page range expression.

    Supports: "3", "1-5", "1,3,7", "1-3, 7, 10-12"

    Parsing is fail-fast: the first invalid token raises and no partial
    result is returned.

    Args:
        text: Range expression (1-indexed, inclusive).
        page_count: Number of pages in the document.

    Returns:
        One ascending list of 0-indexed pages per token, in input order.

    Raises:
        EmptyTokenError: A token is empty (e.g. "1,,3" or "").
        InvalidRangeError: A "start-end" token is malformed, inverted or
            outside the document.
        InvalidPageError: A single-page token is malformed or outside
            the document.
    """
    groups: list[list[int]] = []
    for position, raw in enumerate(text.split(",")):
        token = raw.strip()
        if not token:
            raise EmptyTokenError(position, text)
        if "-" in token:
            groups.append(_parse_range_token(token, page_count))
        else:
            groups.append(_parse_page_token(token, page_count))
    return groups


def format_page_ranges(indices: list[int]) -> str:
    """Format 0-indexed pages back into compact 1-indexed range syntax.

    Args:
        indices: Page indices (any order, duplicates ignored)

    Returns:
        A string such as "1-3, 5, 7-9"
    """
    pages = sorted(set(indices))
    parts: list[str] = []
    i = 0
    while i < len(pages):
        j = i
        while j + 1 < len(pages) and pages[j + 1] == pages[j] + 1:
            j += 1
        first, last = pages[i] + 1, pages[j] + 1
        parts.append(str(first) if first == last else f"{first}-{last}")
        i = j + 1
    return ", ".join(parts)
