"""Utility functions for page selection and filtering.

Page range expressions look like ``"1, 3, 5-7, 10"``. Parsing is best-effort:
the result is the current valid selection, and tokens that cannot be read
(``"abc"``, ``"5-x"``, reversed ranges like ``"7-5"``) are skipped rather
than reported, so the selection can be previewed while the user types.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Set

_NUMBER_RE = re.compile(r"[0-9]+")


class OperationMode(str, Enum):
    """What to do with the selected pages."""
    EXTRACT = "extract"
    REMOVE = "remove"


@dataclass(frozen=True)
class PageResolution:
    """Pages to hand to the document engine for one operation.

    For REMOVE, ``to_remove_count`` is the number of pages dropped; for
    EXTRACT it is the number of pages selected for extraction.
    """
    mode: OperationMode
    total_pages: int
    selected: List[int]
    to_keep: List[int]
    to_remove_count: int


def _parse_number(text: str) -> Optional[int]:
    text = text.strip()
    if not _NUMBER_RE.fullmatch(text):
        return None
    return int(text)


def _tokens(page_range: str) -> List[str]:
    return [part.strip() for part in page_range.split(',') if part.strip()]


def _token_pages(token: str, total_pages: int) -> range:
    """Pages named by one token, clamped to ``[1, total_pages]``."""
    if '-' in token:
        start_text, end_text = token.split('-', 1)
        start = _parse_number(start_text)
        end = _parse_number(end_text)
        if start is None or end is None or start > end:
            return range(0)
        return range(max(1, start), min(end, total_pages) + 1)

    page = _parse_number(token)
    if page is None or page < 1 or page > total_pages:
        return range(0)
    return range(page, page + 1)


def parse_page_range(page_range: str, total_pages: int) -> List[int]:
    """
    Parse page range string into list of page numbers.

    Args:
        page_range: Page range string (e.g., "1,3,5-10")
                   Pages are 1-indexed.
        total_pages: Page count of the document the range refers to

    Returns:
        Sorted list of unique page numbers (1-indexed), all within
        [1, total_pages]. Unreadable tokens are skipped, never raised.
    """
    pages: Set[int] = set()

    for token in _tokens(page_range):
        pages.update(_token_pages(token, total_pages))

    return sorted(pages)


def parse_page_groups(page_range: str, total_pages: int) -> List[List[int]]:
    """Parse a range string into one page group per token.

    Used for splitting: ``"1-3, 5"`` gives ``[[1, 2, 3], [5]]``. Tokens are
    read with the same rules as :func:`parse_page_range`, and tokens that
    select nothing do not produce a group.
    """
    groups = []
    for token in _tokens(page_range):
        pages = list(_token_pages(token, total_pages))
        if pages:
            groups.append(pages)
    return groups


def complement(selected: Iterable[int], total_pages: int) -> List[int]:
    """All pages in ``[1, total_pages]`` that are not in ``selected``."""
    excluded = set(selected)
    return [page for page in range(1, total_pages + 1) if page not in excluded]


def resolve_for_operation(
    page_range: str,
    total_pages: int,
    mode: OperationMode,
) -> PageResolution:
    """Work out which pages survive an extract or remove operation."""
    selected = parse_page_range(page_range, total_pages)

    if mode is OperationMode.REMOVE:
        to_keep = complement(selected, total_pages)
        to_remove_count = total_pages - len(to_keep)
    else:
        to_keep = selected
        to_remove_count = len(selected)

    return PageResolution(
        mode=mode,
        total_pages=total_pages,
        selected=selected,
        to_keep=to_keep,
        to_remove_count=to_remove_count,
    )


def selection_error(resolution: PageResolution) -> Optional[str]:
    """
    Check a resolution before any document is modified.

    Returns:
        A user-facing message when the operation must not proceed,
        otherwise None.
    """
    if not resolution.selected:
        action = "remove" if resolution.mode is OperationMode.REMOVE else "extract"
        return f"No pages selected. Please specify which pages to {action}."

    if (resolution.mode is OperationMode.REMOVE
            and len(resolution.selected) >= resolution.total_pages):
        return "Cannot remove all pages. You must keep at least one page in the PDF."

    return None


def to_page_indices(pages: Iterable[int]) -> List[int]:
    """Convert 1-based page numbers to the engine's 0-based page indices."""
    return [page - 1 for page in pages]


def format_page_list(pages: Iterable[int], collapse_ranges: bool = False) -> str:
    """
    Render page numbers as a range string.

    Args:
        pages: Page numbers (1-indexed)
        collapse_ranges: Write consecutive runs as "start-end"

    Returns:
        e.g. "1,3,6,7,10", or "1,3,6-7,10" with collapse_ranges
    """
    ordered = sorted(set(pages))
    if not collapse_ranges:
        return ",".join(str(page) for page in ordered)

    parts = []
    run_start = run_end = None
    for page in ordered:
        if run_end is not None and page == run_end + 1:
            run_end = page
            continue
        if run_start is not None:
            parts.append(_format_run(run_start, run_end))
        run_start = run_end = page
    if run_start is not None:
        parts.append(_format_run(run_start, run_end))

    return ",".join(parts)


def _format_run(start: int, end: int) -> str:
    return str(start) if start == end else f"{start}-{end}"
