"""Helpers for editing the page order of a document before rearranging it."""

from typing import List


def initial_order(total_pages: int) -> List[int]:
    """The document's own order, as 1-based page numbers."""
    return list(range(1, total_pages + 1))


def move_page(order: List[int], index: int, direction: str) -> List[int]:
    """
    Swap the page at ``index`` with its neighbour.

    Args:
        order: Current page order
        index: Position of the page to move
        direction: "up" (towards the start) or "down"

    Returns:
        A new order list. Moving past either end leaves the order unchanged.
    """
    if direction not in ("up", "down"):
        raise ValueError(f"Invalid direction: {direction}")

    target = index - 1 if direction == "up" else index + 1
    new_order = list(order)
    if index < 0 or index >= len(order) or target < 0 or target >= len(order):
        return new_order

    new_order[index], new_order[target] = new_order[target], new_order[index]
    return new_order


def drop_page(order: List[int], index: int) -> List[int]:
    """Remove the page at ``index``; the last remaining page is never dropped."""
    if len(order) <= 1 or index < 0 or index >= len(order):
        return list(order)
    return order[:index] + order[index + 1:]


def parse_page_order(order: str, total_pages: int) -> List[int]:
    """
    Parse a submitted page order such as "3,1,2".

    Unlike page range selection this is strict: the order comes from the
    editor, so anything malformed is rejected.

    Raises:
        ValueError: If an entry is not a page number of the document,
            a page appears twice, or the order is empty
    """
    pages = []
    seen = set()

    for part in order.split(','):
        part = part.strip()
        if not part:
            continue
        if not part.isdigit():
            raise ValueError(f"Invalid page number in order: '{part}'")
        page = int(part)
        if page < 1 or page > total_pages:
            raise ValueError(f"Page {page} is out of range (1-{total_pages})")
        if page in seen:
            raise ValueError(f"Page {page} appears more than once in order")
        seen.add(page)
        pages.append(page)

    if not pages:
        raise ValueError("Page order must contain at least one page")

    return pages


def format_page_order(order: List[int]) -> str:
    return ",".join(str(page) for page in order)
