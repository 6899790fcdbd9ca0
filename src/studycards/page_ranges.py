"""Page selection parsing.

Turns a user-entered selection such as ``"1, 3, 5-8"`` into the sorted, distinct
page numbers to process. Malformed or out-of-range tokens are dropped one by one;
a blank selection means every page.
"""

from __future__ import annotations

from studycards import logger


def is_blank_selection(selection: str | None) -> bool:
    """Return whether a selection means "all pages".

    Args:
        selection (str | None): Raw page selection.

    Returns:
        bool: True when the selection is missing or whitespace-only.
    """
    return selection is None or not selection.strip()


def _parse_page_number(token: str) -> int | None:
    """Parse one page number token, returning None when it is not an integer."""
    try:
        return int(token.strip())
    except ValueError:
        return None


def _parse_range(token: str, max_pages: int) -> range | None:
    """Parse a `start-end` token into an inclusive page range.

    Args:
        token (str): Stripped token containing a hyphen.
        max_pages (int): Number of pages in the document.

    Returns:
        range | None: Pages covered by the token, or None when it is dropped.
    """
    bounds = token.split("-")
    if len(bounds) != 2:  # noqa: PLR2004
        return None

    start = _parse_page_number(bounds[0])
    end = _parse_page_number(bounds[1])
    if start is None or end is None:
        return None
    if start > end or start <= 0 or end > max_pages:
        return None
    return range(start, end + 1)


def parse_page_selection(selection: str | None, max_pages: int) -> list[int]:
    """Parse a page selection into sorted, distinct page numbers.

    Args:
        selection (str | None): Comma-separated page numbers and `start-end` ranges.
        max_pages (int): Number of pages in the document.

    Returns:
        list[int]: Selected pages in ascending order. Empty when a non-blank
        selection contained no usable token.
    """
    if is_blank_selection(selection):
        return list(range(1, max_pages + 1))

    pages: set[int] = set()
    dropped: list[str] = []
    for part in selection.split(","):  # type: ignore[union-attr]
        token = part.strip()
        if "-" in token:
            page_range = _parse_range(token, max_pages)
            if page_range is None:
                dropped.append(token)
                continue
            pages.update(page_range)
        else:
            page_number = _parse_page_number(token)
            if page_number is None or page_number <= 0 or page_number > max_pages:
                dropped.append(token)
                continue
            pages.add(page_number)

    if dropped:
        logger.debug("Dropped page selection tokens", extra={"tokens": dropped, "max_pages": max_pages})
    return sorted(pages)
