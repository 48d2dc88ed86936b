from __future__ import annotations

import logging
from typing import Callable, Iterator, Optional, TypeVar

from collection_curator.application.errors import FetchFailure
from collection_curator.domain.catalog.models import Page
from collection_curator.settings import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)

T = TypeVar("T")

PageFetcher = Callable[[int, Optional[str]], Page[T]]


def paginate(fetch_page: PageFetcher[T], page_size: int = MAX_PAGE_SIZE) -> Iterator[T]:
    """
    Lazily yield every record of a cursor-paginated result set.

    The fetcher is called with (page_size, cursor), starting from a None
    cursor, until a page comes back without a next cursor. Any exception
    raised by the fetcher aborts the whole sequence as a FetchFailure.

    Args:
        fetch_page: Callable returning one Page per request
        page_size: Records per request, 1..250

    Yields:
        Records in platform order

    Raises:
        ValueError: If page_size is outside 1..250 (raised on the first next())
        FetchFailure: If any page request fails
    """
    if not 1 <= page_size <= MAX_PAGE_SIZE:
        raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}, got {page_size}")

    cursor: Optional[str] = None
    pages_fetched = 0
    while True:
        try:
            page = fetch_page(page_size, cursor)
        except FetchFailure:
            raise
        except Exception as e:
            raise FetchFailure(
                f"Page request failed after {pages_fetched} pages: {e}",
                cursor=cursor,
                pages_fetched=pages_fetched,
            ) from e

        pages_fetched += 1
        yield from page.records

        if not page.next_cursor:
            logger.debug(f"Pagination finished after {pages_fetched} pages")
            return
        cursor = page.next_cursor


def fetch_all(fetch_page: PageFetcher[T], page_size: int = MAX_PAGE_SIZE, label: str = "records") -> list[T]:
    """Materialize a paginated result set into a list."""
    records = list(paginate(fetch_page, page_size))
    logger.info(f"Fetched {len(records)} {label}")
    return records
