"""
Paginated bulk fetcher.

The hosted store caps a single response, so busy tenants need several
range requests per read. Pages are requested strictly in sequence: whether
another page exists is only known once the previous page's length is.
"""

from typing import Any

from app.config import settings
from app.features.workforce_analytics.errors import SourceUnavailable
from app.infrastructure.observability.logging import get_logger

from .repository import FilterSpec, RecordStore

logger = get_logger(__name__)


class PaginatedFetcher:
    def __init__(self, store: RecordStore, page_size: int | None = None):
        size = page_size if page_size is not None else settings.ANALYTICS_PAGE_SIZE
        if size <= 0:
            raise ValueError("page_size must be positive")
        self.store = store
        self.page_size = size

    async def fetch_all(self, table: str, filters: FilterSpec) -> list[dict[str, Any]]:
        """
        Return every row matching ``filters``, in store order.

        Raises:
            SourceUnavailable: any page failed; rows already read are discarded.
        """
        if filters.matches_nothing:
            return []

        rows: list[dict[str, Any]] = []
        offset = 0
        pages = 0
        has_more = True

        while has_more:
            try:
                page = await self.store.query(table, filters, offset, self.page_size)
            except Exception as e:
                logger.error(
                    "Paginated fetch failed",
                    table=table,
                    offset=offset,
                    pages_read=pages,
                    error=str(e),
                )
                raise SourceUnavailable(table, str(e)) from e

            pages += 1
            rows.extend(page)
            has_more = len(page) == self.page_size
            offset += self.page_size

        logger.debug("Paginated fetch complete", table=table, pages=pages, rows=len(rows))
        return rows
