"""
Tests for the paginated bulk fetcher.
"""

from unittest.mock import AsyncMock

import pytest

from app.config import settings
from app.features.workforce_analytics.errors import SourceUnavailable, StoreUnavailable
from app.features.workforce_analytics.store.fetcher import PaginatedFetcher
from app.features.workforce_analytics.store.repository import FilterSpec


def _seed(store, count: int, table: str = "phorest_appointments"):
    for index in range(count):
        store.add(table, location_id="loc-1", total_price=index)


@pytest.mark.asyncio
async def test_concatenates_all_pages_in_store_order(fake_store):
    _seed(fake_store, 7)
    fetcher = PaginatedFetcher(fake_store, page_size=3)

    rows = await fetcher.fetch_all("phorest_appointments", FilterSpec())

    assert [row["total_price"] for row in rows] == list(range(7))
    assert [offset for _, offset, _ in fake_store.calls] == [0, 3, 6]


@pytest.mark.asyncio
async def test_exact_multiple_of_page_size_needs_one_empty_page(fake_store):
    _seed(fake_store, 6)
    fetcher = PaginatedFetcher(fake_store, page_size=3)

    rows = await fetcher.fetch_all("phorest_appointments", FilterSpec())

    assert len(rows) == 6
    # Two full pages, then a single empty page ends the loop
    assert len(fake_store.calls) == 3


@pytest.mark.asyncio
async def test_short_first_page_terminates_immediately(fake_store):
    _seed(fake_store, 2)
    fetcher = PaginatedFetcher(fake_store, page_size=1000)

    rows = await fetcher.fetch_all("phorest_appointments", FilterSpec())

    assert len(rows) == 2
    assert len(fake_store.calls) == 1


@pytest.mark.asyncio
async def test_filters_are_applied_on_every_page(fake_store):
    _seed(fake_store, 5)
    fake_store.add("phorest_appointments", location_id="loc-2", total_price=99)
    fetcher = PaginatedFetcher(fake_store, page_size=2)

    rows = await fetcher.fetch_all(
        "phorest_appointments", FilterSpec(in_={"location_id": ["loc-1"]})
    )

    assert len(rows) == 5
    assert all(row["location_id"] == "loc-1" for row in rows)


@pytest.mark.asyncio
async def test_empty_in_list_short_circuits_without_store_call(fake_store):
    _seed(fake_store, 3)
    fetcher = PaginatedFetcher(fake_store, page_size=2)

    rows = await fetcher.fetch_all("phorest_appointments", FilterSpec(in_={"location_id": []}))

    assert rows == []
    assert fake_store.calls == []


@pytest.mark.asyncio
async def test_filter_on_missing_column_is_a_source_failure(fake_store):
    fake_store.add("phorest_staff_mapping", phorest_staff_id="ext-1", user_id="user-1")
    fetcher = PaginatedFetcher(fake_store, page_size=2)

    # The mapping table has no tenant column
    with pytest.raises(SourceUnavailable) as exc_info:
        await fetcher.fetch_all(
            "phorest_staff_mapping", FilterSpec(equals={"organization_id": "org-1"})
        )

    assert exc_info.value.table == "phorest_staff_mapping"


@pytest.mark.asyncio
async def test_page_failure_raises_source_unavailable_without_partial_rows():
    store = AsyncMock()
    store.query.side_effect = [
        [{"id": 1}, {"id": 2}],
        ConnectionError("connection reset"),
    ]
    fetcher = PaginatedFetcher(store, page_size=2)

    with pytest.raises(SourceUnavailable) as exc_info:
        await fetcher.fetch_all("phorest_daily_sales_summary", FilterSpec())

    assert exc_info.value.table == "phorest_daily_sales_summary"
    assert isinstance(exc_info.value.__cause__, ConnectionError)
    assert store.query.await_count == 2


def test_store_unavailable_is_the_same_error():
    assert StoreUnavailable is SourceUnavailable


def test_page_size_defaults_to_settings(fake_store):
    assert PaginatedFetcher(fake_store).page_size == settings.ANALYTICS_PAGE_SIZE


@pytest.mark.parametrize("page_size", [0, -5])
def test_non_positive_page_size_is_rejected(fake_store, page_size):
    with pytest.raises(ValueError):
        PaginatedFetcher(fake_store, page_size=page_size)
