"""
Tests for the Postgres record store query builder.
"""

from datetime import date
from unittest.mock import AsyncMock

import pytest
from psycopg import sql

from app.features.workforce_analytics.store import repository as store_module
from app.features.workforce_analytics.store.repository import FilterSpec, PostgresRecordStore


def test_params_follow_clause_order_then_limit_offset():
    store = PostgresRecordStore()
    filters = FilterSpec(
        columns=("id", "status"),
        equals={"organization_id": "org-1"},
        in_={"location_id": ["loc-1", "loc-2"]},
        not_in={"status": ["cancelled", "no_show"]},
        gte={"appointment_date": date(2024, 3, 1)},
        lte={"appointment_date": date(2024, 3, 31)},
        not_null=("phorest_staff_id",),
    )

    query, params = store.build_query("phorest_appointments", filters, offset=2000, limit=1000)

    assert isinstance(query, sql.Composed)
    assert params == (
        "org-1",
        ["loc-1", "loc-2"],
        ["cancelled", "no_show"],
        date(2024, 3, 1),
        date(2024, 3, 31),
        1000,
        2000,
    )


def test_null_equality_and_empty_not_in_add_no_params():
    store = PostgresRecordStore()
    filters = FilterSpec(equals={"user_id": None}, not_in={"status": []})

    _, params = store.build_query("employee_profiles", filters, offset=0, limit=10)

    assert params == (10, 0)


@pytest.mark.asyncio
async def test_query_runs_through_shared_fetch_helper(monkeypatch):
    fetch_all = AsyncMock(return_value=[{"id": "a"}])
    monkeypatch.setattr(store_module, "fetch_all", fetch_all)

    rows = await PostgresRecordStore().query("locations", FilterSpec(), offset=0, limit=5)

    assert rows == [{"id": "a"}]
    fetch_all.assert_awaited_once()
    _, params = fetch_all.await_args.args
    assert params == (5, 0)


def test_empty_in_list_matches_nothing():
    assert FilterSpec(in_={"location_id": []}).matches_nothing
    assert not FilterSpec(in_={"location_id": ["loc-1"]}).matches_nothing
