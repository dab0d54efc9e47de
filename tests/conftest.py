from typing import Any

import pytest

from app.features.workforce_analytics.store.repository import FilterSpec

# Columns of the hosted tables the engine reads. Filtering or selecting any
# other column fails the same way Postgres does, so queries against columns
# that only exist in test seeds are caught.
TABLE_COLUMNS: dict[str, frozenset[str]] = {
    "locations": frozenset(
        {
            "id",
            "organization_id",
            "name",
            "hours_json",
            "stylist_capacity",
            "break_minutes_per_day",
            "lunch_minutes",
            "appointment_padding_minutes",
            "is_active",
        }
    ),
    "phorest_staff_mapping": frozenset(
        {
            "id",
            "phorest_staff_id",
            "user_id",
            "phorest_staff_name",
            "phorest_staff_email",
            "phorest_branch_id",
            "phorest_branch_name",
            "is_active",
            "show_on_calendar",
            "created_at",
            "updated_at",
        }
    ),
    "employee_profiles": frozenset(
        {
            "id",
            "user_id",
            "organization_id",
            "full_name",
            "display_name",
            "photo_url",
            "is_active",
            "is_approved",
            "location_id",
            "location_ids",
        }
    ),
    "phorest_appointments": frozenset(
        {
            "id",
            "phorest_id",
            "phorest_staff_id",
            "stylist_user_id",
            "location_id",
            "appointment_date",
            "start_time",
            "end_time",
            "total_price",
            "status",
            "service_name",
            "service_category",
            "phorest_client_id",
            "client_name",
            "client_phone",
            "is_new_client",
            "notes",
            "tip_amount",
            "rebooked_at_checkout",
        }
    ),
    "phorest_transaction_items": frozenset(
        {
            "id",
            "transaction_id",
            "transaction_date",
            "item_type",
            "item_name",
            "item_category",
            "quantity",
            "total_amount",
            "unit_price",
            "discount",
            "location_id",
            "phorest_staff_id",
            "stylist_user_id",
            "phorest_client_id",
            "branch_name",
            "client_name",
        }
    ),
    "phorest_daily_sales_summary": frozenset(
        {
            "id",
            "phorest_staff_id",
            "user_id",
            "location_id",
            "summary_date",
            "total_revenue",
            "service_revenue",
            "product_revenue",
            "total_transactions",
            "total_services",
            "total_products",
            "average_ticket",
            "total_discounts",
            "branch_name",
        }
    ),
    "phorest_performance_metrics": frozenset(
        {
            "id",
            "phorest_staff_id",
            "user_id",
            "week_start",
            "retention_rate",
            "rebooking_rate",
            "average_ticket",
            "total_revenue",
            "retail_sales",
            "service_count",
            "new_clients",
            "extension_clients",
            "created_at",
            "updated_at",
        }
    ),
    "client_feedback_responses": frozenset(
        {"id", "organization_id", "staff_user_id", "client_id", "responded_at"}
    ),
    "site_settings": frozenset({"id", "value", "updated_at", "updated_by"}),
}


class UnknownColumn(Exception):
    """Raised like Postgres' UndefinedColumn for columns a table lacks."""


def _check_columns(table: str, columns) -> None:
    known = TABLE_COLUMNS.get(table)
    if known is None:
        raise UnknownColumn(f'relation "{table}" does not exist')
    unknown = sorted(set(columns) - known)
    if unknown:
        raise UnknownColumn(f'column "{unknown[0]}" of "{table}" does not exist')


def _referenced_columns(filters: FilterSpec) -> set[str]:
    columns = set(filters.columns)
    for mapping in (filters.equals, filters.in_, filters.not_in, filters.gte, filters.lte):
        columns.update(mapping)
    columns.update(filters.not_null)
    if filters.order_by:
        columns.add(filters.order_by)
    return columns


def _matches(row: dict[str, Any], filters: FilterSpec) -> bool:
    for column, value in filters.equals.items():
        if row.get(column) != value:
            return False
    for column, values in filters.in_.items():
        if row.get(column) not in values:
            return False
    for column, values in filters.not_in.items():
        if row.get(column) is not None and row.get(column) in values:
            return False
    for column, value in filters.gte.items():
        if row.get(column) is None or row[column] < value:
            return False
    for column, value in filters.lte.items():
        if row.get(column) is None or row[column] > value:
            return False
    for column in filters.not_null:
        if row.get(column) is None:
            return False
    return True


class FakeRecordStore:
    """In-memory RecordStore that honours FilterSpec, offset/limit paging and table columns."""

    def __init__(self):
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, int, int]] = []
        self.failures: dict[str, Exception] = {}

    def add(self, table: str, **row: Any) -> dict[str, Any]:
        _check_columns(table, row)
        rows = self.tables.setdefault(table, [])
        row.setdefault("id", f"{table}-{len(rows) + 1:05d}")
        rows.append(row)
        return row

    def fail(self, table: str, error: Exception) -> None:
        self.failures[table] = error

    def calls_for(self, table: str) -> list[tuple[str, int, int]]:
        return [call for call in self.calls if call[0] == table]

    async def query(
        self, table: str, filters: FilterSpec, offset: int, limit: int
    ) -> list[dict[str, Any]]:
        self.calls.append((table, offset, limit))
        if table in self.failures:
            raise self.failures[table]
        _check_columns(table, _referenced_columns(filters))

        rows = [row for row in self.tables.get(table, []) if _matches(row, filters)]
        if filters.order_by:
            rows.sort(key=lambda row: str(row.get(filters.order_by)))
        if filters.columns:
            rows = [{column: row.get(column) for column in filters.columns} for row in rows]
        return rows[offset : offset + limit]


@pytest.fixture
def fake_store():
    return FakeRecordStore()
