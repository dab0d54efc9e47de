"""
Record store capability used by the paginated fetcher.

The store only has to answer one question: "give me rows of this table
matching these filters, from offset N, at most M of them". The Postgres
implementation renders a FilterSpec into a parameterized SELECT with
psycopg's sql composition and runs it through the shared helpers.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from psycopg import sql

from app.db.helpers import fetch_all
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class FilterSpec:
    """Declarative filters for one table read."""

    columns: Sequence[str] = ()
    equals: Mapping[str, Any] = field(default_factory=dict)
    in_: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    not_in: Mapping[str, Sequence[Any]] = field(default_factory=dict)
    gte: Mapping[str, Any] = field(default_factory=dict)
    lte: Mapping[str, Any] = field(default_factory=dict)
    not_null: Sequence[str] = ()
    # Stable key so offset pages never overlap
    order_by: str | None = "id"

    @property
    def matches_nothing(self) -> bool:
        """An empty IN list can never match; skip the round trip."""
        return any(len(values) == 0 for values in self.in_.values())


class RecordStore(Protocol):
    async def query(
        self, table: str, filters: FilterSpec, offset: int, limit: int
    ) -> list[dict[str, Any]]: ...


class PostgresRecordStore:
    """RecordStore backed by the shared psycopg connection pool."""

    def build_query(
        self, table: str, filters: FilterSpec, offset: int, limit: int
    ) -> tuple[sql.Composed, tuple[Any, ...]]:
        if filters.columns:
            selected = sql.SQL(", ").join(sql.Identifier(column) for column in filters.columns)
        else:
            selected = sql.SQL("*")

        clauses: list[sql.Composable] = []
        params: list[Any] = []

        for column, value in filters.equals.items():
            if value is None:
                clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
            else:
                clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
                params.append(value)

        for column, values in filters.in_.items():
            clauses.append(sql.SQL("{} = ANY(%s)").format(sql.Identifier(column)))
            params.append(list(values))

        for column, values in filters.not_in.items():
            if not values:
                continue
            # NULLs survive a NOT IN filter, matching the hosted API's behaviour
            clauses.append(
                sql.SQL("({col} IS NULL OR NOT ({col} = ANY(%s)))").format(
                    col=sql.Identifier(column)
                )
            )
            params.append(list(values))

        for column, value in filters.gte.items():
            clauses.append(sql.SQL("{} >= %s").format(sql.Identifier(column)))
            params.append(value)

        for column, value in filters.lte.items():
            clauses.append(sql.SQL("{} <= %s").format(sql.Identifier(column)))
            params.append(value)

        for column in filters.not_null:
            clauses.append(sql.SQL("{} IS NOT NULL").format(sql.Identifier(column)))

        query = sql.SQL("SELECT {columns} FROM {table}").format(
            columns=selected, table=sql.Identifier(table)
        )
        if clauses:
            query += sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses)
        if filters.order_by:
            query += sql.SQL(" ORDER BY {}").format(sql.Identifier(filters.order_by))
        query += sql.SQL(" LIMIT %s OFFSET %s")
        params.extend([limit, offset])

        return query, tuple(params)

    async def query(
        self, table: str, filters: FilterSpec, offset: int, limit: int
    ) -> list[dict[str, Any]]:
        query, params = self.build_query(table, filters, offset, limit)
        return await fetch_all(query, params)


record_store = PostgresRecordStore()
