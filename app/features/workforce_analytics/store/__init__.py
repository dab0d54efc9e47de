"""
Record store access for workforce analytics.

Contains the store capability contract, its Postgres implementation and
the paginated fetcher every aggregator reads through.
"""

from .fetcher import PaginatedFetcher
from .repository import FilterSpec, PostgresRecordStore, RecordStore, record_store

__all__ = ["FilterSpec", "PaginatedFetcher", "PostgresRecordStore", "RecordStore", "record_store"]
