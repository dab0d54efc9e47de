"""
Error taxonomy for the analytics engine.

Only SourceUnavailable escapes to callers. MissingIdentity and
InsufficientSample are raised at the point of detection and handled one
level up (attribution skips the record, scoring omits the staff member).
"""


class AnalyticsError(Exception):
    """Base class for analytics engine errors."""


class SourceUnavailable(AnalyticsError):
    """A record store read failed; the whole aggregation is aborted."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table


# Name used by the fetcher contract
StoreUnavailable = SourceUnavailable


class MissingIdentity(AnalyticsError):
    """A record references a staff id with no directory entry."""

    def __init__(self, external_id: str | None):
        super().__init__(f"No staff identity for external id {external_id!r}")
        self.external_id = external_id


class InsufficientSample(AnalyticsError):
    """Too few qualifying appointments to produce a composite score."""

    def __init__(self, staff_id: str, sample_size: int, minimum: int):
        super().__init__(
            f"Staff {staff_id} has {sample_size} qualifying appointments; {minimum} required"
        )
        self.staff_id = staff_id
        self.sample_size = sample_size
        self.minimum = minimum
