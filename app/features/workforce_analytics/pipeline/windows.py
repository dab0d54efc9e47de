"""
Time window resolution for analytics range selectors.

Every window is an inclusive [start, end] pair of calendar dates. The prior
window is always derived from the current one, so month-to-date comparisons
track the current length exactly instead of assuming a fixed 30 days.
"""

from __future__ import annotations

import calendar
from datetime import date, timedelta
from enum import Enum

from app.features.workforce_analytics.domain.models import PeriodWindow


class RangeSelector(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    MONTH_TO_DATE = "mtd"
    LAST_90_DAYS = "90days"
    LAST_6_MONTHS = "6months"
    LAST_365_DAYS = "365days"
    CUSTOM = "custom"

    @classmethod
    def parse(cls, value: str | RangeSelector) -> RangeSelector:
        if isinstance(value, RangeSelector):
            return value
        key = value.strip().lower().replace(" ", "").replace("_", "")
        key = _SELECTOR_ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            valid = ", ".join(selector.value for selector in cls)
            raise ValueError(f"Unknown range selector {value!r}; expected one of {valid}") from None


_SELECTOR_ALIASES = {
    "week": "7days",
    "month": "mtd",
    "monthtodate": "mtd",
}

_TRAILING_DAYS = {
    RangeSelector.TODAY: 1,
    RangeSelector.LAST_7_DAYS: 7,
    RangeSelector.LAST_30_DAYS: 30,
    RangeSelector.LAST_90_DAYS: 90,
    RangeSelector.LAST_365_DAYS: 365,
}

FORWARD_PERIODS = {
    "tomorrow": 1,
    "next7days": 7,
    "next30days": 30,
}


def shift_months(day: date, months: int) -> date:
    """Move ``day`` by whole months, clamping to the target month's length."""
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def prior_window(start_date: date, end_date: date) -> PeriodWindow:
    duration = end_date - start_date
    return PeriodWindow(
        start_date=start_date - duration - timedelta(days=1),
        end_date=start_date - timedelta(days=1),
    )


class TimeWindowResolver:
    def resolve(
        self,
        selector: str | RangeSelector,
        reference_date: date,
        *,
        date_from: date | None = None,
        date_to: date | None = None,
        with_prior: bool = False,
    ) -> PeriodWindow:
        """
        Resolve a range selector against ``reference_date`` (inclusive).

        Raises:
            ValueError: unknown selector, or a custom range that is
                incomplete or reversed.
        """
        selector = RangeSelector.parse(selector)

        if selector is RangeSelector.CUSTOM:
            if date_from is None or date_to is None:
                raise ValueError("Custom range requires both date_from and date_to")
            if date_to < date_from:
                raise ValueError("Custom range date_to precedes date_from")
            start_date, end_date = date_from, date_to
        elif selector is RangeSelector.MONTH_TO_DATE:
            start_date, end_date = reference_date.replace(day=1), reference_date
        elif selector is RangeSelector.LAST_6_MONTHS:
            start_date = shift_months(reference_date, -6) + timedelta(days=1)
            end_date = reference_date
        else:
            trailing = _TRAILING_DAYS[selector]
            start_date = reference_date - timedelta(days=trailing - 1)
            end_date = reference_date

        prior = prior_window(start_date, end_date) if with_prior else None
        return PeriodWindow(start_date=start_date, end_date=end_date, prior=prior)

    def resolve_forward(self, period: str, reference_date: date) -> PeriodWindow:
        """Forward-looking window starting the day after ``reference_date``."""
        key = period.strip().lower().replace(" ", "").replace("_", "")
        if key not in FORWARD_PERIODS:
            valid = ", ".join(FORWARD_PERIODS)
            raise ValueError(f"Unknown forward period {period!r}; expected one of {valid}")

        start_date = reference_date + timedelta(days=1)
        return PeriodWindow(
            start_date=start_date,
            end_date=start_date + timedelta(days=FORWARD_PERIODS[key] - 1),
        )

    @staticmethod
    def is_forward_period(period: str) -> bool:
        return period.strip().lower().replace(" ", "").replace("_", "") in FORWARD_PERIODS


time_window_resolver = TimeWindowResolver()
