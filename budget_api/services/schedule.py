"""
Calendar arithmetic for recurring-transaction schedules.

Everything here works on `datetime.date` values at day granularity.
Month and year steps use dateutil's relativedelta, which clamps the day to
the last valid day of the target month (Jan 31 + 1 month → Feb 28/29,
Feb 29 + 1 year → Feb 28).
"""
from datetime import date, datetime, timedelta

import pytz
from dateutil.relativedelta import relativedelta

from budget_api.core.config import settings

_STEPS: dict[str, relativedelta] = {
    "daily":   relativedelta(days=1),
    "weekly":  relativedelta(weeks=1),
    "monthly": relativedelta(months=1),
    "yearly":  relativedelta(years=1),
}


def next_occurrence(current: date, frequency: str, custom_days: int | None = None) -> date:
    """
    Return the occurrence that follows `current` for the given frequency.

    `custom` steps by `custom_days` (one day when missing or not positive).
    An unrecognized frequency returns `current` unchanged.
    """
    if frequency == "custom":
        days = custom_days if custom_days and custom_days > 0 else 1
        return current + timedelta(days=days)

    step = _STEPS.get(frequency)
    if step is None:
        return current
    return current + step


def to_run_date(now: date | datetime) -> date:
    """Reduce a run timestamp to its calendar date, dropping time and offset."""
    if isinstance(now, datetime):
        return now.date()
    return now


def local_today() -> date:
    """Today's date in APP_TIMEZONE, or on the process's local clock when unset."""
    if settings.app_timezone:
        return datetime.now(pytz.timezone(settings.app_timezone)).date()
    return date.today()
