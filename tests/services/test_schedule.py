"""
Unit tests for schedule: pure date arithmetic, no stores.

Run with:
    python -m pytest tests/services/test_schedule.py -v
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from budget_api.core.config import settings
from budget_api.services.schedule import local_today, next_occurrence, to_run_date


# ── next_occurrence: fixed steps ────────────────────────────────────────────

class TestFixedSteps:
    def test_daily(self):
        assert next_occurrence(date(2024, 1, 15), "daily") == date(2024, 1, 16)

    def test_daily_crosses_year(self):
        assert next_occurrence(date(2024, 12, 31), "daily") == date(2025, 1, 1)

    def test_weekly(self):
        assert next_occurrence(date(2024, 1, 15), "weekly") == date(2024, 1, 22)

    def test_weekly_crosses_month(self):
        assert next_occurrence(date(2024, 2, 26), "weekly") == date(2024, 3, 4)

    def test_monthly(self):
        assert next_occurrence(date(2024, 1, 15), "monthly") == date(2024, 2, 15)

    def test_yearly(self):
        assert next_occurrence(date(2024, 3, 1), "yearly") == date(2025, 3, 1)

    @pytest.mark.parametrize("frequency", ["daily", "weekly", "monthly", "yearly", "custom"])
    def test_known_frequencies_always_move_forward(self, frequency):
        start = date(2024, 1, 31)
        assert next_occurrence(start, frequency, 3) > start


# ── next_occurrence: month-end clamping ─────────────────────────────────────

class TestMonthEnd:
    def test_jan_31_clamps_to_leap_day(self):
        assert next_occurrence(date(2024, 1, 31), "monthly") == date(2024, 2, 29)

    def test_jan_31_clamps_to_feb_28_in_common_year(self):
        assert next_occurrence(date(2023, 1, 31), "monthly") == date(2023, 2, 28)

    def test_clamped_day_is_not_restored(self):
        # Each step starts from the stored date, so Feb 29 → Mar 29
        feb = next_occurrence(date(2024, 1, 31), "monthly")
        assert next_occurrence(feb, "monthly") == date(2024, 3, 29)

    def test_may_31_to_june_30(self):
        assert next_occurrence(date(2024, 5, 31), "monthly") == date(2024, 6, 30)

    def test_december_rolls_year(self):
        assert next_occurrence(date(2024, 12, 15), "monthly") == date(2025, 1, 15)

    def test_leap_day_yearly_clamps(self):
        assert next_occurrence(date(2024, 2, 29), "yearly") == date(2025, 2, 28)


# ── next_occurrence: custom interval ────────────────────────────────────────

class TestCustom:
    def test_custom_ten_days(self):
        assert next_occurrence(date(2024, 1, 15), "custom", 10) == date(2024, 1, 25)

    def test_custom_without_interval_defaults_to_one_day(self):
        assert next_occurrence(date(2024, 1, 15), "custom", None) == date(2024, 1, 16)

    def test_custom_zero_treated_as_one_day(self):
        assert next_occurrence(date(2024, 1, 15), "custom", 0) == date(2024, 1, 16)

    def test_custom_negative_treated_as_one_day(self):
        assert next_occurrence(date(2024, 1, 15), "custom", -5) == date(2024, 1, 16)

    def test_interval_ignored_for_other_frequencies(self):
        assert next_occurrence(date(2024, 1, 15), "weekly", 10) == date(2024, 1, 22)


# ── next_occurrence: unknown frequency ──────────────────────────────────────

class TestUnknownFrequency:
    @pytest.mark.parametrize("frequency", ["biweekly", "quarterly", "", "MONTHLY"])
    def test_returns_input_unchanged(self, frequency):
        assert next_occurrence(date(2024, 1, 15), frequency) == date(2024, 1, 15)


# ── run date helpers ─────────────────────────────────────────────────────────

class TestRunDate:
    def test_date_passes_through(self):
        assert to_run_date(date(2024, 3, 15)) == date(2024, 3, 15)

    def test_datetime_drops_time(self):
        assert to_run_date(datetime(2024, 3, 15, 23, 59, 59)) == date(2024, 3, 15)

    def test_aware_datetime_keeps_its_own_wall_date(self):
        late = datetime(2024, 3, 15, 23, 30, tzinfo=timezone(timedelta(hours=7)))
        assert to_run_date(late) == date(2024, 3, 15)

    def test_local_today_uses_process_clock_without_timezone(self, monkeypatch):
        monkeypatch.setattr(settings, "app_timezone", "")
        assert local_today() == date.today()

    def test_local_today_with_timezone_is_a_date(self, monkeypatch):
        monkeypatch.setattr(settings, "app_timezone", "Asia/Jakarta")
        today = local_today()
        assert isinstance(today, date) and not isinstance(today, datetime)
        assert abs((today - datetime.now(timezone.utc).date()).days) <= 1
