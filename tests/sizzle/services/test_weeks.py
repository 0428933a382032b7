"""Tests for sizzle.services.weeks — ISO week numbering."""
from datetime import date, datetime

from sizzle.services.weeks import month_bounds, week_key, week_start, week_start_for, weeks_in_month


class TestWeekKey:

    def test_mid_february_2024_is_week_7(self):
        assert week_key(datetime(2024, 2, 14, 15, 30)) == (7, 2024)

    def test_accepts_plain_dates(self):
        assert week_key(date(2024, 2, 14)) == (7, 2024)

    def test_late_december_belongs_to_next_iso_year(self):
        assert week_key(date(2024, 12, 30)) == (1, 2025)

    def test_early_january_belongs_to_previous_iso_year(self):
        assert week_key(date(2021, 1, 3)) == (53, 2020)

    def test_monday_and_sunday_share_a_week(self):
        assert week_key(date(2024, 2, 12)) == week_key(date(2024, 2, 18))
        assert week_key(date(2024, 2, 19)) == (8, 2024)


class TestWeekStart:

    def test_wednesday_maps_to_monday_midnight(self):
        assert week_start(datetime(2024, 2, 14, 15, 30)) == datetime(2024, 2, 12)

    def test_sunday_maps_to_previous_monday(self):
        assert week_start(date(2024, 2, 18)) == datetime(2024, 2, 12)

    def test_inverse_of_week_key(self):
        assert week_start_for(2024, 7) == datetime(2024, 2, 12)
        assert week_start_for(2025, 1) == datetime(2024, 12, 30)

    def test_round_trip_through_week_key(self):
        moment = datetime(2023, 8, 3, 9)
        week_number, year = week_key(moment)
        assert week_start_for(year, week_number) == week_start(moment)


class TestMonthBounds:

    def test_regular_month(self):
        assert month_bounds(2024, 2) == (datetime(2024, 2, 1), datetime(2024, 3, 1))

    def test_december_rolls_into_next_year(self):
        assert month_bounds(2024, 12) == (datetime(2024, 12, 1), datetime(2025, 1, 1))

    def test_weeks_in_month(self):
        # Mondays of February 2024: 5, 12, 19, 26
        assert weeks_in_month(2024, 2) == [(6, 2024), (7, 2024), (8, 2024), (9, 2024)]

    def test_weeks_in_month_across_iso_year(self):
        # Monday 2024-12-30 starts week 1 of 2025 but still falls in December
        assert weeks_in_month(2024, 12)[-1] == (1, 2025)
        assert weeks_in_month(2025, 1)[0] == (2, 2025)
