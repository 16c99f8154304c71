"""
Unit tests for slot and date availability.
"""

from datetime import date, time, timedelta

from booking.availability import (
    TIME_SLOTS,
    available_slots,
    is_date_bookable,
    upcoming_bookable_dates,
)


class TestAvailableSlots:
    def test_booked_and_blocked_removed(self):
        result = available_slots(TIME_SLOTS, ["09:00"], ["14:00"])

        assert "09:00" not in result
        assert "14:00" not in result
        assert len(result) == len(TIME_SLOTS) - 2

    def test_template_order_kept(self):
        result = available_slots(TIME_SLOTS, ["17:00", "08:00"], [])
        assert result == ["09:00", "10:00", "11:00", "13:00", "14:00", "15:00", "16:00"]

    def test_seconds_are_ignored(self):
        result = available_slots(TIME_SLOTS, ["09:00:00"], [time(14, 0)])
        assert "09:00" not in result
        assert "14:00" not in result

    def test_nothing_taken(self):
        assert available_slots(TIME_SLOTS, [], []) == list(TIME_SLOTS)

    def test_everything_taken(self):
        assert available_slots(TIME_SLOTS, TIME_SLOTS, []) == []

    def test_result_is_subset_of_template(self):
        result = available_slots(TIME_SLOTS, ["12:00", "18:00"], [])
        assert set(result) <= set(TIME_SLOTS)
        assert result == list(TIME_SLOTS)

    def test_malformed_booked_times_skipped(self):
        result = available_slots(TIME_SLOTS, ["9:00", "", "abc", None], [])

        assert "09:00" not in result
        assert len(result) == len(TIME_SLOTS) - 1

    def test_malformed_blocked_times_skipped(self):
        result = available_slots(TIME_SLOTS, [], ["14h", "25:00", "13:00"])
        assert result == [slot for slot in TIME_SLOTS if slot != "13:00"]

    def test_malformed_template_entry_not_offered(self):
        assert available_slots(["08:00", "oito", "9:30"], [], []) == ["08:00", "9:30"]

    def test_no_lunch_slot(self):
        assert "12:00" not in TIME_SLOTS


class TestIsDateBookable:
    def test_tomorrow(self, today):
        assert is_date_bookable(today + timedelta(days=1), today) is True

    def test_today(self, today):
        assert is_date_bookable(today, today) is True

    def test_yesterday(self, today):
        assert is_date_bookable(today - timedelta(days=1), today) is False

    def test_sunday(self, today):
        sunday = today + timedelta(days=6)
        assert sunday.weekday() == 6
        assert is_date_bookable(sunday, today) is False

    def test_lead_window(self, today):
        # today + 30 is a Wednesday
        assert is_date_bookable(today + timedelta(days=30), today) is True
        assert is_date_bookable(today + timedelta(days=31), today) is False

    def test_custom_lead_window(self, today):
        assert is_date_bookable(today + timedelta(days=8), today, max_lead_days=7) is False

    def test_fully_blocked(self, today):
        tomorrow = today + timedelta(days=1)
        assert is_date_bookable(tomorrow, today, fully_blocked_dates={tomorrow}) is False


class TestUpcomingBookableDates:
    def test_skips_sundays_and_blocks(self, today):
        blocked = date(2026, 10, 21)
        dates = list(upcoming_bookable_dates(today, 30, [blocked]))

        assert dates[0] == today
        assert blocked not in dates
        assert all(d.weekday() != 6 for d in dates)
        assert dates[-1] == today + timedelta(days=30)

    def test_window_of_one_week(self, today):
        dates = list(upcoming_bookable_dates(today, 6))
        # Monday through Saturday
        assert len(dates) == 6
