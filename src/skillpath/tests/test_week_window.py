"""
Tests for Sunday-to-Saturday week window helpers
"""

from datetime import datetime, timedelta, timezone

from skillpath.utils.datetime import is_same_week, week_end, week_start, week_window


class TestWeekWindow:
    """Week boundaries in the default UTC week timezone"""

    def test_midweek_moment(self):
        moment = datetime(2026, 10, 21, 15, 30)  # Wednesday

        assert week_start(moment) == datetime(2026, 10, 18)
        assert week_end(moment) == datetime(2026, 10, 24, 23, 59, 59, 999999)

    def test_sunday_midnight_starts_its_own_week(self):
        sunday = datetime(2026, 10, 18)

        assert week_start(sunday) == sunday

    def test_saturday_last_microsecond_belongs_to_previous_sunday(self):
        saturday = datetime(2026, 10, 24, 23, 59, 59, 999999)

        assert week_start(saturday) == datetime(2026, 10, 18)
        assert week_end(saturday) == saturday

    def test_aware_moment_is_converted_before_bucketing(self):
        # 02:00 on Sunday at +05:00 is still Saturday evening in UTC.
        moment = datetime(2026, 10, 18, 2, 0, tzinfo=timezone(timedelta(hours=5)))

        assert week_start(moment) == datetime(2026, 10, 11)

    def test_window_always_contains_moment(self):
        moment = datetime(2026, 10, 11)
        for _ in range(14 * 24):
            start, end = week_window(moment)
            assert start <= moment <= end
            assert start.weekday() == 6
            assert start.time() == datetime.min.time()
            assert end - start == timedelta(days=7) - timedelta(microseconds=1)
            moment += timedelta(hours=1, minutes=7)

    def test_defaults_to_now(self):
        start, end = week_window()

        assert start == week_start()
        assert start <= datetime.now(timezone.utc).replace(tzinfo=None) <= end

    def test_is_same_week(self):
        assert is_same_week(datetime(2026, 10, 18), datetime(2026, 10, 24, 12))
        assert not is_same_week(datetime(2026, 10, 17, 23), datetime(2026, 10, 18, 1))
