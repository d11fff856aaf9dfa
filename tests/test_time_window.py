"""
Tests for time windows.
"""
from datetime import time

import pytest

from salon_booking.services.availability.time_window import (
    TimeWindow,
    format_minutes,
    merge_windows,
    subtract_windows,
    to_minutes,
    to_time,
)


def w(start: str, end: str) -> TimeWindow:
    return TimeWindow.from_times(time.fromisoformat(start), time.fromisoformat(end))


class TestTimeWindow:

    def test_conversions(self):
        assert to_minutes(time(9, 30)) == 570
        assert to_time(570) == time(9, 30)
        assert format_minutes(65) == "01:05"

    def test_empty_window_rejected(self):
        with pytest.raises(ValueError):
            TimeWindow(start=600, end=600)

    def test_touching_windows_do_not_overlap(self):
        assert not w("09:00", "10:00").overlaps(w("10:00", "10:30"))
        assert w("09:00", "10:01").overlaps(w("10:00", "10:30"))

    def test_contains(self):
        assert w("09:00", "17:00").contains(w("16:30", "17:00"))
        assert not w("09:00", "17:00").contains(w("16:45", "17:15"))

    def test_str(self):
        assert str(w("09:05", "10:00")) == "09:05-10:00"


class TestWindowArithmetic:

    def test_merge_adjacent_and_overlapping(self):
        merged = merge_windows([w("10:00", "11:00"), w("09:00", "10:00"), w("10:30", "12:00"), w("13:00", "14:00")])
        assert merged == [w("09:00", "12:00"), w("13:00", "14:00")]

    def test_subtract_nothing(self):
        assert subtract_windows(w("09:00", "17:00"), []) == [w("09:00", "17:00")]

    def test_subtract_busy_windows(self):
        free = subtract_windows(w("09:00", "17:00"), [w("14:00", "15:00"), w("10:00", "11:00")])
        assert free == [w("09:00", "10:00"), w("11:00", "14:00"), w("15:00", "17:00")]

    def test_subtract_clips_busy_outside_block(self):
        free = subtract_windows(w("09:00", "17:00"), [w("08:00", "09:30"), w("16:30", "18:00"), w("18:00", "19:00")])
        assert free == [w("09:30", "16:30")]

    def test_subtract_everything(self):
        assert subtract_windows(w("09:00", "17:00"), [w("08:00", "18:00")]) == []
