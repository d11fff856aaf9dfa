"""
Time-of-day windows used by the availability engine.

Times are held as minutes after midnight so windows can be compared, clipped
and stepped through with plain integer arithmetic.
"""
from dataclasses import dataclass
from datetime import time
from typing import Iterable, List


def to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def to_time(minutes: int) -> time:
    return time(hour=minutes // 60, minute=minutes % 60)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeWindow:
    """
    Half-open window [start, end) within a single day.

    Invariant: start must be before end.
    """
    start: int
    end: int

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Window start {self.start} must be before end {self.end}")

    @classmethod
    def from_times(cls, start: time, end: time) -> "TimeWindow":
        return cls(start=to_minutes(start), end=to_minutes(end))

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    @property
    def start_time(self) -> time:
        return to_time(self.start)

    @property
    def end_time(self) -> time:
        return to_time(self.end)

    def overlaps(self, other: "TimeWindow") -> bool:
        """Touching windows (one ends when the other starts) do not overlap."""
        return self.start < other.end and self.end > other.start

    def contains(self, other: "TimeWindow") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"


def merge_windows(windows: Iterable[TimeWindow]) -> List[TimeWindow]:
    """
    Merge overlapping or adjacent windows.

    Example: [09:00-10:00, 10:00-11:00] -> [09:00-11:00]
    """
    ordered = sorted(windows, key=lambda w: w.start)
    if not ordered:
        return []

    merged: List[TimeWindow] = [ordered[0]]
    for current in ordered[1:]:
        last = merged[-1]
        if current.start <= last.end:
            merged[-1] = TimeWindow(start=last.start, end=max(last.end, current.end))
        else:
            merged.append(current)

    return merged


def subtract_windows(block: TimeWindow, busy: Iterable[TimeWindow]) -> List[TimeWindow]:
    """
    Subtract busy windows from a block, yielding the free remainder.

    Example:
    Block: 09:00 - 17:00
    Busy: [10:00-11:00, 14:00-15:00]
    Result: [09:00-10:00, 11:00-14:00, 15:00-17:00]
    """
    free: List[TimeWindow] = []
    cursor = block.start

    for window in merge_windows(w for w in busy if w.overlaps(block)):
        clipped_start = max(window.start, block.start)
        clipped_end = min(window.end, block.end)

        if cursor < clipped_start:
            free.append(TimeWindow(start=cursor, end=clipped_start))

        cursor = max(cursor, clipped_end)

    if cursor < block.end:
        free.append(TimeWindow(start=cursor, end=block.end))

    return free
