from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Optional, Union

from config import DEFAULT_DURATION_MINUTES
from errors import InvalidTimeFormat

TimeLike = Union[str, time]

_TIME_FORMATS = ("%H:%M", "%H:%M:%S")

# Windows never cross midnight; a default end that would is clamped here,
# which still lies after any minute-precision start
END_OF_DAY = time.max


@dataclass(frozen=True)
class TimeWindow:
    """A half-open ``[start, end)`` interval on a single day."""

    start: time
    end: time

    def overlaps(self, other: "TimeWindow") -> bool:
        # Back-to-back windows (end == other.start) do not overlap
        return self.start < other.end and other.start < self.end

    def as_dict(self) -> dict:
        return {"start_time": format_time(self.start), "end_time": format_time(self.end)}


def parse_time(value: TimeLike) -> time:
    """
    Parses a time-of-day into a minute-precision ``time``.

    Args:
        value: ``HH:MM`` or ``HH:MM:SS`` string, or a ``time`` object.
            ``END_OF_DAY`` is returned unchanged.

    Raises:
        InvalidTimeFormat: if the value is malformed or out of range.
    """
    if isinstance(value, time):
        if value == END_OF_DAY:
            return value
        return value.replace(second=0, microsecond=0)
    if not isinstance(value, str):
        raise InvalidTimeFormat(f"Unsupported time value: {value!r}")

    text = value.strip()
    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt).time()
        except ValueError:
            continue
        return parsed.replace(second=0)
    raise InvalidTimeFormat(f"Invalid time '{value}', expected HH:MM")


def format_time(value: Optional[time]) -> Optional[str]:
    if value is None:
        return None
    return value.strftime("%H:%M")


def default_end_time(start: time, duration_minutes: Optional[int] = None) -> time:
    minutes = DEFAULT_DURATION_MINUTES if duration_minutes is None else duration_minutes
    start_dt = datetime.combine(datetime.min.date(), start)
    end_dt = start_dt + timedelta(minutes=minutes)
    if end_dt.date() != start_dt.date():
        return END_OF_DAY
    return end_dt.time()


def resolve_window(start_time: TimeLike, end_time: Optional[TimeLike] = None,
                   duration_minutes: Optional[int] = None) -> TimeWindow:
    """
    Turns a reservation's start (and optional end) into a concrete window.

    Without an explicit end the configured default seating duration is
    added to the start. An explicit end is taken verbatim but must lie
    after the start on the same day.
    """
    start = parse_time(start_time)
    if end_time is None or end_time == "":
        end = default_end_time(start, duration_minutes)
    else:
        end = parse_time(end_time)

    if end <= start:
        raise InvalidTimeFormat(
            f"End time {format_time(end)} must be after start time {format_time(start)}"
        )
    return TimeWindow(start=start, end=end)
