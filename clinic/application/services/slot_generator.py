"""Turn one day of doctor availability into bookable start times.

Everything here is pure: callers pass the availability record, the occupancy
counts for that date and, for today, the current time of day.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping, Optional

from ..ports.availability_repo import AvailabilityDto


class SlotReason(str, Enum):
    NO_SCHEDULE = "no_schedule"
    FULLY_BOOKED = "fully_booked"
    CLOSED_FOR_TODAY = "closed_for_today"
    PAST_DATE = "past_date"


REASON_MESSAGES = {
    SlotReason.NO_SCHEDULE: "There is no schedule for this date. Please select another date.",
    SlotReason.FULLY_BOOKED: "This date is fully booked. Please select another date.",
    SlotReason.CLOSED_FOR_TODAY: "The doctor has closed for today. Please book for the next available date.",
    SlotReason.PAST_DATE: "This date has already passed. Please select a future date.",
}


@dataclass
class SlotResult:
    slots: List[str] = field(default_factory=list)
    reason: Optional[SlotReason] = None

    @property
    def message(self) -> Optional[str]:
        return REASON_MESSAGES[self.reason] if self.reason else None


def parse_clock(value: str) -> int:
    """HH:MM -> minutes after midnight. Raises ValueError on anything else."""
    if (not isinstance(value, str) or len(value) != 5 or value[2] != ":"
            or not (value[:2].isdigit() and value[3:].isdigit())):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = int(value[:2]), int(value[3:])
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def slot_marks(availability: AvailabilityDto) -> List[str]:
    """Every start time of the window outside the break, ignoring bookings."""
    current = parse_clock(availability.start_time)
    end = parse_clock(availability.end_time)
    step = availability.slot_duration_minutes

    break_start = break_end = None
    if availability.break_start_time and availability.break_end_time:
        break_start = parse_clock(availability.break_start_time)
        break_end = parse_clock(availability.break_end_time)

    marks = []
    while current < end:
        in_break = break_start is not None and break_start <= current < break_end
        if not in_break:
            marks.append(format_clock(current))
        current += step
    return marks


def generate_slots(
    availability: Optional[AvailabilityDto],
    occupied: Mapping[str, int],
    not_before: Optional[str] = None,
) -> SlotResult:
    """Bookable slots for one date.

    ``occupied`` maps a start time to the number of live appointments at it.
    ``not_before`` drops marks at or before that time of day (used for today).
    """
    if availability is None:
        return SlotResult(reason=SlotReason.NO_SCHEDULE)
    if not availability.is_active:
        return SlotResult(reason=SlotReason.FULLY_BOOKED)

    marks = slot_marks(availability)
    if not_before is not None:
        cutoff = parse_clock(not_before)
        upcoming = [m for m in marks if parse_clock(m) > cutoff]
    else:
        upcoming = marks

    capacity = availability.max_concurrent_per_slot
    slots = [m for m in upcoming if occupied.get(m, 0) < capacity]
    if slots:
        return SlotResult(slots=slots)
    if marks and not upcoming:
        return SlotResult(reason=SlotReason.CLOSED_FOR_TODAY)
    return SlotResult(reason=SlotReason.FULLY_BOOKED)
