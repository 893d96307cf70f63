from collections import Counter

import pytest

from clinic.application.services.slot_generator import (
    SlotReason,
    format_clock,
    generate_slots,
    parse_clock,
    slot_marks,
)

from conftest import FakeStore

WORKING_DAY = [
    "09:00", "09:30", "10:00", "10:30", "11:00", "11:30", "12:00", "12:30",
    "14:00", "14:30", "15:00", "15:30", "16:00", "16:30",
]


@pytest.fixture
def availability():
    return FakeStore().add_availability()


def test_working_day_with_lunch_break(availability):
    result = generate_slots(availability, Counter())
    assert result.slots == WORKING_DAY
    assert "13:00" not in result.slots and "13:30" not in result.slots
    assert result.reason is None
    assert result.message is None


def test_generation_is_deterministic(availability):
    assert generate_slots(availability, Counter()).slots == generate_slots(availability, Counter()).slots


def test_no_break_gives_every_mark_before_end():
    availability = FakeStore().add_availability(break_start=None, break_end=None)
    marks = slot_marks(availability)
    assert len(marks) == 16
    assert marks[0] == "09:00" and marks[-1] == "16:30"


def test_half_configured_break_is_ignored():
    availability = FakeStore().add_availability(break_start="13:00", break_end=None)
    assert "13:00" in slot_marks(availability)


def test_last_mark_may_overrun_end_time():
    availability = FakeStore().add_availability(start="09:00", end="10:00", break_start=None,
                                                break_end=None, duration=45)
    assert slot_marks(availability) == ["09:00", "09:45"]


def test_saturated_slot_disappears(availability):
    result = generate_slots(availability, Counter({"10:00": 1}))
    assert "10:00" not in result.slots
    assert len(result.slots) == len(WORKING_DAY) - 1


def test_capacity_above_one_keeps_slot_until_full():
    availability = FakeStore().add_availability(capacity=2)
    assert "10:00" in generate_slots(availability, Counter({"10:00": 1})).slots
    assert "10:00" not in generate_slots(availability, Counter({"10:00": 2})).slots


def test_missing_schedule_is_not_fully_booked():
    result = generate_slots(None, Counter())
    assert result.slots == []
    assert result.reason == SlotReason.NO_SCHEDULE
    assert "no schedule" in result.message


def test_every_slot_taken_is_fully_booked(availability):
    result = generate_slots(availability, Counter({t: 1 for t in WORKING_DAY}))
    assert result.slots == []
    assert result.reason == SlotReason.FULLY_BOOKED
    assert "fully booked" in result.message


def test_inactive_schedule_is_fully_booked():
    availability = FakeStore().add_availability(active=False)
    result = generate_slots(availability, Counter())
    assert result.reason == SlotReason.FULLY_BOOKED


def test_today_drops_marks_that_already_passed(availability):
    result = generate_slots(availability, Counter(), not_before="12:00")
    assert result.slots == ["12:30", "14:00", "14:30", "15:00", "15:30", "16:00", "16:30"]


def test_today_after_closing_time(availability):
    result = generate_slots(availability, Counter(), not_before="17:05")
    assert result.slots == []
    assert result.reason == SlotReason.CLOSED_FOR_TODAY


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "ab:cd", "", None, "12-30"])
def test_parse_clock_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_clock(value)


def test_clock_helpers():
    assert parse_clock("13:45") == 13 * 60 + 45
    assert format_clock(545) == "09:05"
