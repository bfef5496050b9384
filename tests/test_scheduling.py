from datetime import date, time

import pytest

from hospitalms.modules.appointments import scheduling
from hospitalms.modules.appointments.scheduling import Slot, WorkingHours


def test_to_minutes_and_back():
    assert scheduling.to_minutes("00:00") == 0
    assert scheduling.to_minutes("09:30") == 570
    assert scheduling.from_minutes(570) == "09:30"
    assert scheduling.from_minutes(23 * 60 + 59) == "23:59"


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "1200", "", None, "ab:cd"])
def test_invalid_times_rejected(value):
    assert not scheduling.is_valid_time(value)
    with pytest.raises(ValueError):
        scheduling.to_minutes(value)


def test_shift_time_stops_at_midnight():
    assert scheduling.shift_time("10:00", 30) == "10:30"
    assert scheduling.shift_time("23:30", 30) is None


def test_normalize_legacy_time_gets_default_duration():
    assert scheduling.normalize_time_range(None, None, "10:00", 30) == ("10:00", "10:30")


def test_normalize_explicit_range_wins_over_legacy():
    assert scheduling.normalize_time_range("11:00", "11:45", "10:00") == ("11:00", "11:45")


def test_normalize_keeps_malformed_legacy_for_format_check():
    assert scheduling.normalize_time_range(None, None, "10am") == ("10am", None)


def test_working_hours_default_when_no_schedule():
    hours = scheduling.working_hours_for(None, date(2030, 1, 7))
    assert hours == WorkingHours(True, "09:00", "17:00")


def test_working_hours_reads_weekday_entry():
    schedule = {
        "monday": {"available": True, "startTime": "08:00", "endTime": "12:00"},
        "sunday": {"available": False},
    }
    assert scheduling.working_hours_for(schedule, date(2030, 1, 7)) == WorkingHours(
        True, "08:00", "12:00"
    )
    assert not scheduling.working_hours_for(schedule, date(2030, 1, 6)).available
    # tuesday not configured
    assert scheduling.working_hours_for(schedule, date(2030, 1, 8)).start_time == "09:00"


def test_contains_is_inclusive_of_window_edges():
    hours = WorkingHours(True, "09:00", "17:00")
    assert hours.contains(9 * 60, 9 * 60 + 30)
    assert hours.contains(16 * 60 + 30, 17 * 60)
    assert not hours.contains(8 * 60 + 30, 9 * 60)
    assert not hours.contains(16 * 60 + 45, 17 * 60 + 15)
    assert not WorkingHours(False, "09:00", "17:00").contains(10 * 60, 10 * 60 + 30)


def test_overlap_is_half_open():
    # back-to-back
    assert not scheduling.overlaps(540, 570, 570, 600)
    assert not scheduling.overlaps(570, 600, 540, 570)
    # partial and containment
    assert scheduling.overlaps(540, 570, 555, 585)
    assert scheduling.overlaps(540, 600, 550, 560)
    assert scheduling.overlaps(550, 560, 540, 600)


def test_effective_interval_for_legacy_row():
    assert scheduling.effective_interval(time(10, 0), None, 30) == (600, 630)
    assert scheduling.effective_interval(time(10, 0), time(10, 45)) == (600, 645)


def test_find_conflict_returns_first_overlap():
    bookings = [("a", (540, 570)), ("b", (600, 630)), ("c", (610, 640))]
    hit = scheduling.find_conflict(615, 620, bookings, lambda b: b[1])
    assert hit[0] == "b"
    assert scheduling.find_conflict(570, 600, bookings, lambda b: b[1]) is None


def test_free_slots_skip_booked_and_drop_partial_tail():
    hours = WorkingHours(True, "09:00", "10:45")
    slots = scheduling.free_slots(hours, [(570, 600)], 30)
    assert slots == [
        Slot("09:00", "09:30"),
        Slot("10:00", "10:30"),
    ]
    assert slots[0].display == "09:00 - 09:30"


def test_free_slots_blocked_by_longer_booking():
    hours = WorkingHours(True, "09:00", "11:00")
    slots = scheduling.free_slots(hours, [(550, 620)], 30)
    assert [s.start_time for s in slots] == ["10:30"]


def test_free_slots_fully_booked_is_empty():
    hours = WorkingHours(True, "09:00", "10:00")
    assert scheduling.free_slots(hours, [(540, 570), (570, 600)], 30) == []


def test_free_slots_unavailable_day_is_empty():
    assert scheduling.free_slots(WorkingHours(False, "09:00", "17:00"), []) == []
