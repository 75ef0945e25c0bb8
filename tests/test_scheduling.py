"""Tests for the scheduling validator and availability (no database)."""

from datetime import date, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import pytz
from pydantic import ValidationError

from agenda.core.appointment_constants import AppointmentStatus, RejectionReason
from agenda.schemas.scheduling import (
    BookedAppointment,
    BookingPolicy,
    BusinessHoursEntry,
    ScheduleSnapshot,
    SpecialHoursEntry,
)
from agenda.services.scheduling import (
    available_time_slots,
    find_conflict,
    is_within_booking_window,
    is_within_operating_hours,
    resolve_operating_hours,
    validate_appointment,
    weekly_availability,
)

SUNDAY = date(2030, 1, 6)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)

# A week earlier, well inside the default 30-day window
LAST_TUESDAY_8AM = datetime(2030, 1, 1, 8, 0)


def at(day: date, hhmm: str) -> datetime:
    h, m = map(int, hhmm.split(":"))
    return datetime(day.year, day.month, day.day, h, m)


def weekdays(open_time="09:00", close_time="18:00"):
    """Mon-Fri open, weekend closed."""
    hours = [BusinessHoursEntry(day_of_week=d, is_open=True, open_time=open_time, close_time=close_time)
             for d in range(1, 6)]
    hours.append(BusinessHoursEntry(day_of_week=0, is_open=False))
    hours.append(BusinessHoursEntry(day_of_week=6, is_open=False))
    return hours


def booked(id, start, duration=30, status=AppointmentStatus.CONFIRMED, brand_id=1):
    return BookedAppointment(id=id, brand_id=brand_id, start_time=start, duration=duration, status=status)


def snapshot(appointments=(), special_hours=(), **policy):
    return ScheduleSnapshot(
        brand_id=1,
        policy=BookingPolicy(**policy),
        business_hours=weekdays(),
        special_hours=list(special_hours),
        appointments=list(appointments),
    )


# ============================================================================
# DURATION / INPUT
# ============================================================================

def test_duration_out_of_bounds_rejected_before_anything_else():
    """Bad durations win even when the start is in the past and the day is closed."""
    snap = snapshot()
    past_sunday = at(SUNDAY, "03:00")
    now = at(TUESDAY, "08:00")

    for duration in (14, 481, 0, -30):
        verdict = validate_appointment(past_sunday, duration, snap, now)
        assert verdict.ok is False
        assert verdict.reason == RejectionReason.INVALID_DURATION


def test_duration_bounds_are_inclusive():
    snap = snapshot(buffer_time=0)
    assert validate_appointment(at(MONDAY, "10:00"), 15, snap, LAST_TUESDAY_8AM).ok is True
    assert validate_appointment(at(MONDAY, "09:00"), 480, snap, LAST_TUESDAY_8AM).ok is True


def test_malformed_input_is_invalid_input():
    snap = snapshot()
    cases = [
        ("not-a-date", 30),
        (None, 30),
        (12345, 30),
        (at(MONDAY, "10:00"), "thirty"),
        (at(MONDAY, "10:00"), None),
        (at(MONDAY, "10:00"), True),
        (at(MONDAY, "10:00"), 30.5),
        (at(MONDAY, "10:00"), "--5"),
    ]
    for start, duration in cases:
        verdict = validate_appointment(start, duration, snap, LAST_TUESDAY_8AM)
        assert verdict.reason == RejectionReason.INVALID_INPUT, (start, duration)
        assert verdict.message


def test_iso_string_start_and_numeric_string_duration_accepted():
    verdict = validate_appointment("2030-01-07T10:00:00", "30", snapshot(), LAST_TUESDAY_8AM)
    assert verdict.ok is True


# ============================================================================
# BOOKING WINDOW
# ============================================================================

def test_start_at_or_before_now_is_in_the_past():
    now = at(MONDAY, "10:00")
    snap = snapshot(min_advance_booking_hours=0)
    assert validate_appointment(now, 30, snap, now).reason == RejectionReason.APPOINTMENT_IN_PAST
    assert validate_appointment(now - timedelta(minutes=1), 30, snap, now).reason == RejectionReason.APPOINTMENT_IN_PAST


def test_min_advance_boundary():
    """2h minimum: 1h59m ahead is too soon, exactly 2h is fine."""
    now = at(MONDAY, "07:00")
    snap = snapshot(min_advance_booking_hours=2)

    too_soon = validate_appointment(at(MONDAY, "08:59"), 30, snap, now)
    assert too_soon.reason == RejectionReason.INSUFFICIENT_ADVANCE

    on_time = validate_appointment(at(MONDAY, "09:00"), 30, snap, now)
    assert on_time.ok is True


def test_max_advance_exceeded():
    snap = snapshot(max_advance_booking_days=7)
    verdict = validate_appointment(at(TUESDAY, "10:00") + timedelta(days=7), 30, snap, at(MONDAY, "10:00"))
    assert verdict.reason == RejectionReason.EXCESSIVE_ADVANCE


def test_max_advance_uses_fractional_days():
    now = at(MONDAY, "10:00")
    exactly = is_within_booking_window(now, now + timedelta(days=7), 0, 7, True)
    just_over = is_within_booking_window(now, now + timedelta(days=7, minutes=1), 0, 7, True)
    assert exactly.ok is True
    assert just_over.reason == RejectionReason.EXCESSIVE_ADVANCE


def test_same_day_not_allowed():
    snap = snapshot(allow_same_day_booking=False, min_advance_booking_hours=0)
    verdict = validate_appointment(at(MONDAY, "15:00"), 30, snap, at(MONDAY, "08:00"))
    assert verdict.reason == RejectionReason.SAME_DAY_NOT_ALLOWED


def test_same_day_checked_before_min_advance():
    verdict = is_within_booking_window(at(MONDAY, "08:00"), at(MONDAY, "09:00"), 2, 30, False)
    assert verdict.reason == RejectionReason.SAME_DAY_NOT_ALLOWED


# ============================================================================
# OPERATING HOURS
# ============================================================================

def test_closed_day_rejected():
    verdict = validate_appointment(at(SUNDAY, "10:00"), 30, snapshot(), LAST_TUESDAY_8AM)
    assert verdict.reason == RejectionReason.CLOSED


def test_end_must_fit_before_closing():
    """Mon 09:00-18:00: 17:30+30 fits exactly, 17:45+30 runs over."""
    snap = snapshot(buffer_time=0)
    assert validate_appointment(at(MONDAY, "17:30"), 30, snap, LAST_TUESDAY_8AM).ok is True
    assert validate_appointment(at(MONDAY, "17:45"), 30, snap, LAST_TUESDAY_8AM).reason == RejectionReason.OUTSIDE_HOURS


def test_start_before_opening_rejected():
    verdict = validate_appointment(at(MONDAY, "08:30"), 30, snapshot(), LAST_TUESDAY_8AM)
    assert verdict.reason == RejectionReason.OUTSIDE_HOURS


def test_appointment_spanning_midnight_is_outside_hours():
    hours = [BusinessHoursEntry(day_of_week=1, is_open=True, open_time="18:00", close_time="23:59")]
    verdict = is_within_operating_hours(at(MONDAY, "23:45"), 30, hours, [])
    assert verdict.reason == RejectionReason.OUTSIDE_HOURS


def test_missing_weekly_row_means_closed():
    hours = [BusinessHoursEntry(day_of_week=1, is_open=True, open_time="09:00", close_time="18:00")]
    assert resolve_operating_hours(TUESDAY, hours, []) is None


def test_special_hours_close_an_open_day():
    closed = SpecialHoursEntry(date=MONDAY, is_open=False, reason="Holiday")
    snap = snapshot(special_hours=[closed])
    verdict = validate_appointment(at(MONDAY, "10:00"), 30, snap, LAST_TUESDAY_8AM)
    assert verdict.reason == RejectionReason.CLOSED


def test_special_hours_open_a_closed_day():
    opened = SpecialHoursEntry(date=SUNDAY, is_open=True, open_time="10:00", close_time="14:00")
    snap = snapshot(special_hours=[opened])
    assert validate_appointment(at(SUNDAY, "11:00"), 30, snap, LAST_TUESDAY_8AM).ok is True
    assert validate_appointment(at(SUNDAY, "13:45"), 30, snap, LAST_TUESDAY_8AM).reason == RejectionReason.OUTSIDE_HOURS


def test_special_hours_replace_weekly_hours_entirely():
    """Weekly 09:00-18:00 is ignored when the date has shorter special hours."""
    short = SpecialHoursEntry(date=MONDAY, is_open=True, open_time="12:00", close_time="14:00")
    snap = snapshot(special_hours=[short])
    assert validate_appointment(at(MONDAY, "10:00"), 30, snap, LAST_TUESDAY_8AM).reason == RejectionReason.OUTSIDE_HOURS
    assert validate_appointment(at(MONDAY, "12:30"), 30, snap, LAST_TUESDAY_8AM).ok is True


# ============================================================================
# CONFLICTS
# ============================================================================

def test_buffer_blocks_back_to_back_booking():
    """Existing 10:00-10:30 with buffer 5: 10:30 clashes, 10:35 is free."""
    existing = booked(42, at(MONDAY, "10:00"))
    snap = snapshot(appointments=[existing], buffer_time=5)

    clash = validate_appointment(at(MONDAY, "10:30"), 30, snap, LAST_TUESDAY_8AM)
    assert clash.reason == RejectionReason.TIME_CONFLICT
    assert clash.conflicting_appointment_id == 42

    assert validate_appointment(at(MONDAY, "10:35"), 30, snap, LAST_TUESDAY_8AM).ok is True


def test_buffer_applies_before_existing_appointment():
    existing = booked(1, at(MONDAY, "10:00"))
    snap = snapshot(appointments=[existing], buffer_time=5)
    assert validate_appointment(at(MONDAY, "09:30"), 30, snap, LAST_TUESDAY_8AM).reason == RejectionReason.TIME_CONFLICT
    assert validate_appointment(at(MONDAY, "09:25"), 30, snap, LAST_TUESDAY_8AM).ok is True


def test_zero_buffer_allows_touching_appointments():
    existing = booked(1, at(MONDAY, "10:00"))
    snap = snapshot(appointments=[existing], buffer_time=0)
    assert validate_appointment(at(MONDAY, "10:30"), 30, snap, LAST_TUESDAY_8AM).ok is True
    assert validate_appointment(at(MONDAY, "09:30"), 30, snap, LAST_TUESDAY_8AM).ok is True


def test_cancelled_appointment_never_conflicts():
    existing = booked(1, at(MONDAY, "10:00"), status=AppointmentStatus.CANCELLED)
    snap = snapshot(appointments=[existing])
    assert validate_appointment(at(MONDAY, "10:00"), 30, snap, LAST_TUESDAY_8AM).ok is True


def test_no_show_still_occupies_its_slot():
    existing = booked(1, at(MONDAY, "10:00"), status=AppointmentStatus.NO_SHOW)
    snap = snapshot(appointments=[existing])
    verdict = validate_appointment(at(MONDAY, "10:00"), 30, snap, LAST_TUESDAY_8AM)
    assert verdict.reason == RejectionReason.TIME_CONFLICT


def test_excluded_appointment_does_not_conflict_with_itself():
    existing = booked(9, at(MONDAY, "10:00"))
    snap = snapshot(appointments=[existing])
    verdict = validate_appointment(at(MONDAY, "10:15"), 30, snap, LAST_TUESDAY_8AM, exclude_appointment_id=9)
    assert verdict.ok is True


def test_first_conflict_is_lowest_id():
    later = booked(7, at(MONDAY, "10:00"))
    earlier = booked(3, at(MONDAY, "10:20"))
    conflict = find_conflict(at(MONDAY, "10:10"), 30, 0, [later, earlier])
    assert conflict.id == 3


def test_other_brand_appointments_ignored():
    foreign = booked(1, at(MONDAY, "10:00"), brand_id=2)
    assert find_conflict(at(MONDAY, "10:00"), 30, 5, [foreign], brand_id=1) is None


def test_conflict_is_logged_through_injected_logger():
    log = MagicMock()
    snap = snapshot(appointments=[booked(5, at(MONDAY, "10:00"))])
    validate_appointment(at(MONDAY, "10:00"), 30, snap, LAST_TUESDAY_8AM, logger=log)
    log.info.assert_called_once()


# ============================================================================
# COMPOSITE
# ============================================================================

def test_validation_is_idempotent():
    snap = snapshot(appointments=[booked(1, at(MONDAY, "10:00"))])
    first = validate_appointment(at(MONDAY, "10:10"), 30, snap, LAST_TUESDAY_8AM)
    second = validate_appointment(at(MONDAY, "10:10"), 30, snap, LAST_TUESDAY_8AM)
    assert first == second


def test_end_to_end_weekday_policy():
    """Mon-Fri 09-17, buffer 10, min 2h, max 30d, no same-day; now Monday 08:00."""
    snap = ScheduleSnapshot(
        brand_id=1,
        policy=BookingPolicy(
            buffer_time=10,
            min_advance_booking_hours=2,
            max_advance_booking_days=30,
            allow_same_day_booking=False,
        ),
        business_hours=weekdays("09:00", "17:00"),
    )
    now = at(MONDAY, "08:00")

    assert validate_appointment(at(TUESDAY, "09:00"), 30, snap, now).ok is True
    assert validate_appointment(at(MONDAY, "10:00"), 30, snap, now).reason == RejectionReason.SAME_DAY_NOT_ALLOWED


def test_aware_start_converted_into_brand_timezone():
    """16:00Z is 10:00 in America/Costa_Rica (UTC-6)."""
    snap = snapshot().model_copy(update={"timezone": "America/Costa_Rica"})
    now = pytz.UTC.localize(datetime(2030, 1, 1, 14, 0))

    assert validate_appointment("2030-01-07T16:00:00Z", 30, snap, now).ok is True
    # 23:30Z is 17:30 local, past closing for a 60 min slot
    late = validate_appointment("2030-01-07T23:30:00Z", 60, snap, now)
    assert late.reason == RejectionReason.OUTSIDE_HOURS


def test_aware_start_without_timezone_is_invalid_input():
    zone = pytz.timezone("America/Costa_Rica")
    verdict = validate_appointment(zone.localize(at(MONDAY, "10:00")), 30, snapshot(), LAST_TUESDAY_8AM)
    assert verdict.reason == RejectionReason.INVALID_INPUT

    utc_string = validate_appointment("2030-01-07T16:00:00Z", 30, snapshot(), LAST_TUESDAY_8AM)
    assert utc_string.reason == RejectionReason.INVALID_INPUT


def test_unknown_snapshot_timezone_rejected():
    with pytest.raises(ValidationError):
        ScheduleSnapshot(brand_id=1, timezone="Mars/Olympus")


# US clocks spring forward on Sunday 2030-03-10: Sat 08:00 EST to Sun 09:00 EDT
# is 25 h on the wall clock but only 24 h of real time.
DST_SATURDAY = date(2030, 3, 9)
DST_SUNDAY = date(2030, 3, 10)


def dst_snapshot(min_hours: int) -> ScheduleSnapshot:
    return ScheduleSnapshot(
        brand_id=1,
        timezone="America/New_York",
        policy=BookingPolicy(min_advance_booking_hours=min_hours, buffer_time=0),
        business_hours=[BusinessHoursEntry(day_of_week=d, is_open=True, open_time="08:00", close_time="18:00")
                        for d in range(7)],
    )


def test_min_advance_counts_real_hours_across_dst_change():
    now = pytz.UTC.localize(datetime(2030, 3, 9, 13, 0))  # Sat 08:00 EST
    start = at(DST_SUNDAY, "09:00")  # 13:00Z

    verdict = validate_appointment(start, 30, dst_snapshot(25), now)
    assert verdict.reason == RejectionReason.INSUFFICIENT_ADVANCE

    assert validate_appointment(start, 30, dst_snapshot(24), now).ok is True
    assert validate_appointment(at(DST_SUNDAY, "10:00"), 30, dst_snapshot(25), now).ok is True


def test_naive_now_localized_in_brand_timezone():
    now = at(DST_SATURDAY, "08:00")
    verdict = validate_appointment(at(DST_SUNDAY, "09:00"), 30, dst_snapshot(25), now)
    assert verdict.reason == RejectionReason.INSUFFICIENT_ADVANCE


def test_booking_window_with_aware_times_uses_elapsed_time():
    zone = pytz.timezone("America/New_York")
    now = zone.localize(at(DST_SATURDAY, "08:00"))
    start = zone.localize(at(DST_SUNDAY, "09:00"))
    assert is_within_booking_window(now, start, 25, 30, True).reason == RejectionReason.INSUFFICIENT_ADVANCE
    assert is_within_booking_window(now, start, 24, 30, True).ok is True


def test_snapshot_schemas_read_orm_attributes():
    row = SimpleNamespace(
        default_duration=45,
        buffer_time=10,
        min_advance_booking_hours=1,
        max_advance_booking_days=60,
        allow_same_day_booking=False,
    )
    policy = BookingPolicy.model_validate(row)
    assert policy.buffer_time == 10
    assert policy.allow_same_day_booking is False

    hours = BusinessHoursEntry.model_validate(
        SimpleNamespace(day_of_week=2, is_open=True, open_time="09:00", close_time="12:00")
    )
    assert hours.close_time == "12:00"


# ============================================================================
# AVAILABILITY
# ============================================================================

def test_slots_step_by_duration_plus_buffer():
    slots = available_time_slots(MONDAY, 30, snapshot(buffer_time=0))
    assert len(slots) == 18
    assert slots[0].time == "09:00"
    assert slots[-1].time == "17:30"

    buffered = available_time_slots(MONDAY, 30, snapshot(buffer_time=5))
    assert [s.time for s in buffered[:3]] == ["09:00", "09:35", "10:10"]
    assert len(buffered) == 15


def test_slots_closed_day_is_empty():
    assert available_time_slots(SUNDAY, 30, snapshot()) == []


def test_slots_mark_taken_and_past():
    snap = snapshot(appointments=[booked(1, at(MONDAY, "11:00"))], buffer_time=0)
    slots = {s.time: s for s in available_time_slots(MONDAY, 30, snap, now=at(MONDAY, "10:00"))}

    assert slots["09:00"].available is False
    assert slots["09:00"].reason == "Time has passed"
    assert slots["10:00"].available is False
    assert slots["11:00"].available is False
    assert slots["11:00"].reason == "Time slot taken"
    assert slots["10:30"].available is True
    assert slots["11:30"].available is True


def test_weekly_availability_covers_seven_days():
    week = weekly_availability(SUNDAY, 60, snapshot(buffer_time=0))
    assert [d.day_name for d in week] == [
        "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday",
    ]
    assert week[0].slots == []
    assert len(week[1].slots) == 9
    assert week[-1].date == date(2030, 1, 12)
