"""Appointment scheduling validation.

Decides whether a proposed appointment (start, duration) is legal for a brand
given its weekly hours, special-date overrides, booking window settings and
the appointments already on the books.

Everything here is pure: inputs are an in-memory ScheduleSnapshot plus an
explicit ``now``; nothing is read from or written to storage. Opening hours
and conflicts are checked on brand-local wall-clock times (naive datetimes);
the advance-booking lead is measured between real instants when the snapshot
carries the brand timezone.

Check order for validate_appointment (first failure wins):
    1. input shape            -> INVALID_INPUT
    2. duration bounds        -> INVALID_DURATION
    3. advance-booking window -> APPOINTMENT_IN_PAST / SAME_DAY_NOT_ALLOWED /
                                 INSUFFICIENT_ADVANCE / EXCESSIVE_ADVANCE
    4. operating hours        -> CLOSED / OUTSIDE_HOURS
    5. conflicts              -> TIME_CONFLICT
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence
import pytz

from agenda.core.appointment_constants import (
    AppointmentStatus,
    RejectionReason,
    DURATION_MIN,
    DURATION_MAX,
)
from agenda.schemas.scheduling import (
    BookedAppointment,
    BusinessHoursEntry,
    DayAvailability,
    ScheduleSnapshot,
    SpecialHoursEntry,
    TimeSlot,
    ValidationVerdict,
)
from agenda.services.time_utils import (
    day_of_week,
    day_name,
    generate_time_slots,
    is_valid_time_format,
    parse_hhmm,
)

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


# ============================================================================
# OPERATING HOURS
# ============================================================================

def resolve_operating_hours(
    day: date,
    business_hours: Iterable[BusinessHoursEntry],
    special_hours: Iterable[SpecialHoursEntry],
) -> Optional[tuple[time, time]]:
    """Return the effective (open, close) for a date, or None when closed.

    A special-hours row for the date replaces the weekly row entirely.
    """
    entry = next((sh for sh in special_hours if sh.date == day), None)
    if entry is None:
        dow = day_of_week(day)
        entry = next((bh for bh in business_hours if bh.day_of_week == dow), None)

    if entry is None or not entry.is_open:
        return None
    if not (is_valid_time_format(entry.open_time) and is_valid_time_format(entry.close_time)):
        return None
    return parse_hhmm(entry.open_time), parse_hhmm(entry.close_time)


def is_within_operating_hours(
    start: datetime,
    duration_minutes: int,
    business_hours: Iterable[BusinessHoursEntry],
    special_hours: Iterable[SpecialHoursEntry],
) -> ValidationVerdict:
    """Check that [start, start + duration) fits the day's opening hours.

    Closing time is exclusive. Appointments ending after midnight are
    rejected as OUTSIDE_HOURS.
    """
    hours = resolve_operating_hours(start.date(), business_hours, special_hours)
    if hours is None:
        return ValidationVerdict.reject(RejectionReason.CLOSED)

    open_at = datetime.combine(start.date(), hours[0])
    close_at = datetime.combine(start.date(), hours[1])
    end = start + timedelta(minutes=duration_minutes)

    if start < open_at or end > close_at:
        return ValidationVerdict.reject(RejectionReason.OUTSIDE_HOURS)
    return ValidationVerdict.accept()


# ============================================================================
# ADVANCE BOOKING WINDOW
# ============================================================================

def elapsed_seconds(earlier: datetime, later: datetime) -> float:
    if earlier.tzinfo is not None and later.tzinfo is not None:
        return (later.astimezone(pytz.UTC) - earlier.astimezone(pytz.UTC)).total_seconds()
    return (later - earlier).total_seconds()


def is_within_booking_window(
    now: datetime,
    start: datetime,
    min_advance_booking_hours: float,
    max_advance_booking_days: float,
    allow_same_day_booking: bool,
) -> ValidationVerdict:
    """Apply the advance-booking rules in order; first failure wins.

    Pass both times naive (same wall clock) or both aware in the brand's
    zone. Aware values measure the lead in real elapsed time, so a window
    crossing a DST change is an hour shorter or longer than the wall clock
    suggests. Same-day is decided on the dates as given.
    """
    lead = elapsed_seconds(now, start)
    if lead <= 0:
        return ValidationVerdict.reject(RejectionReason.APPOINTMENT_IN_PAST)

    if not allow_same_day_booking and start.date() == now.date():
        return ValidationVerdict.reject(RejectionReason.SAME_DAY_NOT_ALLOWED)

    if lead / SECONDS_PER_HOUR < min_advance_booking_hours:
        return ValidationVerdict.reject(RejectionReason.INSUFFICIENT_ADVANCE)

    if lead / SECONDS_PER_DAY > max_advance_booking_days:
        return ValidationVerdict.reject(RejectionReason.EXCESSIVE_ADVANCE)

    return ValidationVerdict.accept()


# ============================================================================
# CONFLICTS
# ============================================================================

def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval overlap: touching ends do not overlap."""
    return a_start < b_end and b_start < a_end


def find_conflict(
    start: datetime,
    duration_minutes: int,
    buffer_minutes: int,
    existing: Sequence[BookedAppointment],
    brand_id: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
) -> Optional[BookedAppointment]:
    """Return the first existing appointment clashing with the candidate.

    The candidate is widened by the buffer on both sides, so neighbours must
    be at least ``buffer_minutes`` apart. Cancelled appointments never clash;
    NO_SHOW still holds its slot.
    """
    buffer = timedelta(minutes=buffer_minutes)
    cand_start = start - buffer
    cand_end = start + timedelta(minutes=duration_minutes) + buffer

    ordered = sorted(existing, key=lambda a: (a.id, a.created_at or datetime.min))
    for appt in ordered:
        if appt.status == AppointmentStatus.CANCELLED:
            continue
        if brand_id is not None and appt.brand_id is not None and appt.brand_id != brand_id:
            continue
        if exclude_appointment_id is not None and appt.id == exclude_appointment_id:
            continue
        if intervals_overlap(cand_start, cand_end, appt.start_time, appt.end_time):
            return appt
    return None


# ============================================================================
# COMPOSITE VALIDATOR
# ============================================================================

def coerce_start(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def coerce_duration(value) -> Optional[int]:
    # bool is an int subclass but never a duration
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def validate_appointment(
    start,
    duration_minutes,
    snapshot: ScheduleSnapshot,
    now: datetime,
    *,
    exclude_appointment_id: Optional[int] = None,
    logger: logging.Logger = logger,
) -> ValidationVerdict:
    """Validate a proposed appointment against a brand's schedule snapshot.

    ``start`` may be a datetime or an ISO-8601 string; ``duration_minutes``
    an int or an integral string. Anything else is INVALID_INPUT.

    Naive times are brand-local wall-clock times. Aware times (including
    ``Z``-suffixed strings) are converted into ``snapshot.timezone``; an
    aware start without a snapshot timezone is INVALID_INPUT, and an aware
    ``now`` without one is read as local.
    """
    start_dt = coerce_start(start)
    duration = coerce_duration(duration_minutes)
    if start_dt is None or duration is None:
        logger.debug("Rejecting malformed appointment input: start=%r duration=%r", start, duration_minutes)
        return ValidationVerdict.reject(RejectionReason.INVALID_INPUT)

    zone = snapshot.zone
    if start_dt.tzinfo is not None:
        if zone is None:
            logger.debug("Rejecting aware start %s: no brand timezone to convert into", start_dt)
            return ValidationVerdict.reject(RejectionReason.INVALID_INPUT)
        start_dt = start_dt.astimezone(zone).replace(tzinfo=None)

    if duration < DURATION_MIN or duration > DURATION_MAX:
        return ValidationVerdict.reject(RejectionReason.INVALID_DURATION)

    # Lead time is measured between instants; hours and conflicts use the wall clock
    if zone is not None:
        window_start = zone.localize(start_dt)
        window_now = now.astimezone(zone) if now.tzinfo is not None else zone.localize(now)
    else:
        window_start = start_dt
        window_now = now.replace(tzinfo=None)

    policy = snapshot.policy
    verdict = is_within_booking_window(
        window_now,
        window_start,
        policy.min_advance_booking_hours,
        policy.max_advance_booking_days,
        policy.allow_same_day_booking,
    )
    if not verdict.ok:
        logger.debug("Brand %s: %s for %s", snapshot.brand_id, verdict.reason.value, start_dt)
        return verdict

    verdict = is_within_operating_hours(start_dt, duration, snapshot.business_hours, snapshot.special_hours)
    if not verdict.ok:
        logger.debug("Brand %s: %s for %s", snapshot.brand_id, verdict.reason.value, start_dt)
        return verdict

    conflict = find_conflict(
        start_dt,
        duration,
        policy.buffer_time,
        snapshot.appointments,
        brand_id=snapshot.brand_id,
        exclude_appointment_id=exclude_appointment_id,
    )
    if conflict is not None:
        logger.info(
            "Brand %s: slot %s (+%d min) conflicts with appointment %s",
            snapshot.brand_id, start_dt, duration, conflict.id,
        )
        return ValidationVerdict.reject(RejectionReason.TIME_CONFLICT, conflicting_appointment_id=conflict.id)

    return ValidationVerdict.accept()


# ============================================================================
# AVAILABILITY
# ============================================================================

def available_time_slots(
    day: date,
    duration_minutes: int,
    snapshot: ScheduleSnapshot,
    now: Optional[datetime] = None,
) -> list[TimeSlot]:
    """List slot start times for a day, each flagged available or not.

    Slots step by duration + buffer from opening time. A slot is unavailable
    when it clashes with a booked appointment (buffer included) or, if
    ``now`` is given, when it has already started.
    """
    hours = resolve_operating_hours(day, snapshot.business_hours, snapshot.special_hours)
    if hours is None:
        return []

    open_str = hours[0].strftime("%H:%M")
    close_str = hours[1].strftime("%H:%M")
    buffer_minutes = snapshot.policy.buffer_time

    slots = []
    for slot in generate_time_slots(open_str, close_str, duration_minutes, buffer_minutes):
        slot_start = datetime.combine(day, parse_hhmm(slot))
        if now is not None and slot_start <= now.replace(tzinfo=None):
            slots.append(TimeSlot(time=slot, available=False, reason="Time has passed"))
            continue
        conflict = find_conflict(
            slot_start, duration_minutes, buffer_minutes, snapshot.appointments, brand_id=snapshot.brand_id
        )
        if conflict is not None:
            slots.append(TimeSlot(time=slot, available=False, reason="Time slot taken"))
        else:
            slots.append(TimeSlot(time=slot, available=True))
    return slots


def weekly_availability(
    start_day: date,
    duration_minutes: int,
    snapshot: ScheduleSnapshot,
    now: Optional[datetime] = None,
) -> list[DayAvailability]:
    """Seven days of slots starting at start_day."""
    week = []
    for offset in range(7):
        day = start_day + timedelta(days=offset)
        week.append(DayAvailability(
            date=day,
            day_name=day_name(day_of_week(day)),
            slots=available_time_slots(day, duration_minutes, snapshot, now),
        ))
    return week
