"""Appointment statuses, scheduling bounds and the shared message table."""

import enum


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "SCHEDULED"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    NO_SHOW = "NO_SHOW"
    COMPLETED = "COMPLETED"


TERMINAL_STATUSES = frozenset({
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
    AppointmentStatus.COMPLETED,
})


class RejectionReason(str, enum.Enum):
    """Why a proposed appointment was refused."""
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_DURATION = "INVALID_DURATION"
    APPOINTMENT_IN_PAST = "APPOINTMENT_IN_PAST"
    INSUFFICIENT_ADVANCE = "INSUFFICIENT_ADVANCE"
    EXCESSIVE_ADVANCE = "EXCESSIVE_ADVANCE"
    SAME_DAY_NOT_ALLOWED = "SAME_DAY_NOT_ALLOWED"
    CLOSED = "CLOSED"
    OUTSIDE_HOURS = "OUTSIDE_HOURS"
    TIME_CONFLICT = "TIME_CONFLICT"


# Minutes
DURATION_MIN = 15
DURATION_MAX = 480
DURATION_DEFAULT = 30

BUFFER_TIME_MIN = 0
BUFFER_TIME_MAX = 60
BUFFER_TIME_DEFAULT = 5

# Advance booking window
MIN_ADVANCE_HOURS_MIN = 0
MIN_ADVANCE_HOURS_MAX = 168  # 1 week
MIN_ADVANCE_HOURS_DEFAULT = 2
MAX_ADVANCE_DAYS_MIN = 1
MAX_ADVANCE_DAYS_MAX = 365
MAX_ADVANCE_DAYS_DEFAULT = 30

ALLOW_SAME_DAY_DEFAULT = True

MESSAGES = {
    RejectionReason.INVALID_INPUT: "Invalid appointment data",
    RejectionReason.INVALID_DURATION: f"Duration must be between {DURATION_MIN} and {DURATION_MAX} minutes",
    RejectionReason.APPOINTMENT_IN_PAST: "The appointment must be in the future",
    RejectionReason.INSUFFICIENT_ADVANCE: "The appointment must be booked further in advance",
    RejectionReason.EXCESSIVE_ADVANCE: "The appointment cannot be booked that far in advance",
    RejectionReason.SAME_DAY_NOT_ALLOWED: "Same-day bookings are not allowed",
    RejectionReason.CLOSED: "The business is closed on this day",
    RejectionReason.OUTSIDE_HOURS: "The appointment must be within business hours",
    RejectionReason.TIME_CONFLICT: "Another appointment is already scheduled at this time",
    "INVALID_TIME_FORMAT": "Invalid time format (use HH:MM)",
    "CLIENT_NOT_FOUND": "Client not found",
    "APPOINTMENT_NOT_FOUND": "Appointment not found",
    "ACCESS_DENIED": "You do not have permission for this operation",
}
