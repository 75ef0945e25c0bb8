"""Role-based authorization checks.

Plain functions over (role, ids) returning an AccessDecision. They never
touch the database; endpoints look up the ids and turn a denial into 403.
"""

from typing import Optional
from pydantic import BaseModel

from agenda.core.appointment_constants import AppointmentStatus, TERMINAL_STATUSES, MESSAGES
from agenda.models.user import UserRole

STAFF_ROLES = frozenset({UserRole.ROOT, UserRole.ADMIN})


class AccessDecision(BaseModel):
    allowed: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "AccessDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str = MESSAGES["ACCESS_DENIED"]) -> "AccessDecision":
        return cls(allowed=False, reason=reason)


def _role(value) -> Optional[UserRole]:
    try:
        return UserRole(value)
    except ValueError:
        return None


def check_brand_staff(actor_role) -> AccessDecision:
    """ROOT or ADMIN."""
    if _role(actor_role) in STAFF_ROLES:
        return AccessDecision.allow()
    return AccessDecision.deny()


def check_root_only(actor_role) -> AccessDecision:
    if _role(actor_role) == UserRole.ROOT:
        return AccessDecision.allow()
    return AccessDecision.deny("Only the brand ROOT user can access this resource")


def check_brand_membership(actor_brand_id: Optional[int], brand_id: int, actor_role) -> AccessDecision:
    """ADMIN operates across brands; everyone else only inside their own."""
    if _role(actor_role) == UserRole.ADMIN:
        return AccessDecision.allow()
    if actor_brand_id is not None and actor_brand_id == brand_id:
        return AccessDecision.allow()
    return AccessDecision.deny("Access denied to this brand")


def check_appointment_access(actor_role, actor_id: int, owner_id: Optional[int]) -> AccessDecision:
    """Staff see every appointment; clients only their own."""
    if _role(actor_role) in STAFF_ROLES:
        return AccessDecision.allow()
    if owner_id is not None and actor_id == owner_id:
        return AccessDecision.allow()
    return AccessDecision.deny("You do not have access to this appointment")


# ============================================================================
# LIFECYCLE
# ============================================================================

ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.CONFIRMED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
        AppointmentStatus.COMPLETED,
    },
    AppointmentStatus.CONFIRMED: {
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
        AppointmentStatus.COMPLETED,
    },
}


def can_transition(current: AppointmentStatus, target: AppointmentStatus) -> bool:
    """Whether an appointment may move from current to target status.

    Same-status updates are allowed as no-ops.
    """
    if current == target:
        return True
    if current in TERMINAL_STATUSES:
        return False
    return target in ALLOWED_TRANSITIONS.get(current, set())


def check_status_change(
    actor_role,
    actor_id: int,
    owner_id: Optional[int],
    current: AppointmentStatus,
    target: AppointmentStatus,
) -> AccessDecision:
    """Staff drive the lifecycle; a client may only cancel their own booking.

    Transition legality is checked separately with can_transition.
    """
    if current == target or _role(actor_role) in STAFF_ROLES:
        return AccessDecision.allow()
    if target == AppointmentStatus.CANCELLED and owner_id is not None and actor_id == owner_id:
        return AccessDecision.allow()
    return AccessDecision.deny("Only brand staff can change the appointment status")
