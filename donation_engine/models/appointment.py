import enum
import re
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from donation_engine.exceptions import InvalidInputError
from donation_engine.models.inventory import BloodType


class AppointmentStatus(str, enum.Enum):
    REGISTERED = "registered"
    PENDING_REVIEW = "pending_review"
    ELIGIBLE = "eligible"
    INELIGIBLE = "ineligible"
    CHECKED_IN = "checked_in"
    DONATED = "donated"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"

    def is_terminal(self) -> bool:
        return self in (
            AppointmentStatus.INELIGIBLE,
            AppointmentStatus.DONATED,
            AppointmentStatus.DEFERRED,
            AppointmentStatus.CANCELLED,
        )

    @classmethod
    def from_legacy(cls, value: Any) -> "AppointmentStatus":
        """
        Map a backend status string to a status.

        Matching is exact after trimming and case folding; this is the only
        place free-text statuses are interpreted.
        """
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().casefold()
        status = _LEGACY_APPOINTMENT_STATUS.get(key)
        if status is None:
            raise InvalidInputError(f"Unknown appointment status: {value!r}")
        return status


_LEGACY_APPOINTMENT_STATUS = {
    **{s.value: s for s in AppointmentStatus},
    "đã đăng ký": AppointmentStatus.REGISTERED,
    "chờ xử lý": AppointmentStatus.PENDING_REVIEW,
    "đang xét duyệt": AppointmentStatus.PENDING_REVIEW,
    "pending": AppointmentStatus.PENDING_REVIEW,
    "pendingreview": AppointmentStatus.PENDING_REVIEW,
    "đã đủ điều kiện": AppointmentStatus.ELIGIBLE,
    "không đủ điều kiện": AppointmentStatus.INELIGIBLE,
    "checkedin": AppointmentStatus.CHECKED_IN,
    "đã check-in": AppointmentStatus.CHECKED_IN,
    "đã hiến": AppointmentStatus.DONATED,
    "đã hiến máu": AppointmentStatus.DONATED,
    "hoàn thành": AppointmentStatus.DONATED,
    "completed": AppointmentStatus.DONATED,
    "tạm hoãn": AppointmentStatus.DEFERRED,
    "đã hủy": AppointmentStatus.CANCELLED,
    "hủy": AppointmentStatus.CANCELLED,
}


def _is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.utcoffset() is not None


def comparable_now(now: datetime, other: datetime) -> datetime:
    """
    Return ``now`` in the time zone of ``other`` so the two can be ordered.

    Raises:
        InvalidInputError: if one value is timezone-aware and the other is naive
    """
    if _is_aware(now) != _is_aware(other):
        raise InvalidInputError(
            f"Cannot compare timezone-aware and naive datetimes: {now.isoformat()} vs {other.isoformat()}"
        )
    if _is_aware(now):
        return now.astimezone(other.tzinfo)
    return now


class DonationEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event_id: int
    title: str = ""
    starts_at: datetime

    def is_upcoming(self, now: datetime) -> bool:
        return self.starts_at > comparable_now(now, self.starts_at)


DEFERRAL_CODE_PATTERN = re.compile(r"^[A-Z_]{2,20}$")


class DeferralReason(BaseModel):
    """Catalogue entry describing why a donor is deferred and for how long."""

    model_config = ConfigDict(frozen=True)

    code: str
    text: str
    note: Optional[str] = None
    min_days: int = Field(0, ge=0)
    min_hours: int = Field(0, ge=0)
    min_minutes: int = Field(0, ge=0)
    is_permanent: bool = False

    @field_validator("code")
    @classmethod
    def _check_code(cls, value: str) -> str:
        if not DEFERRAL_CODE_PATTERN.match(value or ""):
            raise InvalidInputError(
                f"Deferral reason code must be 2-20 uppercase letters or underscores, got {value!r}"
            )
        return value

    @field_validator("text")
    @classmethod
    def _check_text(cls, value: str) -> str:
        stripped = (value or "").strip()
        if not 5 <= len(stripped) <= 200:
            raise InvalidInputError("Deferral reason text must be 5-200 characters")
        return stripped

    @property
    def wait(self) -> timedelta:
        return timedelta(days=self.min_days, hours=self.min_hours, minutes=self.min_minutes)

    def eligible_again_at(self, from_time: datetime) -> Optional[datetime]:
        """When the donor may donate again, or None for a permanent deferral."""
        if self.is_permanent:
            return None
        return from_time + self.wait


class Appointment(BaseModel):
    """A donor's registration for one donation event."""

    appointment_id: str
    donor_id: str
    event_id: int
    created_at: datetime
    scheduled_at: datetime
    status: AppointmentStatus
    version: int = 0
    status_changed_at: Optional[datetime] = None
    requires_staff_review: bool = False
    staff_note: Optional[str] = None

    # Deferral
    deferral_reason_code: Optional[str] = None
    deferral_note: Optional[str] = None
    eligible_again_at: Optional[datetime] = None
    permanently_deferred: bool = False

    # Donation
    donation_volume: Optional[float] = None
    blood_type: Optional[BloodType] = None
    next_donation_at: Optional[datetime] = None

    # Set on appointments created by re-registration
    previous_appointment_id: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return AppointmentStatus.from_legacy(value)
