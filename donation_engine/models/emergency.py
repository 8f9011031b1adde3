import enum
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, field_validator

from donation_engine.exceptions import InvalidInputError
from donation_engine.models.inventory import BloodType, ensure_volume


class EmergencyStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    OVERDUE = "overdue"
    TRANSFER_AUTHORIZED = "transfer_authorized"

    def is_terminal(self) -> bool:
        return self in (EmergencyStatus.OVERDUE, EmergencyStatus.TRANSFER_AUTHORIZED)

    @classmethod
    def from_legacy(cls, value: Any) -> "EmergencyStatus":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().casefold()
        status = _LEGACY_EMERGENCY_STATUS.get(key)
        if status is None:
            raise InvalidInputError(f"Unknown emergency status: {value!r}")
        return status


_LEGACY_EMERGENCY_STATUS = {
    **{s.value: s for s in EmergencyStatus},
    "chờ duyệt": EmergencyStatus.PENDING,
    "chờ xử lý": EmergencyStatus.PENDING,
    "đã duyệt": EmergencyStatus.APPROVED,
    "quá hạn": EmergencyStatus.OVERDUE,
    "đã chuyển máu": EmergencyStatus.TRANSFER_AUTHORIZED,
}


class EmergencyRequest(BaseModel):
    """A hospital's urgent request for a volume of one blood type."""

    request_id: int
    hospital_id: Optional[int] = None
    blood_type: BloodType
    required_volume: float
    end_date: Optional[date] = None
    medical_note: Optional[str] = None
    status: EmergencyStatus = EmergencyStatus.PENDING
    version: int = 0

    @field_validator("blood_type", mode="before")
    @classmethod
    def _parse_blood_type(cls, value):
        return BloodType.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return EmergencyStatus.from_legacy(value)

    @field_validator("required_volume", mode="before")
    @classmethod
    def _check_volume(cls, value):
        return ensure_volume(value, "required_volume")

    def is_past_end_date(self, today: date) -> bool:
        return self.end_date is not None and today > self.end_date
