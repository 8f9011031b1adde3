import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from donation_engine.exceptions import InvalidInputError


class BloodType(str, enum.Enum):
    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"

    @classmethod
    def parse(cls, value: Any) -> "BloodType":
        """Accept a blood type, its code ("O-") or the backend's numeric id ("8")."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper() if value is not None else ""
        if text in LEGACY_BLOOD_TYPE_IDS:
            return LEGACY_BLOOD_TYPE_IDS[text]
        try:
            return cls(text)
        except ValueError:
            raise InvalidInputError(f"Unknown blood type code: {value!r}") from None


# Numeric ids used by the donation-process backend
LEGACY_BLOOD_TYPE_IDS = {
    "1": BloodType.A_POS,
    "2": BloodType.A_NEG,
    "3": BloodType.B_POS,
    "4": BloodType.B_NEG,
    "5": BloodType.AB_POS,
    "6": BloodType.AB_NEG,
    "7": BloodType.O_POS,
    "8": BloodType.O_NEG,
}


class InventoryStatus(str, enum.Enum):
    IN_STOCK = "in_stock"
    EXPIRED = "expired"
    DEPLETED = "depleted"

    @classmethod
    def from_legacy(cls, value: Any) -> "InventoryStatus":
        if isinstance(value, cls):
            return value
        key = str(value or "").strip().casefold()
        status = _LEGACY_INVENTORY_STATUS.get(key)
        if status is None:
            raise InvalidInputError(f"Unknown inventory status: {value!r}")
        return status


_LEGACY_INVENTORY_STATUS = {
    "còn hạn": InventoryStatus.IN_STOCK,
    "in_stock": InventoryStatus.IN_STOCK,
    "instock": InventoryStatus.IN_STOCK,
    "hết hạn": InventoryStatus.EXPIRED,
    "expired": InventoryStatus.EXPIRED,
    "đã sử dụng": InventoryStatus.DEPLETED,
    "depleted": InventoryStatus.DEPLETED,
}


def ensure_volume(value: Any, field: str = "volume") -> float:
    """Return ``value`` as milliliters; negative or non-numeric values are rejected."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number, got {value!r}")
    try:
        volume = float(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"{field} must be a number, got {value!r}") from None
    if volume != volume or volume < 0:
        raise InvalidInputError(f"{field} must not be negative, got {value!r}")
    return volume


class InventoryRecord(BaseModel):
    """One stored batch of blood, as reported by the inventory source."""

    model_config = ConfigDict(frozen=True)

    record_id: Optional[int] = None
    blood_type: BloodType
    volume: float
    entry_date: Optional[datetime] = None
    status: InventoryStatus = InventoryStatus.IN_STOCK
    hospital_id: Optional[int] = None
    note: Optional[str] = None

    @field_validator("blood_type", mode="before")
    @classmethod
    def _parse_blood_type(cls, value):
        return BloodType.parse(value)

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value):
        return InventoryStatus.from_legacy(value)

    @field_validator("volume", mode="before")
    @classmethod
    def _check_volume(cls, value):
        return ensure_volume(value)
