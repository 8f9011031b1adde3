import enum
from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class NotificationKind(str, enum.Enum):
    APPOINTMENT_ELIGIBLE = "appointment_eligible"
    APPOINTMENT_DEFERRED = "appointment_deferred"
    TRANSFER_AUTHORIZED = "transfer_authorized"


class NotificationEvent(BaseModel):
    """Descriptor handed to the notification dispatcher; delivery is not the engine's concern."""

    model_config = ConfigDict(frozen=True)

    kind: NotificationKind
    subject_id: str
    occurred_at: datetime
    details: Dict[str, Any] = Field(default_factory=dict)
