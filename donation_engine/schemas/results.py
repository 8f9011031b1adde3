from typing import Optional

from pydantic import BaseModel

from donation_engine.models.appointment import Appointment, AppointmentStatus
from donation_engine.models.emergency import EmergencyRequest
from donation_engine.schemas.eligibility import EligibilityVerdict
from donation_engine.schemas.inventory import SufficiencyVerdict
from donation_engine.schemas.notification import NotificationEvent


class RegistrationOutcome(BaseModel):
    """Result of a registration attempt; appointment is None when the verdict refused it."""

    verdict: EligibilityVerdict
    appointment: Optional[Appointment] = None

    @property
    def created(self) -> bool:
        return self.appointment is not None


class TransitionResult(BaseModel):
    appointment: Appointment
    previous_status: AppointmentStatus
    notification: Optional[NotificationEvent] = None


class TransferDecision(BaseModel):
    request: EmergencyRequest
    verdict: SufficiencyVerdict
    notification: Optional[NotificationEvent] = None

    @property
    def authorized(self) -> bool:
        return self.notification is not None
