"""Interfaces of the external collaborators the engine is used with."""
from typing import List, Optional, Protocol

from donation_engine.models.appointment import Appointment
from donation_engine.models.inventory import BloodType, InventoryRecord
from donation_engine.models.questionnaire import Questionnaire
from donation_engine.schemas.notification import NotificationEvent


class QuestionnaireSource(Protocol):
    def get_questionnaire(self) -> Questionnaire:
        ...


class AppointmentStore(Protocol):
    def get(self, appointment_id: str) -> Optional[Appointment]:
        ...

    def add(self, appointment: Appointment) -> None:
        ...

    def save(self, appointment: Appointment, expected_version: int) -> None:
        """Persist ``appointment``; raise ConflictError if the stored version is not ``expected_version``."""
        ...


class InventorySource(Protocol):
    def snapshot(self, blood_type: BloodType) -> List[InventoryRecord]:
        ...


class NotificationDispatcher(Protocol):
    def dispatch(self, event: NotificationEvent) -> None:
        ...
