"""Pytest configuration and fixtures."""
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest

from donation_engine.config import Settings
from donation_engine.exceptions import ConflictError
from donation_engine.models import (
    Appointment,
    BloodType,
    DeferralReason,
    DonationEvent,
    InventoryRecord,
    Option,
    Question,
    Questionnaire,
    QuestionType,
)
from donation_engine.schemas import NotificationEvent, QuestionAnswer, build_answer_set
from donation_engine.services import AppointmentLifecycle, AppointmentService

NOW = datetime(2025, 7, 1, 9, 0)


class InMemoryAppointmentStore:
    """Appointment store honouring expected versions, like the backend's optimistic locking."""

    def __init__(self):
        self.appointments: Dict[str, Appointment] = {}

    def get(self, appointment_id: str) -> Optional[Appointment]:
        return self.appointments.get(appointment_id)

    def add(self, appointment: Appointment) -> None:
        self.appointments[appointment.appointment_id] = appointment

    def save(self, appointment: Appointment, expected_version: int) -> None:
        stored = self.appointments[appointment.appointment_id]
        if stored.version != expected_version:
            raise ConflictError(appointment.appointment_id, expected_version, stored.version)
        self.appointments[appointment.appointment_id] = appointment


class RecordingDispatcher:
    def __init__(self):
        self.events: List[NotificationEvent] = []

    def dispatch(self, event: NotificationEvent) -> None:
        self.events.append(event)


class StaticQuestionnaireSource:
    def __init__(self, questionnaire: Questionnaire):
        self.questionnaire = questionnaire

    def get_questionnaire(self) -> Questionnaire:
        return self.questionnaire


class StaticInventorySource:
    def __init__(self, records: List[InventoryRecord]):
        self.records = records

    def snapshot(self, blood_type: BloodType) -> List[InventoryRecord]:
        return [r for r in self.records if r.blood_type == blood_type]


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def questionnaire():
    """Screening question, one single-choice risk question, one multiple-choice risk question."""
    return Questionnaire(questions=(
        Question(
            question_id=1,
            text="Anh/chị đã từng hiến máu chưa?",
            options=(Option(option_id=1, text="Có"), Option(option_id=2, text="Không")),
        ),
        Question(
            question_id=2,
            text="Trong 12 tháng qua anh/chị có phẫu thuật không?",
            options=(
                Option(option_id=3, text="Có", requires_additional_text=True),
                Option(option_id=4, text="Không"),
            ),
        ),
        Question(
            question_id=3,
            text="Hiện tại anh/chị có triệu chứng nào sau đây?",
            question_type=QuestionType.MULTIPLE,
            options=(
                Option(option_id=5, text="Sốt"),
                Option(option_id=6, text="Khác", requires_additional_text=True),
                Option(option_id=7, text="Không"),
            ),
        ),
    ))


@pytest.fixture
def clean_answers():
    return build_answer_set([
        QuestionAnswer.single(1, 2),
        QuestionAnswer.single(2, 4),
        QuestionAnswer.multiple(3, [7]),
    ])


@pytest.fixture
def review_answers():
    return build_answer_set([
        QuestionAnswer.single(1, 1),
        QuestionAnswer.single(2, 3, "Mổ ruột thừa tháng 2"),
        QuestionAnswer.multiple(3, [7]),
    ])


@pytest.fixture
def event():
    return DonationEvent(event_id=10, title="Ngày hội hiến máu", starts_at=NOW + timedelta(days=7))


@pytest.fixture
def lifecycle(settings):
    return AppointmentLifecycle(settings)


@pytest.fixture
def cold_deferral():
    return DeferralReason(code="COLD_FLU", text="Đang bị cảm cúm", min_days=14)


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
def inventory_records():
    return [
        InventoryRecord(record_id=1, blood_type="O-", volume=350, status="Còn hạn"),
        InventoryRecord(record_id=2, blood_type="O-", volume=250, status="Còn hạn"),
        InventoryRecord(record_id=3, blood_type="O-", volume=450, status="Hết hạn"),
        InventoryRecord(record_id=4, blood_type="A+", volume=450, status="Còn hạn"),
    ]


@pytest.fixture
def service(store, dispatcher, questionnaire, inventory_records, settings):
    return AppointmentService(
        store=store,
        questionnaires=StaticQuestionnaireSource(questionnaire),
        dispatcher=dispatcher,
        inventory=StaticInventorySource(inventory_records),
        settings=settings,
    )
