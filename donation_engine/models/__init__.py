from donation_engine.models.questionnaire import Option, Question, Questionnaire, QuestionType
from donation_engine.models.inventory import (
    BloodType,
    InventoryRecord,
    InventoryStatus,
    LEGACY_BLOOD_TYPE_IDS,
    ensure_volume,
)
from donation_engine.models.appointment import (
    Appointment,
    AppointmentStatus,
    DeferralReason,
    DonationEvent,
    comparable_now,
)
from donation_engine.models.emergency import EmergencyRequest, EmergencyStatus

__all__ = [
    "Option",
    "Question",
    "Questionnaire",
    "QuestionType",
    "BloodType",
    "InventoryRecord",
    "InventoryStatus",
    "LEGACY_BLOOD_TYPE_IDS",
    "ensure_volume",
    "Appointment",
    "AppointmentStatus",
    "DeferralReason",
    "DonationEvent",
    "comparable_now",
    "EmergencyRequest",
    "EmergencyStatus",
]
