from donation_engine.services.eligibility_evaluator import (
    EligibilityEvaluator,
    answers_from_legacy_payload,
    evaluate_eligibility,
    validate_answers,
)
from donation_engine.services.blood_sufficiency import (
    BloodSufficiencyCalculator,
    blood_sufficiency_calculator,
    compare_blood_supply,
    summarize_inventory,
)
from donation_engine.services.appointment_lifecycle import (
    VALID_TRANSITIONS,
    AppointmentLifecycle,
    can_transition,
)
from donation_engine.services.emergency_transfer import (
    EMERGENCY_TRANSITIONS,
    approve_request,
    authorize_transfer,
    mark_overdue,
)
from donation_engine.services.appointment_service import AppointmentService

__all__ = [
    "EligibilityEvaluator",
    "answers_from_legacy_payload",
    "evaluate_eligibility",
    "validate_answers",
    "BloodSufficiencyCalculator",
    "blood_sufficiency_calculator",
    "compare_blood_supply",
    "summarize_inventory",
    "VALID_TRANSITIONS",
    "AppointmentLifecycle",
    "can_transition",
    "EMERGENCY_TRANSITIONS",
    "approve_request",
    "authorize_transfer",
    "mark_overdue",
    "AppointmentService",
]
