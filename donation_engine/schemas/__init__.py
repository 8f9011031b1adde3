from donation_engine.schemas.answer import AnswerSet, QuestionAnswer, build_answer_set
from donation_engine.schemas.eligibility import (
    REASON_CRITERIA_NOT_MET,
    REASON_MISSING_DETAIL,
    REASON_STAFF_REVIEW,
    EligibilityStatus,
    EligibilityVerdict,
)
from donation_engine.schemas.inventory import (
    STATUS_ENOUGH,
    STATUS_INSUFFICIENT,
    InventorySummary,
    SufficiencyVerdict,
)
from donation_engine.schemas.notification import NotificationEvent, NotificationKind
from donation_engine.schemas.results import RegistrationOutcome, TransferDecision, TransitionResult

__all__ = [
    "AnswerSet",
    "QuestionAnswer",
    "build_answer_set",
    "REASON_CRITERIA_NOT_MET",
    "REASON_MISSING_DETAIL",
    "REASON_STAFF_REVIEW",
    "EligibilityStatus",
    "EligibilityVerdict",
    "STATUS_ENOUGH",
    "STATUS_INSUFFICIENT",
    "InventorySummary",
    "SufficiencyVerdict",
    "NotificationEvent",
    "NotificationKind",
    "RegistrationOutcome",
    "TransferDecision",
    "TransitionResult",
]
