import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

REASON_MISSING_DETAIL = "missing required detail"
REASON_CRITERIA_NOT_MET = "does not meet online self-registration criteria"
REASON_STAFF_REVIEW = "answers require staff review"


class EligibilityStatus(str, enum.Enum):
    ELIGIBLE = "eligible"
    NEEDS_STAFF_REVIEW = "needs_staff_review"
    INELIGIBLE = "ineligible"


class EligibilityVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: EligibilityStatus
    reason: Optional[str] = None
    requires_staff_review: bool = False
    question_id: Optional[int] = None  # question that decided an ineligible verdict

    @model_validator(mode="after")
    def _reason_required(self) -> "EligibilityVerdict":
        if self.status != EligibilityStatus.ELIGIBLE and not self.reason:
            raise ValueError(f"A {self.status.value} verdict requires a reason")
        return self

    @property
    def is_eligible(self) -> bool:
        return self.status == EligibilityStatus.ELIGIBLE

    @property
    def is_ineligible(self) -> bool:
        return self.status == EligibilityStatus.INELIGIBLE

    @classmethod
    def eligible(cls) -> "EligibilityVerdict":
        return cls(status=EligibilityStatus.ELIGIBLE)

    @classmethod
    def needs_review(cls, reason: str = REASON_STAFF_REVIEW) -> "EligibilityVerdict":
        return cls(
            status=EligibilityStatus.NEEDS_STAFF_REVIEW,
            reason=reason,
            requires_staff_review=True,
        )

    @classmethod
    def ineligible(
        cls,
        reason: str,
        question_id: Optional[int] = None,
        requires_staff_review: bool = False,
    ) -> "EligibilityVerdict":
        return cls(
            status=EligibilityStatus.INELIGIBLE,
            reason=reason,
            question_id=question_id,
            requires_staff_review=requires_staff_review,
        )
