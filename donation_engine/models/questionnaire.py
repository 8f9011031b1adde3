import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from donation_engine.exceptions import InvalidInputError


class QuestionType(str, enum.Enum):
    SINGLE = "single"
    MULTIPLE = "multiple"


class Option(BaseModel):
    model_config = ConfigDict(frozen=True)

    option_id: int
    text: str
    requires_additional_text: bool = False


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_id: int
    text: str
    question_type: QuestionType = QuestionType.SINGLE
    options: tuple[Option, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_option_ids(self) -> "Question":
        ids = [o.option_id for o in self.options]
        if len(ids) != len(set(ids)):
            raise InvalidInputError(f"Question {self.question_id} has duplicate option ids")
        return self

    def get_option(self, option_id: int) -> Optional[Option]:
        for option in self.options:
            if option.option_id == option_id:
                return option
        return None


class Questionnaire(BaseModel):
    """Ordered pre-donation survey, supplied read-only by the survey source."""

    model_config = ConfigDict(frozen=True)

    questions: tuple[Question, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _unique_question_ids(self) -> "Questionnaire":
        ids = [q.question_id for q in self.questions]
        if len(ids) != len(set(ids)):
            raise InvalidInputError("Questionnaire has duplicate question ids")
        return self

    def get_question(self, question_id: int) -> Optional[Question]:
        for question in self.questions:
            if question.question_id == question_id:
                return question
        return None
