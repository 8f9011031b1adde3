"""
Eligibility engine: evaluate a completed pre-donation questionnaire.
Returns a verdict (ELIGIBLE | NEEDS_STAFF_REVIEW | INELIGIBLE) with a reason.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from donation_engine.config import Settings, get_settings
from donation_engine.exceptions import InvalidInputError, MissingAnswerError
from donation_engine.models.questionnaire import Question, Questionnaire, QuestionType
from donation_engine.schemas.answer import AnswerSet, QuestionAnswer
from donation_engine.schemas.eligibility import (
    REASON_CRITERIA_NOT_MET,
    REASON_MISSING_DETAIL,
    EligibilityVerdict,
)

logger = logging.getLogger(__name__)


def _validate_answer(question: Question, answer: Optional[QuestionAnswer]) -> None:
    if answer is None:
        raise MissingAnswerError(question.question_id)
    if answer.question_id != question.question_id:
        raise InvalidInputError(
            f"Answer filed under question {question.question_id} is for question {answer.question_id}"
        )

    selected = answer.selected_option_ids
    if not selected:
        raise MissingAnswerError(question.question_id, "no option selected")
    if question.question_type == QuestionType.SINGLE and len(selected) > 1:
        raise InvalidInputError(
            f"Question {question.question_id} is single-choice but {len(selected)} options were selected"
        )
    if len(set(selected)) != len(selected):
        raise InvalidInputError(f"Question {question.question_id} has a repeated option")
    for option_id in selected:
        if question.get_option(option_id) is None:
            raise InvalidInputError(f"Unknown option {option_id} for question {question.question_id}")


def validate_answers(questionnaire: Questionnaire, answers: AnswerSet) -> None:
    """
    Check that ``answers`` covers ``questionnaire`` exactly.

    Raises:
        InvalidInputError: unknown question or option ids, or too many selections
        MissingAnswerError: a question has no entry or no selected option
    """
    for question_id in answers:
        if questionnaire.get_question(question_id) is None:
            raise InvalidInputError(f"Answer references unknown question {question_id}")
    for question in questionnaire.questions:
        _validate_answer(question, answers.get(question.question_id))


def evaluate_eligibility(
    questionnaire: Questionnaire,
    answers: AnswerSet,
    settings: Optional[Settings] = None,
) -> EligibilityVerdict:
    """
    Evaluate a fully answered questionnaire.

    Questions are checked in order and evaluation stops at the first
    disqualifying answer. An option that requires detail disqualifies when the
    detail is missing and routes to staff review when it is present; in the
    latter case the negative-answer check is skipped for that question. The
    screening question is accepted once answered.
    """
    settings = settings or get_settings()
    validate_answers(questionnaire, answers)

    requires_review = False
    for question in questionnaire.questions:
        answer = answers[question.question_id]
        selected = [question.get_option(option_id) for option_id in answer.selected_option_ids]

        detail_given = False
        for option in selected:
            if not option.requires_additional_text:
                continue
            if answer.text_for(option.option_id) is None:
                logger.debug(f"Question {question.question_id}: option {option.option_id} lacks required detail")
                return EligibilityVerdict.ineligible(
                    REASON_MISSING_DETAIL,
                    question_id=question.question_id,
                    requires_staff_review=requires_review,
                )
            detail_given = True

        if detail_given:
            logger.debug(f"Question {question.question_id}: detail supplied, routing to staff review")
            requires_review = True
            continue

        if question.question_id == settings.screening_question_id:
            continue

        if any(option.text != settings.canonical_negative_answer for option in selected):
            logger.debug(f"Question {question.question_id}: answer is not the negative answer")
            return EligibilityVerdict.ineligible(
                REASON_CRITERIA_NOT_MET,
                question_id=question.question_id,
                requires_staff_review=requires_review,
            )

    if requires_review:
        return EligibilityVerdict.needs_review()
    return EligibilityVerdict.eligible()


def _as_int(value: Any, what: str) -> int:
    if isinstance(value, bool):
        raise InvalidInputError(f"Invalid {what}: {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {what}: {value!r}") from None


def answers_from_legacy_payload(
    questionnaire: Questionnaire,
    payload: Mapping[Any, Mapping[str, Any]],
) -> Dict[int, QuestionAnswer]:
    """
    Convert the web survey payload into answers.

    Single choice: ``{questionId: {"optionId": 3, "text_3": "..."}}``.
    Multiple choice: ``{questionId: {"options": [4, 5], "text_5": "..."}}``.
    """
    answers: Dict[int, QuestionAnswer] = {}
    for raw_question_id, entry in (payload or {}).items():
        question_id = _as_int(raw_question_id, "question id")
        question = questionnaire.get_question(question_id)
        if question is None:
            raise InvalidInputError(f"Answer references unknown question {question_id}")
        entry = entry or {}

        texts: Dict[int, str] = {}
        for key, value in entry.items():
            if isinstance(key, str) and key.startswith("text_") and value:
                texts[_as_int(key[len("text_"):], "option id")] = str(value)

        if question.question_type == QuestionType.SINGLE:
            option_id = entry.get("optionId")
            selected = () if option_id in (None, "") else (_as_int(option_id, "option id"),)
        else:
            selected = tuple(_as_int(o, "option id") for o in entry.get("options") or [])

        answers[question_id] = QuestionAnswer(
            question_id=question_id,
            selected_option_ids=selected,
            texts=texts,
        )
    return answers


class EligibilityEvaluator:
    """Service wrapper binding the evaluation rules to one settings object."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def evaluate(self, questionnaire: Questionnaire, answers: AnswerSet) -> EligibilityVerdict:
        return evaluate_eligibility(questionnaire, answers, self.settings)

    def evaluate_legacy(
        self,
        questionnaire: Questionnaire,
        payload: Mapping[Any, Mapping[str, Any]],
    ) -> EligibilityVerdict:
        return self.evaluate(questionnaire, answers_from_legacy_payload(questionnaire, payload))
