from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field


class QuestionAnswer(BaseModel):
    """A donor's response to one question: selected options plus any free text per option."""

    model_config = ConfigDict(frozen=True)

    question_id: int
    selected_option_ids: tuple[int, ...] = Field(default_factory=tuple)
    texts: Dict[int, str] = Field(default_factory=dict)

    @classmethod
    def single(cls, question_id: int, option_id: int, text: Optional[str] = None) -> "QuestionAnswer":
        texts = {option_id: text} if text is not None else {}
        return cls(question_id=question_id, selected_option_ids=(option_id,), texts=texts)

    @classmethod
    def multiple(
        cls,
        question_id: int,
        option_ids: Iterable[int],
        texts: Optional[Mapping[int, str]] = None,
    ) -> "QuestionAnswer":
        return cls(
            question_id=question_id,
            selected_option_ids=tuple(option_ids),
            texts=dict(texts or {}),
        )

    def text_for(self, option_id: int) -> Optional[str]:
        """Free text for an option; blank text counts as not supplied."""
        text = (self.texts.get(option_id) or "").strip()
        return text or None


# question id -> response
AnswerSet = Mapping[int, QuestionAnswer]


def build_answer_set(answers: Iterable[QuestionAnswer]) -> Dict[int, QuestionAnswer]:
    return {a.question_id: a for a in answers}
