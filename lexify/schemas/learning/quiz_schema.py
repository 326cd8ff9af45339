from __future__ import annotations

import enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

QUESTIONS_PER_QUIZ = 5
OPTIONS_PER_QUESTION = 4


class Difficulty(str, enum.Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class QuizQuestion(BaseModel):
    """One multiple-choice question; always 4 options and a valid answer index."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    question: str = Field(..., min_length=1)
    options: List[str]
    correct_answer: int = Field(..., alias="correctAnswer")
    difficulty: Difficulty
    concept: str = Field(..., min_length=1)

    @field_validator("options")
    @classmethod
    def _exactly_four_options(cls, value: List[str]) -> List[str]:
        if len(value) != OPTIONS_PER_QUESTION:
            raise ValueError(f"a question needs exactly {OPTIONS_PER_QUESTION} options")
        if any(not isinstance(option, str) or not option.strip() for option in value):
            raise ValueError("options must be non-empty strings")
        return value

    @model_validator(mode="after")
    def _answer_points_at_an_option(self) -> "QuizQuestion":
        if not 0 <= self.correct_answer < len(self.options):
            raise ValueError("correct_answer must index one of the options")
        return self

    def to_storage(self) -> dict:
        return {
            "question": self.question,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "difficulty": self.difficulty.value,
            "concept": self.concept,
        }


def validate_quiz(questions: List[QuizQuestion]) -> List[QuizQuestion]:
    if len(questions) != QUESTIONS_PER_QUIZ:
        raise ValueError(f"a daily quiz needs exactly {QUESTIONS_PER_QUIZ} questions, got {len(questions)}")
    return questions


def quiz_from_storage(raw: List[dict] | None) -> List[QuizQuestion]:
    return [QuizQuestion.model_validate(item) for item in (raw or [])]


def quiz_to_storage(questions: List[QuizQuestion]) -> List[dict]:
    return [question.to_storage() for question in validate_quiz(questions)]
