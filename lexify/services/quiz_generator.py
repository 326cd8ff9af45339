"""Daily quiz generation for shared learning goals.

The engine only sees :class:`QuizGenerator`. Production wires the Gemini
generator behind :class:`ResilientQuizGenerator`, so any upstream failure is
answered by the offline bank instead of reaching the caller.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from pydantic import ValidationError

from lexify.core import ai_service, prompt_manager
from lexify.core.config import settings
from lexify.schemas.learning.quiz_schema import (
    OPTIONS_PER_QUESTION,
    QUESTIONS_PER_QUIZ,
    Difficulty,
    QuizQuestion,
    validate_quiz,
)
from lexify.services import quiz_bank
from lexify.utils.json_utils import safe_json_loads

logger = logging.getLogger(__name__)

DIFFICULTY_DESCRIPTIONS = {
    Difficulty.BEGINNER: (
        "Very basic vocabulary, simple greetings, and common everyday words. "
        "Focus on foundational phrases and single words."
    ),
    Difficulty.INTERMEDIATE: (
        "Common phrases, basic grammar structures, conversational expressions. "
        "Include sentence formation and practical usage."
    ),
    Difficulty.ADVANCED: (
        "Complex grammar, idiomatic expressions, nuanced vocabulary, cultural context. "
        "Challenge with sophisticated language concepts."
    ),
}


def difficulty_for_day(day: int, duration: int) -> Difficulty:
    """Beginner up to 30% of the goal, intermediate up to 70%, advanced after."""
    progress = day / duration * 100
    if progress <= 30:
        return Difficulty.BEGINNER
    if progress <= 70:
        return Difficulty.INTERMEDIATE
    return Difficulty.ADVANCED


@dataclass(frozen=True, slots=True)
class LanguagePair:
    learning_language: str
    native_language: str


@dataclass(frozen=True, slots=True)
class QuizPair:
    creator_quiz: List[QuizQuestion]
    partner_quiz: List[QuizQuestion]


class QuizGenerator(ABC):
    @abstractmethod
    def generate(
        self,
        day: int,
        duration: int,
        learner_language: str,
        native_language: str,
        difficulty: Difficulty,
    ) -> List[QuizQuestion]:
        """Return exactly five questions for one learner and one day."""


class GeminiQuizGenerator(QuizGenerator):
    """Asks Gemini for a quiz and normalises whatever JSON comes back."""

    PROMPT_PATH = "learning.daily_quiz"

    def __init__(self, call_model: Callable[[str], str] | None = None, temperature: float | None = 0.7):
        self._call_model = call_model or (
            lambda prompt: ai_service.call_gemini(prompt, temperature=temperature)
        )

    def build_prompt(
        self,
        day: int,
        duration: int,
        learner_language: str,
        native_language: str,
        difficulty: Difficulty,
    ) -> str:
        return prompt_manager.get_prompt(
            self.PROMPT_PATH,
            ensure_json_array=True,
            day=day,
            duration=duration,
            learning_language=learner_language,
            native_language=native_language,
            difficulty=difficulty.value,
            difficulty_description=DIFFICULTY_DESCRIPTIONS[difficulty],
        )

    def generate(
        self,
        day: int,
        duration: int,
        learner_language: str,
        native_language: str,
        difficulty: Difficulty,
    ) -> List[QuizQuestion]:
        logger.info(
            "Generating %s quiz with Gemini: day %s/%s, %s (native %s)",
            difficulty.value,
            day,
            duration,
            learner_language,
            native_language,
        )
        prompt = self.build_prompt(day, duration, learner_language, native_language, difficulty)
        raw = self._call_model(prompt)
        return self.parse(raw, difficulty)

    @staticmethod
    def parse(raw: str, difficulty: Difficulty) -> List[QuizQuestion]:
        """Validate the model output: a JSON array of five well-formed questions."""
        data = safe_json_loads(raw)
        if not isinstance(data, list):
            raise ValueError("Gemini response is not a JSON array")

        questions = [GeminiQuizGenerator._normalize_question(item, index, difficulty) for index, item in enumerate(data)]
        return validate_quiz(questions)

    @staticmethod
    def _normalize_question(item: Any, index: int, difficulty: Difficulty) -> QuizQuestion:
        if not isinstance(item, dict):
            raise ValueError(f"Invalid question structure at index {index}")

        options = item.get("options")
        if not item.get("question") or not isinstance(options, list) or len(options) != OPTIONS_PER_QUESTION:
            raise ValueError(f"Invalid question structure at index {index}")

        correct = item.get("correctAnswer", item.get("correct_answer"))
        if isinstance(correct, bool) or not isinstance(correct, int):
            correct = 0

        level = item.get("difficulty")
        if level not in {d.value for d in Difficulty}:
            level = difficulty.value

        try:
            return QuizQuestion(
                question=str(item["question"]),
                options=[str(option) for option in options],
                correct_answer=correct,
                difficulty=level,
                concept=str(item.get("concept") or "general"),
            )
        except ValidationError as exc:
            raise ValueError(f"Invalid question at index {index}: {exc}") from exc


class FallbackQuizGenerator(QuizGenerator):
    """Offline quiz bank; pure logic that cannot fail.

    Options start with the correct answer at index 0 and are Fisher-Yates
    shuffled unless ``shuffle`` is off.
    """

    def __init__(self, shuffle: bool = True, rng: Optional[random.Random] = None):
        self.shuffle = shuffle
        self._rng = rng or random.Random()

    def _shuffle_options(self, options: List[str]) -> tuple[List[str], int]:
        tagged = [(option, index == 0) for index, option in enumerate(options)]
        if self.shuffle:
            for i in range(len(tagged) - 1, 0, -1):
                j = self._rng.randint(0, i)
                tagged[i], tagged[j] = tagged[j], tagged[i]
        correct_index = next(index for index, (_, is_correct) in enumerate(tagged) if is_correct)
        return [option for option, _ in tagged], correct_index

    def generate(
        self,
        day: int,
        duration: int,
        learner_language: str,
        native_language: str,
        difficulty: Difficulty,
    ) -> List[QuizQuestion]:
        words = quiz_bank.words_for(learner_language)
        templates = quiz_bank.templates_for(native_language)

        questions: List[QuizQuestion] = []
        for template_key, concept, option_keys in quiz_bank.CONCEPTS:
            options, correct_index = self._shuffle_options([words[key] for key in option_keys])
            questions.append(
                QuizQuestion(
                    question=templates[template_key],
                    options=options,
                    correct_answer=correct_index,
                    difficulty=difficulty,
                    concept=concept,
                )
            )
        return questions


class ResilientQuizGenerator(QuizGenerator):
    """Primary generator with the fallback answering for any of its failures."""

    def __init__(self, primary: QuizGenerator, fallback: QuizGenerator):
        self.primary = primary
        self.fallback = fallback

    def generate(
        self,
        day: int,
        duration: int,
        learner_language: str,
        native_language: str,
        difficulty: Difficulty,
    ) -> List[QuizQuestion]:
        try:
            return self.primary.generate(day, duration, learner_language, native_language, difficulty)
        except Exception as exc:
            logger.warning(
                "Quiz generation failed for %s on day %s, using fallback bank: %s",
                learner_language,
                day,
                exc,
            )
            return self.fallback.generate(day, duration, learner_language, native_language, difficulty)


def generate_quiz_pair(
    generator: QuizGenerator,
    day: int,
    duration: int,
    creator: LanguagePair,
    partner: LanguagePair,
) -> QuizPair:
    """Both quizzes of a day share one difficulty level."""
    difficulty = difficulty_for_day(day, duration)
    creator_quiz = generator.generate(day, duration, creator.learning_language, creator.native_language, difficulty)
    partner_quiz = generator.generate(day, duration, partner.learning_language, partner.native_language, difficulty)
    return QuizPair(creator_quiz=validate_quiz(creator_quiz), partner_quiz=validate_quiz(partner_quiz))


def build_quiz_generator() -> QuizGenerator:
    """Generator selected by QUIZ_PROVIDER / QUIZ_FALLBACK_SHUFFLE."""
    fallback = FallbackQuizGenerator(shuffle=settings.QUIZ_FALLBACK_SHUFFLE)
    if settings.QUIZ_PROVIDER == "fallback":
        return fallback
    return ResilientQuizGenerator(primary=GeminiQuizGenerator(), fallback=fallback)


__all__ = [
    "QUESTIONS_PER_QUIZ",
    "Difficulty",
    "FallbackQuizGenerator",
    "GeminiQuizGenerator",
    "LanguagePair",
    "QuizGenerator",
    "QuizPair",
    "ResilientQuizGenerator",
    "build_quiz_generator",
    "difficulty_for_day",
    "generate_quiz_pair",
]
