"""Value types shared by the question bank, pipelines and session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping

__all__ = [
    "BLANK_MARKER",
    "Mode",
    "ModelTier",
    "DEFAULT_MODEL",
    "Question",
    "AnswerAttempt",
    "ResultRecord",
    "GradeResult",
    "GradeRequest",
    "MissedQuestion",
    "SummaryRequest",
    "SessionSummary",
    "GradingTicket",
]

BLANK_MARKER = "_____"


class Mode(Enum):
    """Session-wide feedback policy."""

    PRACTICE = "practice"
    EXAM = "exam"

    @property
    def shows_feedback(self) -> bool:
        return self is Mode.PRACTICE

    @classmethod
    def from_value(cls, value: str) -> "Mode":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(f"Unknown mode '{value}'. Expected one of: {expected}.")


class ModelTier(Enum):
    """Grading-model tiers offered to the learner."""

    MINISTRAL_3 = "ministral-3"
    MISTRAL_SMALL = "mistral-small"
    MAGISTRAL_SMALL = "magistral-small"
    MISTRAL_MEDIUM = "mistral-medium"
    MAGISTRAL_MEDIUM = "magistral-medium"
    MISTRAL_LARGE = "mistral-large"

    @property
    def remote_model(self) -> str:
        return _REMOTE_MODELS[self]

    @property
    def label(self) -> str:
        return _TIER_LABELS[self][0]

    @property
    def description(self) -> str:
        return _TIER_LABELS[self][1]

    @classmethod
    def from_value(cls, value: str) -> "ModelTier":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown model tier '{value}'. Expected one of: {expected}."
        )


# Several tiers share one hosted model; the thinking variants differ only in
# how they are presented to the learner.
_REMOTE_MODELS: Mapping[ModelTier, str] = {
    ModelTier.MINISTRAL_3: "ministral-3",
    ModelTier.MISTRAL_SMALL: "mistral-small-latest",
    ModelTier.MAGISTRAL_SMALL: "mistral-small-latest",
    ModelTier.MISTRAL_MEDIUM: "mistral-medium-latest",
    ModelTier.MAGISTRAL_MEDIUM: "mistral-medium-latest",
    ModelTier.MISTRAL_LARGE: "mistral-large-latest",
}

_TIER_LABELS: Mapping[ModelTier, tuple[str, str]] = {
    ModelTier.MINISTRAL_3: (
        "Instant",
        "Fastest responses; good for quick drills.",
    ),
    ModelTier.MISTRAL_SMALL: (
        "Fast",
        "Quick and accurate without long waits.",
    ),
    ModelTier.MAGISTRAL_SMALL: (
        "Fast Thinking",
        "Quick responses with a little more reasoning.",
    ),
    ModelTier.MISTRAL_MEDIUM: (
        "Balanced",
        "Balance of speed and accuracy; recommended default.",
    ),
    ModelTier.MAGISTRAL_MEDIUM: (
        "Balanced Thinking",
        "Deeper reasoning at moderate speed.",
    ),
    ModelTier.MISTRAL_LARGE: (
        "Intelligent",
        "Most thorough feedback; slowest.",
    ),
}

DEFAULT_MODEL = ModelTier.MISTRAL_MEDIUM


@dataclass(frozen=True)
class Question:
    """A fill-in-the-blank question from the bank."""

    id: str
    category: str
    prompt: str
    answer: str
    images: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.answer.strip():
            raise ValueError(f"Question '{self.id}' has an empty answer.")


@dataclass
class AnswerAttempt:
    """Working state for the question currently on screen."""

    text: str = ""
    submitted: bool = False
    is_correct: bool | None = None
    feedback: str = ""
    hint: str = ""
    pending: bool = False


@dataclass(frozen=True)
class ResultRecord:
    """One graded submission in the session ledger."""

    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool

    def to_payload(self) -> dict[str, object]:
        return {
            "question": self.question,
            "userAnswer": self.user_answer,
            "correctAnswer": self.correct_answer,
            "isCorrect": self.is_correct,
        }


@dataclass(frozen=True)
class GradeResult:
    is_correct: bool
    feedback: str
    hint: str


@dataclass(frozen=True)
class GradeRequest:
    """Inputs sent to the semantic grading service."""

    question: str
    correct_answer: str
    user_answer: str
    category: str
    model: ModelTier = DEFAULT_MODEL

    def to_payload(self) -> dict[str, str]:
        return {
            "question": self.question,
            "correctAnswer": self.correct_answer,
            "userAnswer": self.user_answer,
            "category": self.category,
            "model": self.model.value,
        }


@dataclass(frozen=True)
class MissedQuestion:
    question: str
    user_answer: str
    correct_answer: str


@dataclass(frozen=True)
class SummaryRequest:
    """Inputs sent to the summary service: only the missed questions."""

    missed: tuple[MissedQuestion, ...]
    model: ModelTier = DEFAULT_MODEL


@dataclass(frozen=True)
class SessionSummary:
    summary: str
    improvement_tips: str


@dataclass(frozen=True)
class GradingTicket:
    """Identifies one in-flight grading call.

    A result is only applied when the session is still on the same
    generation, question index and pending token as when the call began.
    """

    generation: int
    question_index: int
    token: int
    question: Question
    category: str
    answer: str
    model: ModelTier = field(default=DEFAULT_MODEL)
