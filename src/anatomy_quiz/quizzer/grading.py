"""Answer grading: semantic grading with a deterministic local fallback."""

from __future__ import annotations

import logging

from .fallback import attempt_with_fallback
from .models import DEFAULT_MODEL, GradeRequest, GradeResult, ModelTier
from .service import GradingService

__all__ = [
    "CORRECT_FEEDBACK",
    "FALLBACK_HINT",
    "normalize_answer",
    "fallback_grade",
    "grade",
]

CORRECT_FEEDBACK = "Great job!"
FALLBACK_HINT = "Try again!"

_LOGGER = logging.getLogger("anatomy_quiz.quizzer.grading")


def normalize_answer(text: str) -> str:
    return text.strip().lower()


def fallback_grade(user_answer: str, correct_answer: str) -> GradeResult:
    """Case-insensitive exact comparison with canned feedback."""
    is_correct = normalize_answer(user_answer) == normalize_answer(
        correct_answer
    )
    feedback = (
        CORRECT_FEEDBACK
        if is_correct
        else f'The correct answer is "{correct_answer}"'
    )
    return GradeResult(is_correct=is_correct, feedback=feedback, hint=FALLBACK_HINT)


def grade(
    user_answer: str,
    correct_answer: str,
    question: str,
    category: str,
    model: ModelTier = DEFAULT_MODEL,
    *,
    service: GradingService | None = None,
    logger: logging.Logger | None = None,
) -> GradeResult:
    """Grade ``user_answer`` against ``correct_answer``.

    The remote ``service`` is tried first; any failure, or no service at
    all, yields :func:`fallback_grade`. Blank answers are rejected with
    ``ValueError`` because callers must not submit them.
    """
    answer = user_answer.strip()
    if not answer:
        raise ValueError("Cannot grade a blank answer.")
    log = logger or _LOGGER
    request = GradeRequest(
        question=question,
        correct_answer=correct_answer,
        user_answer=answer,
        category=category,
        model=model,
    )

    def _remote() -> GradeResult:
        if service is None:
            raise RuntimeError("No grading service configured")
        return service.grade(request)

    return attempt_with_fallback(
        _remote,
        lambda: fallback_grade(answer, correct_answer),
        operation="grading",
        logger=log,
    )
