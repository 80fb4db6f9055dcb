"""End-of-session performance summary."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from .fallback import attempt_with_fallback
from .models import (
    DEFAULT_MODEL,
    MissedQuestion,
    ModelTier,
    ResultRecord,
    SessionSummary,
    SummaryRequest,
)
from .service import SummaryService

__all__ = [
    "PERFECT_SUMMARY",
    "FALLBACK_SUMMARY",
    "missed_questions",
    "summarize",
]

PERFECT_SUMMARY = SessionSummary(
    summary=(
        "Perfect score! You demonstrated excellent mastery of all terms in "
        "this section."
    ),
    improvement_tips=(
        "Keep challenging yourself with harder categories or faster "
        "completion times."
    ),
)

FALLBACK_SUMMARY = SessionSummary(
    summary="Great effort! Review the correct answers above to improve.",
    improvement_tips="Focus on the specific terms you missed.",
)

_LOGGER = logging.getLogger("anatomy_quiz.quizzer.summary")


def missed_questions(
    results: Sequence[ResultRecord],
) -> tuple[MissedQuestion, ...]:
    return tuple(
        MissedQuestion(
            question=record.question,
            user_answer=record.user_answer,
            correct_answer=record.correct_answer,
        )
        for record in results
        if not record.is_correct
    )


def summarize(
    results: Sequence[ResultRecord],
    model: ModelTier = DEFAULT_MODEL,
    *,
    service: SummaryService | None = None,
    logger: logging.Logger | None = None,
) -> SessionSummary:
    """Summarize a finished session.

    A ledger without misses returns :data:`PERFECT_SUMMARY` and never
    reaches the service; remote failures return :data:`FALLBACK_SUMMARY`.
    """
    missed = missed_questions(results)
    if not missed:
        return PERFECT_SUMMARY
    log = logger or _LOGGER
    request = SummaryRequest(missed=missed, model=model)

    def _remote() -> SessionSummary:
        if service is None:
            raise RuntimeError("No summary service configured")
        return service.summarize(request)

    return attempt_with_fallback(
        _remote,
        lambda: FALLBACK_SUMMARY,
        operation="summary",
        logger=log,
    )
