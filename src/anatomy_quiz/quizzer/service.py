"""Remote grading and summary service backed by a chat-completions model.

The Mistral API speaks the OpenAI chat-completions protocol, so the adapter
drives it through the ``openai`` SDK client returned by
:func:`anatomy_quiz.core.ai.load_client`. Every method raises on failure;
fallback handling belongs to the grading and summary pipelines.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol

from ..core.ai import load_client
from .models import (
    GradeRequest,
    GradeResult,
    SessionSummary,
    SummaryRequest,
)
from .utils import JsonlError, extract_json_object

__all__ = [
    "RemoteServiceError",
    "GradingService",
    "SummaryService",
    "ChatQuizService",
    "build_grading_prompt",
    "build_summary_prompt",
]


class RemoteServiceError(RuntimeError):
    """Raised when the remote model returns an unusable response."""


class GradingService(Protocol):
    def grade(self, request: GradeRequest) -> GradeResult:
        """Judge a free-text answer or raise."""


class SummaryService(Protocol):
    def summarize(self, request: SummaryRequest) -> SessionSummary:
        """Describe the learner's misses or raise."""


def build_grading_prompt(request: GradeRequest) -> str:
    return (
        "You are an anatomy instructor grading a fill-in-the-blank "
        "question.\n\n"
        f'Question: "{request.question}"\n'
        f"Category: {request.category}\n"
        f'Correct answer: "{request.correct_answer}"\n'
        f'Student answer: "{request.user_answer}"\n\n'
        "Decide whether the student's answer is correct and give short "
        "feedback.\n"
        "Accept differences in capitalization, singular/plural forms, "
        "accepted medical synonyms (for example frontal plane = coronal "
        "plane) and minor misspellings that keep the term recognizable.\n"
        "Reject unrelated terms and answers that are close but anatomically "
        "wrong.\n\n"
        "Reply with a JSON object only:\n"
        '{"isCorrect": boolean, '
        '"feedback": "one or two encouraging sentences", '
        '"hint": "one sentence to help remember the term"}'
    )


def build_summary_prompt(request: SummaryRequest) -> str:
    lines = []
    for number, item in enumerate(request.missed, start=1):
        lines.append(
            f'{number}. Question: "{item.question}"\n'
            f'   Student answer: "{item.user_answer}"\n'
            f'   Correct answer: "{item.correct_answer}"'
        )
    missed_block = "\n".join(lines)
    return (
        "You are an anatomy tutor. A student finished a practice quiz and "
        "missed these questions:\n\n"
        f"{missed_block}\n\n"
        "Explain the likely causes of these mistakes (confused terms, "
        "spelling, wrong location) and give concrete study advice for these "
        "concepts.\n\n"
        "Reply with a JSON object only:\n"
        '{"summary": "two or three sentences analysing the errors", '
        '"improvementTips": "two or three specific study tips"}'
    )


class ChatQuizService:
    """Grading and summary service over an OpenAI-compatible client.

    The client is created lazily through ``client_factory`` so that a
    missing credential only fails the call in progress, which the
    pipelines turn into their local fallback.
    """

    def __init__(
        self,
        *,
        client: Any | None = None,
        client_factory: Callable[[], Any] | None = None,
        request_timeout: float | None = None,
    ) -> None:
        self._client = client
        self._client_factory = client_factory or load_client
        self._timeout = request_timeout

    def grade(self, request: GradeRequest) -> GradeResult:
        data = self._complete_json(
            build_grading_prompt(request), model=request.model.remote_model
        )
        is_correct = data.get("isCorrect")
        feedback = data.get("feedback")
        hint = data.get("hint")
        if not isinstance(is_correct, bool):
            raise RemoteServiceError("grading reply lacks boolean isCorrect")
        if not isinstance(feedback, str) or not isinstance(hint, str):
            raise RemoteServiceError("grading reply lacks feedback/hint text")
        return GradeResult(is_correct=is_correct, feedback=feedback, hint=hint)

    def summarize(self, request: SummaryRequest) -> SessionSummary:
        data = self._complete_json(
            build_summary_prompt(request), model=request.model.remote_model
        )
        summary = data.get("summary")
        tips = data.get("improvementTips")
        if not isinstance(summary, str) or not isinstance(tips, str):
            raise RemoteServiceError(
                "summary reply lacks summary/improvementTips text"
            )
        return SessionSummary(summary=summary, improvement_tips=tips)

    def _resolve_client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory()
        return self._client

    def _complete_json(self, prompt: str, *, model: str) -> dict[str, Any]:
        client = self._resolve_client()
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
        }
        if self._timeout is not None:
            kwargs["timeout"] = self._timeout
        response = client.chat.completions.create(**kwargs)
        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise RemoteServiceError("reply has no message content") from exc
        if not content:
            raise RemoteServiceError("reply has no message content")
        try:
            return extract_json_object(content)
        except JsonlError as exc:
            raise RemoteServiceError(str(exc)) from exc
