"""Static question bank: loading, category filtering and shuffling."""

from __future__ import annotations

import random
from collections.abc import Iterable, Mapping, Sequence
from importlib import resources
from pathlib import Path
from typing import Any, TypeVar

from .models import Question
from .utils import JsonlError, parse_jsonl, read_jsonl

__all__ = [
    "QuestionBankError",
    "QuestionBank",
    "shuffle",
    "load_bank",
    "default_bank",
]

T = TypeVar("T")

_DEFAULT_BANK_PACKAGE = "anatomy_quiz.quizzer.data"
_DEFAULT_BANK_FILE = "questions.jsonl"


class QuestionBankError(RuntimeError):
    """Raised when a question bank cannot be read or is malformed."""


def shuffle(items: Sequence[T], rng: random.Random | None = None) -> list[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    ``items`` is never modified. Pass ``rng`` for reproducible orders.
    """
    generator = rng or random.Random()
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = generator.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class QuestionBank:
    """Immutable, ordered collection of questions tagged by category."""

    def __init__(self, questions: Iterable[Question]):
        self._questions = tuple(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self):
        return iter(self._questions)

    @property
    def questions(self) -> tuple[Question, ...]:
        return self._questions

    def categories(self) -> tuple[str, ...]:
        """Distinct categories in order of first appearance."""
        seen: dict[str, None] = {}
        for question in self._questions:
            seen.setdefault(question.category, None)
        return tuple(seen)

    def by_category(self, category: str | None = None) -> tuple[Question, ...]:
        if not category:
            return self._questions
        return tuple(q for q in self._questions if q.category == category)

    def count(self, category: str) -> int:
        return len(self.by_category(category))

    def next_category(self, category: str) -> str:
        """Category after ``category`` in declaration order, wrapping."""
        ordered = self.categories()
        if not ordered:
            raise QuestionBankError("Question bank has no categories.")
        try:
            position = ordered.index(category)
        except ValueError:
            return ordered[0]
        return ordered[(position + 1) % len(ordered)]

    def shuffled(
        self, category: str | None, rng: random.Random | None = None
    ) -> tuple[Question, ...]:
        return tuple(shuffle(self.by_category(category), rng))


def load_bank(path: Path) -> QuestionBank:
    """Load a JSON Lines question bank from ``path``."""
    try:
        records = read_jsonl(path)
    except FileNotFoundError as exc:
        raise QuestionBankError(f"Question bank not found: {path}") from exc
    except JsonlError as exc:
        raise QuestionBankError(str(exc)) from exc
    return _build_bank(records, source=str(path))


def default_bank() -> QuestionBank:
    """Load the question bank shipped with the package."""
    resource = resources.files(_DEFAULT_BANK_PACKAGE).joinpath(
        _DEFAULT_BANK_FILE
    )
    try:
        records = parse_jsonl(
            resource.read_text(encoding="utf-8"), source=_DEFAULT_BANK_FILE
        )
    except JsonlError as exc:  # pragma: no cover - packaged data
        raise QuestionBankError(str(exc)) from exc
    return _build_bank(records, source=_DEFAULT_BANK_FILE)


def _build_bank(
    records: Sequence[Mapping[str, Any]], *, source: str
) -> QuestionBank:
    questions = [
        _build_question(record, index, source)
        for index, record in enumerate(records)
    ]
    ids = [q.id for q in questions]
    if len(set(ids)) != len(ids):
        raise QuestionBankError(f"{source}: duplicate question ids")
    return QuestionBank(questions)


def _build_question(
    data: Mapping[str, Any], index: int, source: str
) -> Question:
    category = str(data.get("category") or "").strip()
    prompt = str(data.get("question") or data.get("prompt") or "").strip()
    answer = str(data.get("answer") or "").strip()
    if not category:
        raise QuestionBankError(f"{source}: record {index} has no category")
    if not prompt:
        raise QuestionBankError(f"{source}: record {index} has no question")
    if not answer:
        raise QuestionBankError(f"{source}: record {index} has no answer")
    images = data.get("images") or []
    if isinstance(images, str) or not isinstance(images, Sequence):
        raise QuestionBankError(
            f"{source}: record {index} images must be a list"
        )
    return Question(
        id=str(data.get("id", index)),
        category=category,
        prompt=prompt,
        answer=answer,
        images=tuple(str(image) for image in images),
    )
