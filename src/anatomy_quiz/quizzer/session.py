"""Quiz session state machine.

A session moves through five phases::

    Welcome -> ModeSelect -> CategorySelect -> InProgress -> Complete

Each phase is its own dataclass holding only the fields that make sense in
that phase, and :class:`QuizSession` owns the current one. Operations that
are not legal in the current phase, or that break a guard (blank answers,
navigating before the answer is graded), raise :class:`SessionStateError`.

Grading is split in three steps so a front end can run the remote call off
the main thread: :meth:`QuizSession.begin_submission` issues a
:class:`GradingTicket`, :meth:`QuizSession.grade_ticket` performs the call
without touching session state, and :meth:`QuizSession.complete_submission`
applies the result only if the ticket still matches the question on
screen.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from .bank import QuestionBank
from .flags import WELCOME_SEEN, FlagStore, MemoryFlagStore
from .grading import grade
from .models import (
    DEFAULT_MODEL,
    AnswerAttempt,
    GradeResult,
    GradingTicket,
    Mode,
    ModelTier,
    Question,
    ResultRecord,
    SessionSummary,
)
from .service import GradingService, SummaryService
from .summary import summarize

__all__ = [
    "SessionStateError",
    "PhaseKind",
    "Welcome",
    "ModeSelect",
    "CategorySelect",
    "InProgress",
    "Complete",
    "Phase",
    "QuizSession",
]


class SessionStateError(RuntimeError):
    """Raised when an operation is not allowed in the current state."""


class PhaseKind(Enum):
    WELCOME = "welcome"
    MODE_SELECT = "mode-select"
    CATEGORY_SELECT = "category-select"
    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"


@dataclass(frozen=True)
class Welcome:
    kind: ClassVar[PhaseKind] = PhaseKind.WELCOME


@dataclass(frozen=True)
class ModeSelect:
    kind: ClassVar[PhaseKind] = PhaseKind.MODE_SELECT


@dataclass(frozen=True)
class CategorySelect:
    kind: ClassVar[PhaseKind] = PhaseKind.CATEGORY_SELECT

    mode: Mode
    suggested_category: str | None = None


@dataclass
class InProgress:
    """A running quiz over a fixed, shuffled question set."""

    kind: ClassVar[PhaseKind] = PhaseKind.IN_PROGRESS

    mode: Mode
    category: str
    questions: tuple[Question, ...]
    generation: int
    index: int = 0
    attempt: AnswerAttempt = field(default_factory=AnswerAttempt)
    results: list[ResultRecord] = field(default_factory=list)
    pending: GradingTicket | None = None

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index == self.total - 1

    @property
    def score(self) -> int:
        return sum(1 for record in self.results if record.is_correct)


@dataclass
class Complete:
    kind: ClassVar[PhaseKind] = PhaseKind.COMPLETE

    mode: Mode
    category: str
    total_questions: int
    results: tuple[ResultRecord, ...]
    summary: SessionSummary | None = None

    @property
    def score(self) -> int:
        return sum(1 for record in self.results if record.is_correct)


Phase = Union[Welcome, ModeSelect, CategorySelect, InProgress, Complete]


class QuizSession:
    """Drive one learner through mode, category and question selection."""

    def __init__(
        self,
        bank: QuestionBank,
        *,
        flags: FlagStore | None = None,
        grader: GradingService | None = None,
        summarizer: SummaryService | None = None,
        model: ModelTier = DEFAULT_MODEL,
        rng: random.Random | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.bank = bank
        self.model = model
        self._flags = flags if flags is not None else MemoryFlagStore()
        self._grader = grader
        self._summarizer = summarizer
        self._rng = rng or random.Random()
        self._log = logger or logging.getLogger("anatomy_quiz.quizzer.session")
        self._generation = 0
        self._next_token = 0
        self.phase: Phase = (
            ModeSelect() if self._flags.get(WELCOME_SEEN) else Welcome()
        )

    # -- phase helpers -------------------------------------------------

    @property
    def kind(self) -> PhaseKind:
        return self.phase.kind

    def _expect(self, *allowed: type, action: str):
        if not isinstance(self.phase, allowed):
            raise SessionStateError(
                f"Cannot {action} while in phase '{self.kind.value}'."
            )
        return self.phase

    def _in_progress(self, action: str) -> InProgress:
        return self._expect(InProgress, action=action)

    # -- onboarding and selection ------------------------------------

    def acknowledge_welcome(self) -> None:
        self._expect(Welcome, action="acknowledge the welcome screen")
        self._flags.set(WELCOME_SEEN, True)
        self.phase = ModeSelect()

    def choose_mode(self, mode: Mode) -> None:
        self._expect(ModeSelect, action="choose a mode")
        self.phase = CategorySelect(mode=mode)
        self._log.debug("Mode selected", extra={"mode": mode.value})

    def choose_model(self, model: ModelTier) -> None:
        self._expect(
            ModeSelect, CategorySelect, action="change the grading model"
        )
        self.model = model

    def back_to_modes(self) -> None:
        self._expect(CategorySelect, action="return to mode selection")
        self.phase = ModeSelect()

    def choose_category(self, category: str) -> None:
        phase = self._expect(CategorySelect, action="choose a category")
        questions = self.bank.shuffled(category, self._rng)
        if category not in self.bank.categories() or not questions:
            raise SessionStateError(f"Unknown or empty category '{category}'.")
        self._generation += 1
        self.phase = InProgress(
            mode=phase.mode,
            category=category,
            questions=questions,
            generation=self._generation,
        )
        self._log.info(
            "Quiz started",
            extra={
                "mode": phase.mode.value,
                "category": category,
                "question_count": len(questions),
                "model": self.model.value,
            },
        )

    # -- answering -----------------------------------------------------

    def set_answer(self, text: str) -> None:
        phase = self._in_progress("edit the answer")
        if phase.attempt.submitted or phase.pending is not None:
            raise SessionStateError("The current answer is already submitted.")
        phase.attempt.text = text

    def begin_submission(self, text: str | None = None) -> GradingTicket:
        """Lock the current answer and return a ticket for grading it."""
        phase = self._in_progress("submit an answer")
        attempt = phase.attempt
        if attempt.submitted:
            raise SessionStateError("The current question was already submitted.")
        if phase.pending is not None:
            raise SessionStateError("A grading call is already in progress.")
        if text is not None:
            attempt.text = text
        answer = attempt.text.strip()
        if not answer:
            raise SessionStateError("Cannot submit a blank answer.")
        self._next_token += 1
        ticket = GradingTicket(
            generation=phase.generation,
            question_index=phase.index,
            token=self._next_token,
            question=phase.current,
            category=phase.category,
            answer=answer,
            model=self.model,
        )
        phase.pending = ticket
        attempt.pending = True
        return ticket

    def grade_ticket(self, ticket: GradingTicket) -> GradeResult:
        """Grade a ticket's answer; safe to call from a worker thread."""
        return grade(
            ticket.answer,
            ticket.question.answer,
            ticket.question.prompt,
            ticket.category,
            ticket.model,
            service=self._grader,
            logger=self._log,
        )

    def complete_submission(
        self, ticket: GradingTicket, result: GradeResult
    ) -> bool:
        """Record ``result`` if ``ticket`` is still current.

        Returns ``False`` and leaves the session untouched for stale tickets
        (the learner left the question, the quiz or the session since the
        call began).
        """
        phase = self.phase
        if (
            not isinstance(phase, InProgress)
            or phase.pending is None
            or phase.pending.token != ticket.token
            or phase.generation != ticket.generation
            or phase.index != ticket.question_index
        ):
            self._log.debug(
                "Discarding stale grading result",
                extra={
                    "question_index": ticket.question_index,
                    "generation": ticket.generation,
                },
            )
            return False
        attempt = phase.attempt
        attempt.pending = False
        attempt.submitted = True
        attempt.is_correct = result.is_correct
        attempt.feedback = result.feedback
        attempt.hint = result.hint
        phase.pending = None
        phase.results.append(
            ResultRecord(
                question=ticket.question.prompt,
                user_answer=ticket.answer,
                correct_answer=ticket.question.answer,
                is_correct=result.is_correct,
            )
        )
        self._log.info(
            "Answer graded",
            extra={
                "question_id": ticket.question.id,
                "question_index": ticket.question_index,
                "is_correct": result.is_correct,
                "score": phase.score,
                "answered": len(phase.results),
            },
        )
        return True

    def submit(self, text: str | None = None) -> GradeResult:
        """Submit and grade the current answer synchronously."""
        ticket = self.begin_submission(text)
        result = self.grade_ticket(ticket)
        self.complete_submission(ticket, result)
        return result

    # -- navigation ----------------------------------------------------

    def _require_graded(self, phase: InProgress, action: str) -> None:
        if phase.pending is not None or not phase.attempt.submitted:
            raise SessionStateError(
                f"Cannot {action} before the current answer is graded."
            )

    def next(self) -> None:
        """Advance; from the last question this completes the quiz."""
        phase = self._in_progress("move to the next question")
        self._require_graded(phase, "move to the next question")
        if phase.is_last:
            self.phase = Complete(
                mode=phase.mode,
                category=phase.category,
                total_questions=phase.total,
                results=tuple(phase.results),
            )
            self._log.info(
                "Quiz complete",
                extra={
                    "category": phase.category,
                    "score": phase.score,
                    "answered": len(phase.results),
                },
            )
            return
        phase.index += 1
        phase.attempt = AnswerAttempt()

    def previous(self) -> None:
        phase = self._in_progress("move to the previous question")
        self._require_graded(phase, "move to the previous question")
        if phase.index == 0:
            raise SessionStateError("Already at the first question.")
        phase.index -= 1
        phase.attempt = AnswerAttempt()

    def exit_to_categories(self) -> None:
        """Abandon the running quiz and pick another category."""
        phase = self._in_progress("exit the quiz")
        self.phase = CategorySelect(mode=phase.mode)
        self._log.info(
            "Quiz abandoned",
            extra={"category": phase.category, "answered": len(phase.results)},
        )

    def reset(self) -> None:
        """Discard everything and return to mode selection."""
        self._expect(
            ModeSelect,
            CategorySelect,
            InProgress,
            Complete,
            action="reset the session",
        )
        self.phase = ModeSelect()

    def restart(self) -> None:
        self._expect(Complete, action="start over")
        self.phase = ModeSelect()

    def continue_to_next_category(self) -> str:
        """Go back to category selection suggesting the following category."""
        phase = self._expect(Complete, action="continue to the next category")
        suggested = self.bank.next_category(phase.category)
        self.phase = CategorySelect(mode=phase.mode, suggested_category=suggested)
        return suggested

    # -- completion ------------------------------------------------------

    def summary(self) -> SessionSummary:
        """Summary for the completed quiz, computed at most once."""
        phase = self._expect(Complete, action="summarize the session")
        if phase.summary is None:
            self._log.info(
                "Requesting session summary",
                extra={"answered": len(phase.results), "score": phase.score},
            )
            phase.summary = summarize(
                phase.results,
                self.model,
                service=self._summarizer,
                logger=self._log,
            )
        return phase.summary

    # -- derived views ----------------------------------------------------

    @property
    def mode(self) -> Mode | None:
        return getattr(self.phase, "mode", None)

    @property
    def is_complete(self) -> bool:
        return isinstance(self.phase, Complete)

    @property
    def current_question(self) -> Question | None:
        if isinstance(self.phase, InProgress):
            return self.phase.current
        return None

    @property
    def progress(self) -> float:
        """Percentage of the way through the question set, in (0, 100]."""
        phase = self._in_progress("compute progress")
        return (phase.index + 1) / phase.total * 100

    @property
    def results(self) -> tuple[ResultRecord, ...]:
        if isinstance(self.phase, (InProgress, Complete)):
            return tuple(self.phase.results)
        return ()

    @property
    def score(self) -> int:
        return sum(1 for record in self.results if record.is_correct)

    @property
    def total_answered(self) -> int:
        return len(self.results)

    @property
    def is_pending(self) -> bool:
        return isinstance(self.phase, InProgress) and self.phase.pending is not None

    def visible_feedback(self) -> tuple[str, str] | None:
        """Feedback and hint for the graded answer, hidden in exam mode."""
        phase = self.phase
        if not isinstance(phase, InProgress) or not phase.attempt.submitted:
            return None
        if not phase.mode.shows_feedback:
            return None
        return phase.attempt.feedback, phase.attempt.hint

    def reveal_answer(self) -> str | None:
        """The correct answer after a wrong submission, in either mode."""
        phase = self.phase
        if not isinstance(phase, InProgress):
            return None
        attempt = phase.attempt
        if attempt.submitted and attempt.is_correct is False:
            return phase.current.answer
        return None
