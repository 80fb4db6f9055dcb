from __future__ import annotations

import random
import threading

import pytest
from rich.console import Console

from anatomy_quiz.quizzer.bank import QuestionBank
from anatomy_quiz.quizzer.flags import WELCOME_SEEN, MemoryFlagStore
from anatomy_quiz.quizzer.models import GradeResult, Mode, ModelTier
from anatomy_quiz.quizzer.session import (
    CategorySelect,
    InProgress,
    ModeSelect,
    QuizSession,
)
from anatomy_quiz.quizzer.view import (
    SessionCommand,
    ViewOptions,
    parse_session_command,
    run_quiz_session,
)

from fixtures import make_question


def make_provider(session, commands):
    """Replay ``commands``; callables receive the session to build input."""

    iterator = iter(commands)

    def _provider() -> str:
        item = next(iterator, None)
        if item is None:
            raise EOFError
        return item(session) if callable(item) else item

    return _provider


def correct(session) -> str:
    return session.current_question.answer


def _console() -> Console:
    return Console(record=True, width=100)


def _session(bank, *, seen=False, **kwargs):
    flags = MemoryFlagStore({WELCOME_SEEN: True} if seen else None)
    return QuizSession(bank, flags=flags, rng=random.Random(3), **kwargs)


def test_parse_session_command_variants():
    assert parse_session_command("  coronal ") == SessionCommand(
        "answer", "coronal"
    )
    assert parse_session_command("/next") == SessionCommand("next")
    assert parse_session_command("/N") == SessionCommand("next")
    assert parse_session_command("/prev") == SessionCommand("prev")
    assert parse_session_command("/images") == SessionCommand("images")
    assert parse_session_command("/model mistral-large") == SessionCommand(
        "model", "mistral-large"
    )
    assert parse_session_command("/q") == SessionCommand("quit")
    assert parse_session_command("next") == SessionCommand("answer", "next")
    assert parse_session_command("/exitt now") == SessionCommand(
        "unknown", "/exitt"
    )
    assert parse_session_command("") is None
    assert parse_session_command(None) is None


def test_practice_flow_from_welcome_to_next_category(small_bank):
    flags = MemoryFlagStore()
    session = QuizSession(small_bank, flags=flags, rng=random.Random(3))
    console = _console()
    provider = make_provider(
        session,
        ["", "1", "2", correct, "", correct, "", "", "/quit"],
    )

    outcome = run_quiz_session(session, console, provider)

    output = console.export_text()
    assert outcome == "quit"
    assert flags.get(WELCOME_SEEN) is True
    assert "Anatomy Quiz" in output
    assert "Grading models" in output
    assert "Great job!" in output
    assert "Quiz Complete" in output
    assert "2/2" in output
    assert "100%" in output
    assert "Perfect score!" in output
    assert "Next up: Body Planes" in output
    assert "(next up)" in output
    assert "Goodbye!" in output
    assert session.phase == CategorySelect(
        mode=Mode.PRACTICE, suggested_category="Body Planes"
    )


def test_exam_flow_hides_feedback_and_reveals_answers(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session,
        ["2", "Directional Terms", "wrong", "/next", "wrong", "/next", "/quit"],
    )

    run_quiz_session(session, console, provider)

    output = console.export_text()
    assert "Try again!" not in output
    assert "The correct answer is" not in output
    assert "Correct answer: superior" in output
    assert "Correct answer: inferior" in output
    assert "Missed questions" in output
    assert "0/2" in output
    assert "Great effort!" in output


def test_remote_feedback_is_rendered_in_practice(small_bank):
    class SynonymGrader:
        def __init__(self):
            self.threads = []

        def grade(self, request):
            self.threads.append(threading.current_thread().name)
            return GradeResult(
                is_correct=False,
                feedback="Close, but that is a different plane.",
                hint="Frontal rhymes with front.",
            )

    grader = SynonymGrader()
    session = _session(small_bank, seen=True, grader=grader)
    console = _console()
    provider = make_provider(session, ["1", "1", "coronal", "/quit"])

    run_quiz_session(session, console, provider)

    output = console.export_text()
    assert "Close, but that is a different plane." in output
    assert "Hint: Frontal rhymes with front." in output
    assert "Correct answer:" in output
    assert grader.threads and grader.threads[0].startswith("anatomy-quiz-grader")


def test_guards_are_reported_not_raised(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session,
        ["3", "1", "Kidneys", "/next", "Body Planes", "", "/next", "/quit"],
    )

    outcome = run_quiz_session(session, console, provider)

    output = console.export_text()
    assert outcome == "quit"
    assert "Choose 1 (practice) or 2 (exam)." in output
    assert "Unknown category 'Kidneys'." in output
    assert "That command is not available here." in output
    assert "Type an answer before submitting." in output
    assert "before the current answer is graded" in output
    assert isinstance(session.phase, InProgress)


def test_model_command_changes_the_tier(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session, ["1", "/model mistral-large", "/model gpt-4", "/model", "/quit"]
    )

    run_quiz_session(session, console, provider)

    output = console.export_text()
    assert session.model is ModelTier.MISTRAL_LARGE
    assert "Grading model set to Intelligent." in output
    assert "Unknown model tier 'gpt-4'" in output
    assert "Usage: /model <tier>" in output


def test_images_toggle_and_navigation_commands():
    bank = QuestionBank(
        [
            make_question("a", "Bones", "femur", images=("femur.png",)),
            make_question("b", "Bones", "tibia", images=("tibia.png",)),
        ]
    )
    session = _session(bank, seen=True)
    console = _console()
    options = ViewOptions()
    provider = make_provider(
        session,
        ["1", "1", "/images", "/exit", "/back", "1", "1", "/reset", "/quit"],
    )

    run_quiz_session(session, console, provider, options=options)

    output = console.export_text()
    assert "Reference images" in output
    assert options.show_images is False
    assert isinstance(session.phase, ModeSelect)


def test_presets_skip_the_pickers(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    options = ViewOptions(
        preset_mode=Mode.EXAM, preset_category="Directional Terms"
    )

    run_quiz_session(
        session, console, make_provider(session, ["/quit"]), options=options
    )

    phase = session.phase
    assert isinstance(phase, InProgress)
    assert phase.mode is Mode.EXAM
    assert phase.category == "Directional Terms"
    assert options.preset_mode is None
    assert options.preset_category is None


def test_invalid_preset_category_falls_back_to_the_picker(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    options = ViewOptions(preset_mode=Mode.PRACTICE, preset_category="Nope")

    run_quiz_session(
        session, console, make_provider(session, ["/quit"]), options=options
    )

    assert isinstance(session.phase, CategorySelect)
    assert "Unknown or empty category 'Nope'." in console.export_text()


@pytest.mark.parametrize("error", [EOFError, KeyboardInterrupt])
def test_interrupted_input_ends_the_loop(small_bank, error):
    session = _session(small_bank)
    console = _console()

    def provider():
        raise error()

    assert run_quiz_session(session, console, provider) == "interrupted"
    assert "Session interrupted." in console.export_text()


def test_exhausted_script_counts_as_interrupt(small_bank):
    session = _session(small_bank)

    outcome = run_quiz_session(session, _console(), make_provider(session, []))

    assert outcome == "interrupted"


def test_restart_from_completion(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session,
        ["1", "2", correct, "", correct, "", "/restart", "/quit"],
    )

    run_quiz_session(session, console, provider)

    assert isinstance(session.phase, ModeSelect)


def test_mistyped_command_does_not_act_like_enter(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session, ["1", "/bakc", "1", correct, "/exitt", "/quit"]
    )

    run_quiz_session(session, console, provider)

    phase = session.phase
    assert isinstance(phase, InProgress)
    assert phase.category == "Body Planes"
    assert phase.index == 0
    assert phase.attempt.submitted is True
    output = console.export_text()
    assert "Unknown command '/bakc'." in output
    assert "Unknown command '/exitt'." in output


def test_mistyped_command_on_completion_stays_put(small_bank):
    session = _session(small_bank, seen=True)
    console = _console()
    provider = make_provider(
        session, ["1", "2", correct, "", correct, "", "/nxt", "/quit"]
    )

    run_quiz_session(session, console, provider)

    assert session.is_complete
    assert "Next up:" not in console.export_text()
