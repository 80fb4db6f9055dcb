"""Rich console front end for :class:`QuizSession`.

The loop renders the current phase, reads one line from ``input_provider``
and applies it. While a question is open any text that does not start with
``/`` is treated as the answer, so commands are slash-prefixed.
"""

from __future__ import annotations

from concurrent.futures import Executor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import Mode, ModelTier
from .session import (
    CategorySelect,
    Complete,
    InProgress,
    ModeSelect,
    QuizSession,
    SessionStateError,
    Welcome,
)

InputProvider = Callable[[], str]
ExitAction = Literal["quit", "interrupted"]
CommandType = Literal[
    "answer", "next", "prev", "exit", "reset", "images", "quit", "back",
    "model", "restart", "unknown",
]

_COMMAND_ALIASES: dict[str, CommandType] = {
    "/next": "next",
    "/n": "next",
    "/prev": "prev",
    "/previous": "prev",
    "/p": "prev",
    "/exit": "exit",
    "/reset": "reset",
    "/images": "images",
    "/quit": "quit",
    "/q": "quit",
    "/back": "back",
    "/model": "model",
    "/restart": "restart",
}


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: CommandType
    argument: str | None = None


@dataclass
class ViewOptions:
    """Presentation toggles and one-shot presets for the console loop."""

    show_images: bool = True
    preset_mode: Mode | None = None
    preset_category: str | None = None


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse one input line; ``None`` for blank input.

    Slash words that are not commands come back as ``"unknown"`` so a typo
    is never mistaken for Enter.
    """

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    if not text.startswith("/"):
        return SessionCommand("answer", text)
    head, _, rest = text.partition(" ")
    command = _COMMAND_ALIASES.get(head.lower())
    if command is None:
        return SessionCommand("unknown", head)
    return SessionCommand(command, rest.strip() or None)


def run_quiz_session(
    session: QuizSession,
    console: Console,
    input_provider: InputProvider,
    *,
    options: ViewOptions | None = None,
    executor: Executor | None = None,
) -> ExitAction:
    """Drive ``session`` interactively until the learner quits."""

    options = options or ViewOptions()
    own_executor = executor is None
    pool = executor or ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="anatomy-quiz-grader"
    )
    try:
        while True:
            try:
                _apply_presets(session, options)
            except SessionStateError as exc:
                console.print(f"[red]{exc}[/red]")
            _render(session, console, options)
            try:
                raw = input_provider()
            except (EOFError, KeyboardInterrupt):
                console.print("\n[bold yellow]Session interrupted.[/]")
                return "interrupted"
            try:
                if _handle_input(session, console, raw, options, pool):
                    console.print("[bold]Goodbye![/]")
                    return "quit"
            except SessionStateError as exc:
                console.print(f"[red]{exc}[/red]")
    finally:
        if own_executor:
            pool.shutdown(wait=False, cancel_futures=True)


def _apply_presets(session: QuizSession, options: ViewOptions) -> None:
    phase = session.phase
    if isinstance(phase, ModeSelect) and options.preset_mode is not None:
        session.choose_mode(options.preset_mode)
        options.preset_mode = None
        phase = session.phase
    if isinstance(phase, CategorySelect) and options.preset_category:
        category = options.preset_category
        options.preset_category = None
        session.choose_category(category)


# -- input handling -------------------------------------------------------


def _handle_input(
    session: QuizSession,
    console: Console,
    raw: str,
    options: ViewOptions,
    executor: Executor,
) -> bool:
    """Apply one line of input; return ``True`` to leave the loop."""

    phase = session.phase
    command = parse_session_command(raw)
    if command is not None and command.type == "quit":
        return True
    if command is not None and command.type == "unknown":
        console.print(f"[red]Unknown command '{command.argument}'.[/red]")
        return False

    if isinstance(phase, Welcome):
        session.acknowledge_welcome()
    elif isinstance(phase, ModeSelect):
        _handle_mode_input(session, console, command)
    elif isinstance(phase, CategorySelect):
        _handle_category_input(session, console, command)
    elif isinstance(phase, InProgress):
        _handle_question_input(session, console, command, options, executor)
    elif isinstance(phase, Complete):
        _handle_complete_input(session, console, command)
    return False


def _handle_mode_input(
    session: QuizSession, console: Console, command: SessionCommand | None
) -> None:
    if command is None or command.type != "answer":
        console.print("[red]Choose 1 (practice) or 2 (exam).[/red]")
        return
    choice = command.argument.lower()
    if choice in {"1", "practice"}:
        session.choose_mode(Mode.PRACTICE)
    elif choice in {"2", "exam"}:
        session.choose_mode(Mode.EXAM)
    else:
        console.print("[red]Choose 1 (practice) or 2 (exam).[/red]")


def _handle_category_input(
    session: QuizSession, console: Console, command: SessionCommand | None
) -> None:
    if command is None:
        phase = session.phase
        if phase.suggested_category:
            session.choose_category(phase.suggested_category)
            return
        console.print("[red]Pick a category by number or name.[/red]")
        return
    if command.type == "back":
        session.back_to_modes()
        return
    if command.type == "reset":
        session.reset()
        return
    if command.type == "model":
        _change_model(session, console, command.argument)
        return
    if command.type != "answer":
        console.print("[red]That command is not available here.[/red]")
        return
    category = _match_category(session, command.argument)
    if category is None:
        console.print(f"[red]Unknown category '{command.argument}'.[/red]")
        return
    session.choose_category(category)


def _change_model(
    session: QuizSession, console: Console, argument: str | None
) -> None:
    if not argument:
        console.print("[red]Usage: /model <tier>[/red]")
        return
    try:
        tier = ModelTier.from_value(argument)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        return
    session.choose_model(tier)
    console.print(f"Grading model set to [bold]{tier.label}[/].")


def _match_category(session: QuizSession, text: str) -> str | None:
    categories = session.bank.categories()
    if text.isdigit():
        position = int(text) - 1
        if 0 <= position < len(categories):
            return categories[position]
        return None
    lowered = text.lower()
    for category in categories:
        if category.lower() == lowered:
            return category
    return None


def _handle_question_input(
    session: QuizSession,
    console: Console,
    command: SessionCommand | None,
    options: ViewOptions,
    executor: Executor,
) -> None:
    phase = session.phase
    if command is None:
        if phase.attempt.submitted:
            session.next()
        else:
            console.print("[red]Type an answer before submitting.[/red]")
        return
    kind = command.type
    if kind == "answer":
        if phase.attempt.submitted:
            console.print(
                "[yellow]Already answered. Use /next or /prev to move on.[/]"
            )
            return
        _grade_with_status(session, console, command.argument, executor)
    elif kind == "next":
        session.next()
    elif kind == "prev":
        session.previous()
    elif kind == "exit":
        session.exit_to_categories()
    elif kind == "reset":
        session.reset()
    elif kind == "images":
        options.show_images = not options.show_images
    else:
        console.print("[red]That command is not available here.[/red]")


def _grade_with_status(
    session: QuizSession,
    console: Console,
    answer: str,
    executor: Executor,
) -> None:
    ticket = session.begin_submission(answer)
    with console.status("Checking...", spinner="dots"):
        future = executor.submit(session.grade_ticket, ticket)
        result = future.result()
    session.complete_submission(ticket, result)


def _handle_complete_input(
    session: QuizSession, console: Console, command: SessionCommand | None
) -> None:
    if command is None or command.type == "next":
        suggested = session.continue_to_next_category()
        console.print(f"Next up: [bold]{suggested}[/]")
    elif command.type in {"restart", "reset"}:
        session.restart()
    else:
        console.print(
            "[red]Press Enter for the next category, /restart or /quit.[/red]"
        )


# -- rendering ------------------------------------------------------------


def _render(session: QuizSession, console: Console, options: ViewOptions) -> None:
    phase = session.phase
    console.print()
    if isinstance(phase, Welcome):
        _render_welcome(console)
    elif isinstance(phase, ModeSelect):
        _render_mode_select(console)
    elif isinstance(phase, CategorySelect):
        _render_category_select(session, console, phase)
    elif isinstance(phase, InProgress):
        _render_question(session, console, phase, options)
    elif isinstance(phase, Complete):
        _render_complete(session, console, phase)


def _render_welcome(console: Console) -> None:
    body = Text.assemble(
        "Practice anatomy terminology with fill-in-the-blank questions.\n\n",
        ("Practice", "bold green"),
        " mode shows feedback and a hint after every answer.\n",
        ("Exam", "bold red"),
        " mode hides feedback until the end.\n\n",
        "Answers are graded by a language model that accepts synonyms and "
        "small misspellings.",
    )
    console.print(Panel(body, title="Anatomy Quiz", border_style="cyan"))

    tiers = Table(title="Grading models", box=box.SIMPLE, expand=False)
    tiers.add_column("Tier", style="cyan")
    tiers.add_column("Model")
    tiers.add_column("Description")
    for tier in ModelTier:
        tiers.add_row(tier.value, tier.label, tier.description)
    console.print(tiers)
    console.print(Text("Press Enter to begin, or /quit.", style="dim"))


def _render_mode_select(console: Console) -> None:
    table = Table(show_header=False, box=box.SIMPLE, expand=False)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Mode", style="bold")
    table.add_column("Description")
    table.add_row("1", "Practice", "Immediate feedback and hints")
    table.add_row("2", "Exam", "Feedback hidden; correct answer shown on misses")
    console.print(Panel(table, title="Choose a mode", border_style="cyan"))
    console.print(Text("Type 1 or 2, or /quit.", style="dim"))


def _render_category_select(
    session: QuizSession, console: Console, phase: CategorySelect
) -> None:
    table = Table(
        title=f"{phase.mode.value.title()} mode",
        box=box.SIMPLE,
        expand=False,
    )
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Category")
    table.add_column("Questions", justify="right")
    for number, category in enumerate(session.bank.categories(), start=1):
        label = Text(category)
        if category == phase.suggested_category:
            label.append("  (next up)", style="bold green")
        table.add_row(
            str(number), label, str(len(session.bank.by_category(category)))
        )
    console.print(table)
    commands = "number or name, /model <tier>, /back, /reset, /quit"
    if phase.suggested_category:
        commands += ", Enter for the suggested category"
    console.print(
        Text(
            f"Grading model: {session.model.label} | Commands: {commands}",
            style="dim",
        )
    )


def _render_question(
    session: QuizSession,
    console: Console,
    phase: InProgress,
    options: ViewOptions,
) -> None:
    question = phase.current
    header = Text.assemble(
        (phase.category, "bold cyan"),
        (f"  Question {phase.index + 1} / {phase.total}", "dim"),
        (f"  {session.progress:.0f}%", "dim"),
    )
    console.rule(header)
    console.print(Text(question.prompt, style="bold"))

    if options.show_images and question.images:
        images = Table(box=box.SIMPLE, expand=False)
        images.add_column("Reference images", style="blue")
        for image in question.images:
            images.add_row(image)
        console.print(images)

    attempt = phase.attempt
    if attempt.submitted:
        console.print(Text(f"Your answer: {attempt.text}", style="italic"))
        _render_feedback(session, console, phase)

    hints = ["/prev", "/next"] if attempt.submitted else []
    hints += ["/images", "/exit", "/reset", "/quit"]
    prompt = (
        "Press Enter for the next question"
        if attempt.submitted
        else "Type your answer"
    )
    console.print(
        Text(
            f"Score {phase.score}/{len(phase.results)} | {prompt} | "
            f"Commands: {', '.join(hints)}",
            style="dim",
        )
    )


def _render_feedback(
    session: QuizSession, console: Console, phase: InProgress
) -> None:
    feedback = session.visible_feedback()
    correct_answer = session.reveal_answer()
    if feedback is not None:
        message, hint = feedback
        body = Text(message)
        if correct_answer is not None:
            body.append(f"\nCorrect answer: {correct_answer}", style="bold")
        if hint:
            body.append(f"\nHint: {hint}", style="italic")
        good = bool(phase.attempt.is_correct)
        console.print(
            Panel(
                body,
                title="Correct" if good else "Not quite",
                border_style="green" if good else "red",
            )
        )
        return
    if correct_answer is not None:
        console.print(
            Panel(
                Text(f"Correct answer: {correct_answer}", style="bold"),
                title="Incorrect",
                border_style="red",
            )
        )
    else:
        console.print(Text("Answer recorded.", style="green"))


def _render_complete(
    session: QuizSession, console: Console, phase: Complete
) -> None:
    console.rule(Text("Quiz Complete", style="bold magenta"))
    answered = len(phase.results)
    percentage = (phase.score / answered * 100) if answered else 0.0

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Category", phase.category)
    overview.add_row("Mode", phase.mode.value.title())
    overview.add_row("Score", f"{phase.score}/{answered}")
    overview.add_row("Percentage", f"{percentage:.0f}%")
    console.print(overview)

    missed = [record for record in phase.results if not record.is_correct]
    if missed:
        table = Table(title="Missed questions", box=box.SIMPLE, expand=True)
        table.add_column("Question", overflow="fold")
        table.add_column("Your answer")
        table.add_column("Correct answer", style="green")
        for record in missed:
            table.add_row(
                record.question, record.user_answer, record.correct_answer
            )
        console.print(table)

    if phase.summary is None:
        with console.status("Analyzing your results...", spinner="dots"):
            summary = session.summary()
    else:
        summary = session.summary()
    body = Text(summary.summary)
    body.append("\n\n")
    body.append("Tips: ", style="bold")
    body.append(summary.improvement_tips)
    console.print(Panel(body, title="Performance summary", border_style="cyan"))
    console.print(
        Text(
            "Press Enter to continue with the next category, /restart, /quit.",
            style="dim",
        )
    )
