"""Command-line entry point for the anatomy quiz."""

from __future__ import annotations

import argparse
import functools
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from ..core import config_templates
from ..core import workspace as workspace_mod
from ..core.ai import load_client
from ..core.config_templates import ConfigTemplateError
from ..core.logging import configure_logger
from ..core.workspace import WorkspaceError
from .bank import QuestionBank, QuestionBankError, default_bank, load_bank
from .config import (
    CONFIG_FILENAME,
    LOG_FILENAME,
    ConfigOverrides,
    QuizConfig,
    QuizConfigError,
    load_config,
)
from .flags import JsonFlagStore
from .models import Mode, ModelTier
from .service import ChatQuizService
from .session import QuizSession
from .view import InputProvider, ViewOptions, run_quiz_session


def _make_console() -> Console:
    return Console()


def _make_input_provider(console: Console) -> InputProvider:
    return lambda: console.input("[bold cyan]> [/]")


def _load_bank(bank_path: Optional[Path]) -> QuestionBank:
    if bank_path is None:
        return default_bank()
    return load_bank(bank_path)


def _build_service(config: QuizConfig) -> ChatQuizService:
    factory = functools.partial(
        load_client,
        api_base=config.api_base,
        timeout=config.request_timeout,
    )
    return ChatQuizService(client_factory=factory)


def _cmd_start(args: argparse.Namespace, parser: argparse.ArgumentParser) -> int:
    overrides = ConfigOverrides(
        model=ModelTier.from_value(args.model) if args.model else None,
        mode=Mode.from_value(args.mode) if args.mode else None,
        bank_path=args.bank,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except QuizConfigError as exc:
        parser.error(str(exc))
    config = load_result.config

    try:
        bank = _load_bank(config.bank_path)
    except QuestionBankError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    if args.category and args.category not in bank.categories():
        parser.error(
            "Unknown category '{0}'. Available: {1}.".format(
                args.category, ", ".join(bank.categories())
            )
        )

    logger, log_path = configure_logger(
        "anatomy_quiz.quizzer",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
        filename=LOG_FILENAME,
    )
    logger.info(
        "Quiz CLI started",
        extra={
            "model": config.model.value,
            "bank": str(config.bank_path) if config.bank_path else "built-in",
            "config_path": load_result.config_path,
        },
    )

    service = _build_service(config)
    session = QuizSession(
        bank,
        flags=JsonFlagStore(load_result.flags_path),
        grader=service,
        summarizer=service,
        model=config.model,
        logger=logger.getChild("session"),
    )
    console = _make_console()
    outcome = run_quiz_session(
        session,
        console,
        _make_input_provider(console),
        options=ViewOptions(
            preset_mode=config.mode,
            preset_category=args.category,
        ),
    )
    logger.info("Quiz CLI finished", extra={"exit_action": outcome})
    console.print(f"[dim]Log file: {log_path}[/]")
    return 0


def _cmd_categories(args: argparse.Namespace) -> int:
    try:
        bank = _load_bank(args.bank)
    except QuestionBankError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    table = Table(title="Categories", box=box.SIMPLE)
    table.add_column("#", justify="right", style="cyan")
    table.add_column("Category")
    table.add_column("Questions", justify="right")
    for number, category in enumerate(bank.categories(), start=1):
        table.add_row(str(number), category, str(bank.count(category)))
    _make_console().print(table)
    return 0


def _cmd_models(args: argparse.Namespace) -> int:
    table = Table(title="Grading models", box=box.SIMPLE)
    table.add_column("Tier", style="cyan", no_wrap=True)
    table.add_column("Remote model", no_wrap=True)
    table.add_column("Description")
    for tier in ModelTier:
        name = tier.value
        if tier is ModelTier.MISTRAL_MEDIUM:
            name += " (default)"
        table.add_row(name, tier.remote_model, tier.description)
    _make_console().print(table)
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("quizzer")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote quizzer config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="anatomy-quiz quiz",
        description="Fill-in-the-blank anatomy terminology quiz",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_start = sub.add_parser("start", help="Start an interactive quiz")
    sp_start.add_argument(
        "--mode",
        choices=[mode.value for mode in Mode],
        help="Skip the mode picker",
    )
    sp_start.add_argument(
        "--category", help="Start straight into this category"
    )
    sp_start.add_argument(
        "--model",
        choices=[tier.value for tier in ModelTier],
        help="Grading model tier (defaults to mistral-medium)",
    )
    sp_start.add_argument(
        "--bank", type=Path, help="Question bank in JSON Lines format"
    )
    sp_start.add_argument(
        "--config",
        type=Path,
        help="Path to quizzer.toml (defaults to the workspace config dir)",
    )
    sp_start.add_argument(
        "--workspace", type=Path, help="Override the workspace root"
    )
    sp_start.add_argument("--log-level", help="Logging level for the run")
    sp_start.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr",
    )

    sp_cat = sub.add_parser("categories", help="List question categories")
    sp_cat.add_argument(
        "--bank", type=Path, help="Question bank in JSON Lines format"
    )

    sub.add_parser("models", help="List grading model tiers")

    sp_cfg = sub.add_parser("config", help="Manage quizzer.toml")
    cfg_sub = sp_cfg.add_subparsers(dest="action", required=True)
    sp_cfg_init = cfg_sub.add_parser(
        "init", help="Write the default quizzer.toml template"
    )
    sp_cfg_init.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory)",
    )
    sp_cfg_init.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used to resolve the default config path",
    )
    sp_cfg_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config",
    )
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command == "start":
        return _cmd_start(args, parser)
    if args.command == "categories":
        return _cmd_categories(args)
    if args.command == "models":
        return _cmd_models(args)
    if args.command == "config" and args.action == "init":
        return _cmd_config_init(args)
    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
