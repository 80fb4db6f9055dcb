from __future__ import annotations

import json

import pytest
from rich.console import Console

from anatomy_quiz.core import ai
from anatomy_quiz.quizzer import _main

from fixtures import jsonl


@pytest.fixture
def record_console(monkeypatch) -> Console:
    console = Console(record=True, width=100)
    monkeypatch.setattr(_main, "_make_console", lambda: console)
    return console


@pytest.fixture
def script(monkeypatch):
    """Feed scripted lines to the interactive loop."""

    lines: list[str] = []

    def _factory(console):
        iterator = iter(lines)

        def _next_line() -> str:
            line = next(iterator, None)
            if line is None:
                raise EOFError
            return line

        return _next_line

    monkeypatch.setattr(_main, "_make_input_provider", _factory)
    monkeypatch.setattr(ai, "load_dotenv", lambda: None)
    return lines


def _log_records(workspace_root):
    path = workspace_root / "logs" / "quizzer.log"
    return [
        json.loads(line)
        for line in path.read_text(encoding="utf-8").splitlines()
        if line.strip()
    ]


def test_start_runs_a_session_and_logs(tmp_path, record_console, script):
    ws = tmp_path / "ws"
    script.extend(["", "wrong", "/quit"])

    code = _main.main(
        [
            "start",
            "--mode",
            "practice",
            "--category",
            "Histology",
            "--workspace",
            str(ws),
        ]
    )

    assert code == 0
    output = record_console.export_text()
    assert "Anatomy Quiz" in output
    assert "Histology" in output
    assert "The correct answer is" in output
    assert "Log file:" in output

    flags = json.loads((ws / "state" / "flags.json").read_text(encoding="utf-8"))
    assert flags == {"welcome-seen": True}

    records = _log_records(ws)
    messages = [record["message"] for record in records]
    assert "Quiz CLI started" in messages
    assert "Quiz started" in messages
    assert "Remote grading failed; using local fallback" in messages
    graded = next(r for r in records if r["message"] == "Answer graded")
    assert graded["logger"] == "anatomy_quiz.quizzer.session"
    assert graded["extra"]["is_correct"] is False
    started = next(r for r in records if r["message"] == "Quiz started")
    assert started["extra"]["category"] == "Histology"
    assert started["extra"]["mode"] == "practice"


def test_start_uses_config_file_defaults(tmp_path, record_console, script):
    ws = tmp_path / "ws"
    bank = tmp_path / "bank.jsonl"
    bank.write_text(
        jsonl(
            [
                {
                    "id": "b1",
                    "category": "Bones",
                    "question": "The _____ is the thigh bone.",
                    "answer": "femur",
                }
            ]
        ),
        encoding="utf-8",
    )
    config = tmp_path / "quizzer.toml"
    config.write_text(
        f'[grading]\nmodel = "mistral-large"\n'
        f'[session]\nmode = "exam"\nbank_path = "{bank.as_posix()}"\n',
        encoding="utf-8",
    )
    script.extend(["", "1", "femur", "", "/quit"])

    code = _main.main(
        ["start", "--config", str(config), "--workspace", str(ws)]
    )

    assert code == 0
    output = record_console.export_text()
    assert "Exam mode" in output
    assert "Bones" in output
    assert "1/1" in output
    records = _log_records(ws)
    started = next(r for r in records if r["message"] == "Quiz CLI started")
    assert started["extra"]["model"] == "mistral-large"


def test_start_rejects_unknown_category(tmp_path, script, capsys):
    with pytest.raises(SystemExit) as excinfo:
        _main.main(
            ["start", "--category", "Kidneys", "--workspace", str(tmp_path)]
        )

    assert excinfo.value.code == 2
    assert "Unknown category 'Kidneys'" in capsys.readouterr().err


def test_start_reports_bad_config_as_usage_error(tmp_path, script, capsys):
    config = tmp_path / "quizzer.toml"
    config.write_text('[grading]\nmodel = "gpt-4"\n', encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        _main.main(["start", "--config", str(config)])

    assert excinfo.value.code == 2
    assert "grading.model" in capsys.readouterr().err


def test_start_reports_broken_bank(tmp_path, script, capsys):
    bank = tmp_path / "bank.jsonl"
    bank.write_text("{oops\n", encoding="utf-8")

    code = _main.main(["start", "--bank", str(bank)])

    assert code == 1
    assert "bank.jsonl:1" in capsys.readouterr().err


def test_categories_lists_counts(capsys):
    code = _main.main(["categories"])

    out = capsys.readouterr().out
    assert code == 0
    for name in ("Body Planes", "Directional Terms", "Histology"):
        assert name in out
    assert " 6" in out


def test_categories_with_missing_bank(tmp_path, capsys):
    code = _main.main(["categories", "--bank", str(tmp_path / "none.jsonl")])

    assert code == 1
    assert "not found" in capsys.readouterr().err


def test_models_lists_every_tier(capsys):
    code = _main.main(["models"])

    out = capsys.readouterr().out
    assert code == 0
    assert "mistral-medium (default)" in out
    assert "mistral-large-latest" in out
    assert "magistral-small" in out


def test_config_init_writes_template(tmp_path, capsys):
    ws = tmp_path / "ws"

    code = _main.main(["config", "init", "--workspace", str(ws)])

    target = ws / "config" / "quizzer.toml"
    assert code == 0
    assert target.exists()
    assert str(target) in capsys.readouterr().out

    assert _main.main(["config", "init", "--workspace", str(ws)]) == 1
    assert "already exists" in capsys.readouterr().err

    assert (
        _main.main(["config", "init", "--workspace", str(ws), "--force"]) == 0
    )


def test_config_init_to_explicit_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    code = _main.main(["config", "init", "--path", "local/quizzer.toml"])

    assert code == 0
    assert (tmp_path / "local" / "quizzer.toml").exists()
