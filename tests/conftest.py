from __future__ import annotations

import logging
import random
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeChatClient, WorkspaceBuilder, make_question  # noqa: E402

from anatomy_quiz.quizzer.bank import QuestionBank  # noqa: E402

_ENV_VARS = (
    "ANATOMY_QUIZ_CONFIG",
    "ANATOMY_QUIZ_MODEL",
    "ANATOMY_QUIZ_MODE",
    "ANATOMY_QUIZ_API_BASE",
    "ANATOMY_QUIZ_REQUEST_TIMEOUT_SECONDS",
    "ANATOMY_QUIZ_BANK_PATH",
    "ANATOMY_QUIZ_LOG_LEVEL",
    "MISTRAL_API_KEY",
)


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep tests away from the real workspace, config and API key."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ANATOMY_QUIZ_DATA_HOME", str(tmp_path / "data-home"))


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def small_bank() -> QuestionBank:
    """Three plane questions followed by two directional ones."""

    return QuestionBank(
        [
            make_question(
                "planes-01",
                "Body Planes",
                "sagittal",
                prompt="The _____ plane divides the body into left and right.",
                images=("sagittal.png",),
            ),
            make_question("planes-02", "Body Planes", "frontal"),
            make_question("planes-03", "Body Planes", "transverse"),
            make_question("dir-01", "Directional Terms", "superior"),
            make_question("dir-02", "Directional Terms", "inferior"),
        ]
    )


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture(autouse=True)
def _reset_quiz_logger():
    """Undo handlers the CLI attaches so caplog sees quiz records."""

    yield
    logger = logging.getLogger("anatomy_quiz.quizzer")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
