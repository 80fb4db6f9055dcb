from __future__ import annotations

import logging

from anatomy_quiz.quizzer.fallback import attempt_with_fallback

LOGGER = logging.getLogger("anatomy_quiz.tests.fallback")


def test_primary_result_wins():
    calls = []

    result = attempt_with_fallback(
        lambda: "remote",
        lambda: calls.append("fallback") or "local",
        operation="grading",
        logger=LOGGER,
    )

    assert result == "remote"
    assert calls == []


def test_any_exception_switches_to_fallback(caplog):
    def boom():
        raise ConnectionError("offline")

    with caplog.at_level(logging.WARNING, logger=LOGGER.name):
        result = attempt_with_fallback(
            boom, lambda: "local", operation="summary", logger=LOGGER
        )

    assert result == "local"
    (record,) = caplog.records
    assert record.operation == "summary"
    assert record.error_type == "ConnectionError"
    assert record.error == "offline"
