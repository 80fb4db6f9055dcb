from __future__ import annotations

import pytest

from anatomy_quiz.quizzer.utils import JsonlError, extract_json_object, parse_jsonl


def test_parse_jsonl_skips_blank_and_comment_lines():
    text = '# header\n{"a": 1}\n\n   \n{"b": 2}\n'

    assert parse_jsonl(text) == [{"a": 1}, {"b": 2}]


def test_parse_jsonl_requires_objects():
    with pytest.raises(JsonlError, match="bank:2: expected a JSON object"):
        parse_jsonl('{"a": 1}\n[1, 2]\n', source="bank")


@pytest.mark.parametrize(
    "content",
    [
        '{"isCorrect": true}',
        '```json\n{"isCorrect": true}\n```',
        'Here you go:\n```\n{"isCorrect": true}\n```',
    ],
)
def test_extract_json_object_tolerates_fences(content):
    assert extract_json_object(content) == {"isCorrect": True}


@pytest.mark.parametrize("content", ["", "   ", "not json", "[1, 2]"])
def test_extract_json_object_rejects_non_objects(content):
    with pytest.raises(JsonlError):
        extract_json_object(content)
