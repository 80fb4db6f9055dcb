import re
import json

from pathlib import Path
from typing import Any, Dict, List


class JsonlError(ValueError):
    """Raised when a JSON Lines document contains an unreadable line."""


def parse_jsonl(text: str, *, source: str = "<string>") -> List[Dict[str, Any]]:
    """Parse JSON Lines text into a list of objects.

    Blank lines and ``#`` comment lines are skipped. Non-object lines raise
    ``JsonlError`` naming the source and line number.
    """
    data: List[Dict[str, Any]] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise JsonlError(f"{source}:{lineno}: invalid JSON ({exc})") from exc
        if not isinstance(record, dict):
            raise JsonlError(f"{source}:{lineno}: expected a JSON object")
        data.append(record)
    return data


def read_jsonl(path: Path) -> List[Dict[str, Any]]:
    p = Path(path)
    with p.open("r", encoding="utf-8") as fh:
        return parse_jsonl(fh.read(), source=str(p))


def extract_json_object(content: str) -> Dict[str, Any]:
    """Return the JSON object in a model reply, tolerating code fences."""

    if not content or not content.strip():
        raise JsonlError("empty model reply")
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise JsonlError(f"model reply is not JSON ({exc})") from exc
    if not isinstance(data, dict):
        raise JsonlError("model reply is not a JSON object")
    return data
