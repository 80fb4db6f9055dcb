from __future__ import annotations

import json

from anatomy_quiz.quizzer.flags import WELCOME_SEEN, JsonFlagStore, MemoryFlagStore


def test_memory_store_defaults_to_false():
    store = MemoryFlagStore()

    assert store.get(WELCOME_SEEN) is False
    store.set(WELCOME_SEEN)
    assert store.get(WELCOME_SEEN) is True
    assert MemoryFlagStore({WELCOME_SEEN: True}).get(WELCOME_SEEN) is True


def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "state" / "flags.json"

    JsonFlagStore(path).set(WELCOME_SEEN)

    assert JsonFlagStore(path).get(WELCOME_SEEN) is True
    assert json.loads(path.read_text(encoding="utf-8")) == {WELCOME_SEEN: True}
    assert not path.with_suffix(".json.tmp").exists()


def test_json_store_keeps_other_flags(tmp_path):
    path = tmp_path / "flags.json"
    store = JsonFlagStore(path)

    store.set("a")
    store.set("b", False)

    assert store.get("a") is True
    assert store.get("b") is False


def test_corrupt_file_reads_as_empty_and_is_rewritten(tmp_path):
    path = tmp_path / "flags.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFlagStore(path)

    assert store.get(WELCOME_SEEN) is False
    store.set(WELCOME_SEEN)
    assert store.get(WELCOME_SEEN) is True
