"""Shared testing fixtures for the anatomy_quiz test suite."""

from .bank import jsonl, make_question  # noqa: F401
from .chat import FakeChatClient, FakeClientFactory  # noqa: F401
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "FakeChatClient",
    "FakeClientFactory",
    "WorkspaceBuilder",
    "build_tree",
    "jsonl",
    "make_question",
]
