"""Shared AI helper utilities."""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv

try:  # Allow module import even when the OpenAI dependency is absent.
    from openai import OpenAI  # type: ignore
except Exception:  # pragma: no cover - optional dependency guard
    OpenAI = None  # type: ignore

__all__ = ["API_KEY_ENV", "DEFAULT_API_BASE", "load_client"]

API_KEY_ENV = "MISTRAL_API_KEY"
DEFAULT_API_BASE = "https://api.mistral.ai/v1"


def load_client(
    *,
    api_base: str | None = None,
    timeout: float | None = None,
) -> Any:
    """Initialize an OpenAI-compatible client for the Mistral API.

    Credentials come from ``MISTRAL_API_KEY`` (optionally loaded from a
    ``.env`` file). ``RuntimeError`` is raised when the key or the SDK is
    missing so callers can route around the remote service.
    """
    if OpenAI is None:
        raise RuntimeError(
            "The 'openai' package is required to create a client. "
            "Install it and retry."
        )
    load_dotenv()
    api_key = os.getenv(API_KEY_ENV)
    if not api_key:
        raise RuntimeError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, Any] = {
        "api_key": api_key,
        "base_url": api_base or DEFAULT_API_BASE,
    }
    if timeout is not None:
        kwargs["timeout"] = timeout
    return OpenAI(**kwargs)
