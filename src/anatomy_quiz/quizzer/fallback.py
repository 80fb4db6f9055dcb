"""Attempt a remote call and fall back to a local result on any failure."""

from __future__ import annotations

import logging
from typing import Callable, TypeVar

__all__ = ["attempt_with_fallback"]

T = TypeVar("T")


def attempt_with_fallback(
    primary: Callable[[], T],
    fallback: Callable[[], T],
    *,
    operation: str,
    logger: logging.Logger,
) -> T:
    """Return ``primary()``, or ``fallback()`` if it raises.

    ``fallback`` must be total; its result is what callers receive whenever
    the remote path cannot produce one.
    """
    try:
        result = primary()
    except Exception as exc:
        logger.warning(
            "Remote %s failed; using local fallback",
            operation,
            extra={
                "operation": operation,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
        )
        return fallback()
    logger.debug(
        "Remote %s succeeded",
        operation,
        extra={"operation": operation},
    )
    return result
