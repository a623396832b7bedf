"""Explicit results for best-effort side effects.

Side effects such as push delivery, notification cleanup, or follow-edge
removal never fail their parent operation. They run through :func:`attempt`,
which logs the failure and hands back an :class:`Outcome` the caller may
inspect or discard.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Outcome:
    """Result of a best-effort step."""

    label: str
    ok: bool
    value: Any = None
    error: str | None = None

    @classmethod
    def success(cls, label: str, value: Any = None) -> Outcome:
        return cls(label=label, ok=True, value=value)

    @classmethod
    def failure(cls, label: str, error: BaseException | str) -> Outcome:
        return cls(label=label, ok=False, error=str(error))


async def attempt(label: str, awaitable: Awaitable[Any]) -> Outcome:
    """Await a side effect, converting any failure into a logged Outcome."""
    try:
        value = await awaitable
    except Exception as exc:  # noqa: BLE001 - side effects never fail the parent
        logger.error("[%s] best-effort step failed: %s", label, exc)
        return Outcome.failure(label, exc)
    return Outcome.success(label, value)


def failed(outcomes: list[Outcome]) -> list[Outcome]:
    """Return the outcomes that did not succeed."""
    return [outcome for outcome in outcomes if not outcome.ok]
