"""Collaborator contracts consumed by the replay engine."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from rewindpack.core.models import ReplayChain


class EventLog(Protocol):
    """Source of recorded timeline events."""

    def replay_from_event(self, event_id: str) -> ReplayChain:
        """Return the causal chain starting at ``event_id``.

        Raises ``EventNotFoundError`` when the id is unknown.
        """


class ModelRouter(Protocol):
    """Re-executes one model call with explicit generation parameters."""

    def route(
        self,
        *,
        messages: list[Any],
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        top_p: float | None = None,
        top_k: int | None = None,
    ) -> Mapping[str, Any]:
        """Return a response with optional ``input_tokens``, ``output_tokens`` and ``model``."""
