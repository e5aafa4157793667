"""Reference model router for local deterministic testing."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import threading
import time
from typing import Any


@dataclass(slots=True)
class FakeModelRouter:
    """Returns configured token usage and records every call it receives.

    ``usage_by_model`` maps a requested model to ``(input_tokens,
    output_tokens)``; other models get the default counts.
    """

    input_tokens: int = 100
    output_tokens: int = 50
    usage_by_model: dict[str, tuple[int, int]] = field(default_factory=dict)
    reported_model: str | None = None
    delay_seconds: float = 0.0
    error: Exception | None = None
    calls: list[dict[str, Any]] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

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
        call = {
            "messages": list(messages),
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
            "top_k": top_k,
        }
        with self._lock:
            self.calls.append(call)

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)
        if self.error is not None:
            raise self.error

        input_tokens, output_tokens = self.usage_by_model.get(
            model or "", (self.input_tokens, self.output_tokens)
        )
        served_by = self.reported_model or model
        return {
            "model": served_by,
            "input_tokens": input_tokens,
            "output_tokens": output_tokens,
            "content": f"fake completion from {served_by or 'unknown'}",
        }
