"""Per-model token pricing shared by cost comparison and replay."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
import json
import math
import os
from pathlib import Path
from typing import Any

from rewindpack.cost.exceptions import PricingConfigError

PRICING_FILE_ENV_VAR = "REWINDKIT_PRICING_FILE"
TOKENS_PER_UNIT = 1_000_000


@dataclass(frozen=True, slots=True)
class ModelPricing:
    """USD price per one million input and output tokens."""

    input_per_million: float
    output_per_million: float

    def __post_init__(self) -> None:
        for name in ("input_per_million", "output_per_million"):
            value = getattr(self, name)
            if (
                isinstance(value, bool)
                or not isinstance(value, (int, float))
                or not math.isfinite(value)
                or value < 0
            ):
                raise PricingConfigError(f"{name} must be a finite number >= 0, got {value!r}")

    def to_dict(self) -> dict[str, float]:
        return {"input": self.input_per_million, "output": self.output_per_million}

    @classmethod
    def from_dict(cls, raw: Any, *, model: str = "<model>") -> "ModelPricing":
        if not isinstance(raw, Mapping):
            raise PricingConfigError(f"Pricing for {model!r} must be an object with input/output.")
        if "input" not in raw or "output" not in raw:
            raise PricingConfigError(f"Pricing for {model!r} requires 'input' and 'output'.")
        return cls(input_per_million=raw["input"], output_per_million=raw["output"])


@dataclass(frozen=True, slots=True)
class UsageCost:
    """Priced result of one token usage record."""

    model: str
    input_tokens: int
    output_tokens: int
    input_cost: float
    output_cost: float

    @property
    def total(self) -> float:
        return self.input_cost + self.output_cost

    def to_dict(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "input_cost": self.input_cost,
            "output_cost": self.output_cost,
            "total": self.total,
        }


DEFAULT_MODEL_PRICING: dict[str, ModelPricing] = {
    "claude-opus-4": ModelPricing(15.0, 75.0),
    "claude-sonnet-4-5": ModelPricing(3.0, 15.0),
    "claude-haiku-4-5": ModelPricing(0.25, 1.25),
    "gpt-4o": ModelPricing(2.5, 10.0),
    "gpt-4o-mini": ModelPricing(0.15, 0.6),
    "gemini-2.0-flash-exp": ModelPricing(0.0, 0.0),
}

FALLBACK_PRICING = ModelPricing(1.0, 3.0)


@dataclass(frozen=True, slots=True)
class PricingTable:
    """Exact-name model price lookup with a fallback for unknown models."""

    models: dict[str, ModelPricing] = field(default_factory=lambda: dict(DEFAULT_MODEL_PRICING))
    fallback: ModelPricing = FALLBACK_PRICING

    def get(self, model: str | None) -> ModelPricing:
        if model is None:
            return self.fallback
        return self.models.get(model, self.fallback)

    def price(self, model: str | None, input_tokens: Any, output_tokens: Any) -> UsageCost:
        pricing = self.get(model)
        input_count = coerce_token_count(input_tokens)
        output_count = coerce_token_count(output_tokens)
        return UsageCost(
            model=model or "unknown",
            input_tokens=input_count,
            output_tokens=output_count,
            input_cost=input_count / TOKENS_PER_UNIT * pricing.input_per_million,
            output_cost=output_count / TOKENS_PER_UNIT * pricing.output_per_million,
        )

    def with_overrides(self, overrides: Mapping[str, ModelPricing]) -> "PricingTable":
        merged = dict(self.models)
        merged.update(overrides)
        return PricingTable(models=merged, fallback=self.fallback)

    def to_dict(self) -> dict[str, Any]:
        return {
            "models": {name: pricing.to_dict() for name, pricing in sorted(self.models.items())},
            "fallback": self.fallback.to_dict(),
        }


def coerce_token_count(value: Any) -> int:
    """Token counts from router or event payloads; anything unusable is 0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0
    if isinstance(value, float) and not math.isfinite(value):
        return 0
    return max(0, int(value))


def load_pricing_table(path: str | Path, *, base: PricingTable | None = None) -> PricingTable:
    """Load a JSON pricing file and merge it over ``base`` (the default table).

    Expected shape::

        {"models": {"<model>": {"input": 3.0, "output": 15.0}},
         "fallback": {"input": 1.0, "output": 3.0}}
    """
    pricing_path = Path(path)
    try:
        raw = json.loads(pricing_path.read_text(encoding="utf-8"))
    except OSError as error:
        raise PricingConfigError(f"Unable to read pricing file ({pricing_path}): {error}") from error
    except json.JSONDecodeError as error:
        raise PricingConfigError(f"Invalid pricing JSON ({pricing_path}): {error}") from error

    if not isinstance(raw, dict):
        raise PricingConfigError(f"Pricing file must contain a JSON object ({pricing_path}).")

    models = raw.get("models", {})
    if not isinstance(models, dict):
        raise PricingConfigError("Pricing file key 'models' must be a JSON object.")

    table = base or PricingTable()
    overrides = {
        str(name): ModelPricing.from_dict(entry, model=str(name)) for name, entry in models.items()
    }
    table = table.with_overrides(overrides)

    if "fallback" in raw:
        table = PricingTable(
            models=table.models,
            fallback=ModelPricing.from_dict(raw["fallback"], model="fallback"),
        )
    return table


def resolve_pricing_table(path: str | Path | None = None) -> PricingTable:
    """Pricing table from ``path``, else ``REWINDKIT_PRICING_FILE``, else defaults."""
    if path is not None:
        return load_pricing_table(path)

    configured = os.environ.get(PRICING_FILE_ENV_VAR, "").strip()
    if not configured:
        return PricingTable()
    return load_pricing_table(configured)
