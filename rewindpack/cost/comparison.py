"""Cost aggregation and comparison between original and replayed executions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from rewindpack.core.models import TimelineEvent, coerce_event
from rewindpack.cost.pricing import PricingTable, UsageCost, coerce_token_count, resolve_pricing_table

EventInput = TimelineEvent | Mapping[str, Any]

UNKNOWN_MODEL = "unknown"
TOKEN_DELTA_THRESHOLD = 100


@dataclass(slots=True)
class CostBreakdown:
    """Aggregated cost figures for one sequence of events."""

    total: float = 0.0
    by_model: dict[str, float] = field(default_factory=dict)
    input_tokens: int = 0
    output_tokens: int = 0
    input_cost: float = 0.0
    output_cost: float = 0.0
    model: str = UNKNOWN_MODEL
    event_count: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def input_price_per_million(self) -> float:
        if self.input_tokens <= 0:
            return 0.0
        return self.input_cost / self.input_tokens * 1_000_000

    @property
    def output_price_per_million(self) -> float:
        if self.output_tokens <= 0:
            return 0.0
        return self.output_cost / self.output_tokens * 1_000_000

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "by_model": dict(self.by_model),
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "input_cost": self.input_cost,
            "output_cost": self.output_cost,
            "input_price_per_million": self.input_price_per_million,
            "output_price_per_million": self.output_price_per_million,
            "model": self.model,
            "event_count": self.event_count,
        }


def summarize_costs(events: Iterable[EventInput]) -> CostBreakdown:
    """Sum event costs in order; absent cost counts as 0, absent model is ungrouped."""
    breakdown = CostBreakdown()
    for raw in events:
        event = coerce_event(raw)
        breakdown.event_count += 1
        breakdown.total += event.cost

        data = event.data
        breakdown.input_tokens += coerce_token_count(data.get("input_tokens"))
        breakdown.output_tokens += coerce_token_count(data.get("output_tokens"))
        breakdown.input_cost += _coerce_amount(data.get("input_cost"))
        breakdown.output_cost += _coerce_amount(data.get("output_cost"))

        model = event.model
        if model is None:
            continue
        breakdown.by_model[model] = breakdown.by_model.get(model, 0.0) + event.cost
        if breakdown.model == UNKNOWN_MODEL:
            breakdown.model = model
    return breakdown


@dataclass(slots=True)
class CostComparison:
    original: CostBreakdown
    replayed: CostBreakdown
    savings: float
    savings_percent: float
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "original": self.original.to_dict(),
            "replayed": self.replayed.to_dict(),
            "savings": self.savings,
            "savings_percent": self.savings_percent,
            "recommendations": list(self.recommendations),
        }


@dataclass(slots=True)
class BatchCostComparison:
    comparisons: list[CostComparison]
    totals: dict[str, float]
    best_savings: CostComparison | None
    worst_savings: CostComparison | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "comparisons": [comparison.to_dict() for comparison in self.comparisons],
            "totals": dict(self.totals),
            "best_savings": self.best_savings.to_dict() if self.best_savings else None,
            "worst_savings": self.worst_savings.to_dict() if self.worst_savings else None,
        }


def savings_percent(original_total: float, savings: float) -> float:
    if original_total == 0:
        return 0.0
    return savings / original_total * 100


def build_recommendations(
    original: CostBreakdown,
    replayed: CostBreakdown,
    savings: float,
) -> list[str]:
    """Human-readable notes on a cost delta, headline first."""
    recommendations: list[str] = []
    percent = abs(savings_percent(original.total, savings))

    if savings > 0:
        recommendations.append(f"Using {replayed.model} saves ${savings:.4f} ({percent:.1f}%)")
    elif savings < 0:
        recommendations.append(
            f"Caution: using {replayed.model} costs ${abs(savings):.4f} more ({percent:.1f}%)"
        )
    else:
        recommendations.append("Caution: no cost savings; costs are identical")

    token_delta = replayed.total_tokens - original.total_tokens
    if token_delta < -TOKEN_DELTA_THRESHOLD:
        recommendations.append(
            f"{replayed.model} uses {abs(token_delta)} fewer tokens (more concise)"
        )
    elif token_delta > TOKEN_DELTA_THRESHOLD:
        recommendations.append(f"{replayed.model} uses {token_delta} more tokens (more verbose)")

    if original.output_tokens > 0:
        if replayed.output_tokens < original.output_tokens * 0.5:
            recommendations.append(
                f"{replayed.model} produces significantly shorter output; verify quality"
            )
        elif replayed.output_tokens > original.output_tokens * 2:
            recommendations.append(
                f"{replayed.model} produces significantly longer output; may be overly verbose"
            )

    if savings > 0:
        if "opus" in original.model and "sonnet" in replayed.model:
            recommendations.append(
                "Opus to Sonnet downgrade saved money; consider Sonnet by default"
            )
        elif "sonnet" in original.model and "haiku" in replayed.model:
            recommendations.append("Sonnet to Haiku downgrade saved money; consider it for simple tasks")

    if "gemini" in replayed.model and "flash" in replayed.model:
        recommendations.append("Gemini Flash is free; large savings possible for high-volume tasks")

    return recommendations


@dataclass(slots=True)
class CostComparator:
    """Compares what two executions cost and explains the difference."""

    pricing: PricingTable = field(default_factory=resolve_pricing_table)

    def compare(
        self,
        original: Sequence[EventInput],
        replayed: Sequence[EventInput],
    ) -> CostComparison:
        original_breakdown = summarize_costs(original)
        replayed_breakdown = summarize_costs(replayed)
        savings = original_breakdown.total - replayed_breakdown.total
        return CostComparison(
            original=original_breakdown,
            replayed=replayed_breakdown,
            savings=savings,
            savings_percent=savings_percent(original_breakdown.total, savings),
            recommendations=build_recommendations(original_breakdown, replayed_breakdown, savings),
        )

    def batch_compare(self, pairs: Iterable[Any]) -> BatchCostComparison:
        """Compare many (original, replayed) pairs.

        Each pair is a 2-tuple or a mapping with ``original`` and ``replayed``
        keys. Ties for best and worst savings go to the first pair seen.
        """
        comparisons: list[CostComparison] = []
        best: CostComparison | None = None
        worst: CostComparison | None = None
        original_cost = 0.0
        replayed_cost = 0.0

        for pair in pairs:
            original, replayed = _unpack_pair(pair)
            comparison = self.compare(original, replayed)
            comparisons.append(comparison)
            original_cost += comparison.original.total
            replayed_cost += comparison.replayed.total
            if best is None or comparison.savings > best.savings:
                best = comparison
            if worst is None or comparison.savings < worst.savings:
                worst = comparison

        savings = original_cost - replayed_cost
        return BatchCostComparison(
            comparisons=comparisons,
            totals={
                "original_cost": original_cost,
                "replayed_cost": replayed_cost,
                "savings": savings,
                "savings_percent": savings_percent(original_cost, savings),
            },
            best_savings=best,
            worst_savings=worst,
        )

    def format(self, comparison: CostComparison) -> str:
        from rewindpack.cost.formatting import render_cost_comparison

        return render_cost_comparison(comparison)

    def price_usage(self, model: str | None, input_tokens: Any, output_tokens: Any) -> UsageCost:
        return self.pricing.price(model, input_tokens, output_tokens)

    def cost_for_usage(self, model: str | None, input_tokens: Any, output_tokens: Any) -> float:
        """USD cost of one usage record under this comparator's pricing table."""
        return self.price_usage(model, input_tokens, output_tokens).total


def _unpack_pair(pair: Any) -> tuple[Sequence[EventInput], Sequence[EventInput]]:
    if isinstance(pair, Mapping):
        return pair.get("original") or [], pair.get("replayed") or []
    original, replayed = pair
    return original, replayed


def _coerce_amount(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)
