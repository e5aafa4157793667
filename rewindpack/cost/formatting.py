"""Text rendering for cost comparisons."""

from __future__ import annotations

from rewindpack.cost.comparison import CostBreakdown, CostComparison


def render_cost_comparison(comparison: CostComparison) -> str:
    lines: list[str] = ["=== Cost Comparison ===", ""]
    lines.extend(_render_breakdown("Original", comparison.original))
    lines.append("")
    lines.extend(_render_breakdown("Replayed", comparison.replayed))
    lines.append("")

    if comparison.savings > 0:
        lines.append(
            f"Savings: ${comparison.savings:.6f} ({comparison.savings_percent:.1f}%)"
        )
    elif comparison.savings < 0:
        lines.append(
            f"Extra cost: ${abs(comparison.savings):.6f} "
            f"({abs(comparison.savings_percent):.1f}%)"
        )
    else:
        lines.append("No cost difference")

    if comparison.recommendations:
        lines.append("")
        lines.append("Recommendations:")
        for recommendation in comparison.recommendations:
            lines.append(f"  - {recommendation}")

    return "\n".join(lines)


def _render_breakdown(label: str, breakdown: CostBreakdown) -> list[str]:
    lines = [
        f"{label} ({breakdown.model}):",
        f"  Total: ${breakdown.total:.6f}",
        f"  Input: {breakdown.input_tokens} tokens @ ${breakdown.input_cost:.6f}",
        f"  Output: {breakdown.output_tokens} tokens @ ${breakdown.output_cost:.6f}",
    ]
    if len(breakdown.by_model) > 1:
        lines.append("  By model:")
        for model in sorted(breakdown.by_model):
            lines.append(f"    {model}: ${breakdown.by_model[model]:.6f}")
    return lines
