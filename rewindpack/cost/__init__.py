"""Cost comparison and pricing subsystem for RewindKit."""

from rewindpack.cost.comparison import (
    BatchCostComparison,
    CostBreakdown,
    CostComparator,
    CostComparison,
    build_recommendations,
    summarize_costs,
)
from rewindpack.cost.exceptions import PricingConfigError, PricingError
from rewindpack.cost.formatting import render_cost_comparison
from rewindpack.cost.pricing import (
    DEFAULT_MODEL_PRICING,
    FALLBACK_PRICING,
    PRICING_FILE_ENV_VAR,
    ModelPricing,
    PricingTable,
    UsageCost,
    load_pricing_table,
    resolve_pricing_table,
)

__all__ = [
    "BatchCostComparison",
    "CostBreakdown",
    "CostComparator",
    "CostComparison",
    "build_recommendations",
    "summarize_costs",
    "PricingError",
    "PricingConfigError",
    "render_cost_comparison",
    "DEFAULT_MODEL_PRICING",
    "FALLBACK_PRICING",
    "PRICING_FILE_ENV_VAR",
    "ModelPricing",
    "PricingTable",
    "UsageCost",
    "load_pricing_table",
    "resolve_pricing_table",
]
