# Cost aggregation module

from .aggregator import (
    CostItem,
    CategoryTotals,
    MarkupResult,
    LabelSummary,
    aggregate_costs,
    calculate_grand_total,
    group_costs_by_category,
    calculate_category_totals,
    apply_markup,
    summarize_by_label,
    validate_cost_calculation,
)

from .report import (
    CostReport,
    build_cost_report,
    summarize_cost_items,
)

__all__ = [
    # Aggregator
    "CostItem",
    "CategoryTotals",
    "MarkupResult",
    "LabelSummary",
    "aggregate_costs",
    "calculate_grand_total",
    "group_costs_by_category",
    "calculate_category_totals",
    "apply_markup",
    "summarize_by_label",
    "validate_cost_calculation",
    # Report
    "CostReport",
    "build_cost_report",
    "summarize_cost_items",
]
