"""
Cost Report Module

The complete structured output consumed by export, print and UI layers.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

from ..calibration.manager import CalibrationData
from ..geometry.annotation import Annotation
from .aggregator import (
    CostItem,
    CategoryTotals,
    Labels,
    aggregate_costs,
    calculate_category_totals,
    calculate_grand_total,
    apply_markup,
)

logger = logging.getLogger(__name__)


@dataclass
class CostReport:
    """Cost items, category totals and the marked-up grand total."""
    cost_items: List[CostItem] = field(default_factory=list)
    category_totals: Dict[str, CategoryTotals] = field(default_factory=dict)
    grand_total: float = 0.0
    markup_percent: float = 0.0
    markup_amount: float = 0.0
    total_with_markup: float = 0.0
    is_calibrated: bool = False

    @property
    def item_count(self) -> int:
        return len(self.cost_items)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary for JSON serialization."""
        return {
            "cost_items": [item.to_dict() for item in self.cost_items],
            "category_totals": {
                category: totals.to_dict()
                for category, totals in self.category_totals.items()
            },
            "grand_total": round(self.grand_total, 2),
            "markup_percent": self.markup_percent,
            "markup_amount": round(self.markup_amount, 2),
            "total_with_markup": round(self.total_with_markup, 2),
            "is_calibrated": self.is_calibrated,
        }


def build_cost_report(
    annotations: Iterable[Annotation],
    labels: Labels,
    calibration: CalibrationData,
    markup_percent: float = 0.0
) -> CostReport:
    """
    Rebuild the whole cost report from current state.

    Args:
        annotations: All annotations across pages
        labels: Label definitions
        calibration: Current calibration
        markup_percent: Markup percentage applied to the grand total

    Returns:
        CostReport
    """
    cost_items = aggregate_costs(annotations, labels, calibration)
    return summarize_cost_items(cost_items, markup_percent, calibration.is_calibrated)


def summarize_cost_items(
    cost_items: List[CostItem],
    markup_percent: float = 0.0,
    is_calibrated: bool = True
) -> CostReport:
    """
    Roll existing cost items up into a report without re-aggregating.

    Args:
        cost_items: Cost items, possibly with manual overrides
        markup_percent: Markup percentage applied to the grand total
        is_calibrated: Calibration state the items were derived under

    Returns:
        CostReport
    """
    markup_percent = float(markup_percent)
    category_totals = calculate_category_totals(cost_items)
    grand_total = calculate_grand_total(cost_items)
    markup = apply_markup(grand_total, markup_percent)

    logger.debug(
        f"Cost report: {len(cost_items)} items, {len(category_totals)} categories, "
        f"total {grand_total:.2f} (+{markup_percent:g}% = {markup.total_with_markup:.2f})"
    )

    return CostReport(
        cost_items=cost_items,
        category_totals=category_totals,
        grand_total=grand_total,
        markup_percent=markup_percent,
        markup_amount=markup.markup_amount,
        total_with_markup=markup.total_with_markup,
        is_calibrated=is_calibrated,
    )
