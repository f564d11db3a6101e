"""
Cost Aggregator Module

Joins annotations to label prices and rolls item costs up into category
totals and a marked-up grand total.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from ..calibration.manager import CalibrationData
from ..constants import UNCATEGORIZED, UNIT_DISPLAY_NAMES
from ..errors import ValidationError
from ..geometry.annotation import Annotation
from ..geometry.calculator import derive_quantity, clamp_non_negative
from ..labels.catalog import LabelDefinition

logger = logging.getLogger(__name__)

Labels = Union[Iterable[LabelDefinition], Mapping[str, LabelDefinition]]


@dataclass
class CostItem:
    """
    One annotation's measured quantity priced at its label's unit cost.

    Derived data: rebuilt from annotations, labels and calibration on
    every recompute.
    """
    id: str
    description: str
    quantity: float
    unit: str
    unit_cost: float
    total_cost: float
    category: str
    page_number: int
    notes: str = ""
    label_id: Optional[str] = None
    annotation_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CostItem":
        return cls(**data)

    def to_csv_row(self) -> List[Any]:
        """Convert cost item to CSV row values."""
        return [
            self.description,
            round(self.quantity, 2),
            self.unit,
            round(self.unit_cost, 2),
            round(self.total_cost, 2),
            self.category,
            self.page_number,
            self.notes,
        ]

    @staticmethod
    def csv_header() -> List[str]:
        """Return CSV header row."""
        return [
            "Description",
            "Quantity",
            "Unit",
            "Unit Cost",
            "Total Cost",
            "Category",
            "Page Number",
            "Notes",
        ]


@dataclass
class CategoryTotals:
    """Aggregated cost, item count and share of the grand total for one category."""
    cost: float = 0.0
    count: int = 0
    percentage: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MarkupResult:
    markup_amount: float
    total_with_markup: float


@dataclass
class LabelSummary:
    """Cost items for one label rolled into a single line."""
    label_id: str
    description: str
    category: str
    unit: str
    unit_cost: float
    quantity: float = 0.0
    total_cost: float = 0.0
    annotation_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _label_map(labels: Labels) -> Dict[str, LabelDefinition]:
    if isinstance(labels, Mapping):
        return dict(labels)
    return {label.id: label for label in labels}


def aggregate_costs(
    annotations: Iterable[Annotation],
    labels: Labels,
    calibration: CalibrationData
) -> List[CostItem]:
    """
    Build one cost item per priced annotation.

    Annotations without a label, with an unknown label, or whose label has
    no cost are left out entirely.

    Args:
        annotations: Annotations in page order
        labels: Label definitions (sequence or id mapping)
        calibration: Current calibration

    Returns:
        Cost items, empty when the drawing is not calibrated
    """
    if not calibration.is_calibrated:
        logger.debug("Drawing not calibrated, no cost items")
        return []

    label_map = _label_map(labels)
    cost_items = []

    for annotation in annotations:
        if not annotation.label_id:
            continue

        label = label_map.get(annotation.label_id)
        if label is None:
            logger.debug(
                f"Annotation {annotation.id} references unknown label "
                f"{annotation.label_id}, skipped"
            )
            continue

        if label.cost_per_unit is None:
            continue

        unit_cost = clamp_non_negative(label.cost_per_unit)
        quantity = derive_quantity(annotation, label, calibration)
        total_cost = clamp_non_negative(quantity * unit_cost)

        cost_items.append(CostItem(
            id=f"cost-{annotation.id}",
            description=label.name,
            quantity=quantity,
            unit=UNIT_DISPLAY_NAMES.get(label.unit, label.unit),
            unit_cost=unit_cost,
            total_cost=total_cost,
            category=label.category or UNCATEGORIZED,
            page_number=annotation.page_number,
            notes=annotation.notes,
            label_id=label.id,
            annotation_id=annotation.id,
        ))

    logger.debug(f"Aggregated {len(cost_items)} cost items")
    return cost_items


def calculate_grand_total(cost_items: Iterable[CostItem]) -> float:
    return sum(item.total_cost for item in cost_items)


def group_costs_by_category(cost_items: Iterable[CostItem]) -> Dict[str, List[CostItem]]:
    grouped: Dict[str, List[CostItem]] = {}
    for item in cost_items:
        grouped.setdefault(item.category or UNCATEGORIZED, []).append(item)
    return grouped


def calculate_category_totals(cost_items: List[CostItem]) -> Dict[str, CategoryTotals]:
    """
    Sum cost and count per category with each category's share of the total.

    Percentages sum to 100 when the grand total is positive and are all 0
    otherwise.

    Args:
        cost_items: Cost items to roll up

    Returns:
        Mapping of category to CategoryTotals, in first-seen order
    """
    grand_total = calculate_grand_total(cost_items)
    totals: Dict[str, CategoryTotals] = {}

    for item in cost_items:
        category_totals = totals.setdefault(item.category or UNCATEGORIZED, CategoryTotals())
        category_totals.cost += item.total_cost
        category_totals.count += 1

    for category_totals in totals.values():
        if grand_total > 0:
            category_totals.percentage = category_totals.cost / grand_total * 100
        else:
            category_totals.percentage = 0.0

    return totals


def apply_markup(grand_total: float, markup_percent: float) -> MarkupResult:
    """
    Apply a percentage surcharge to the grand total.

    Any non-negative percentage is accepted.

    Args:
        grand_total: Total before markup
        markup_percent: Markup percentage (e.g. 10 for 10%)

    Returns:
        MarkupResult with markup amount and marked-up total

    Raises:
        ValidationError: If markup_percent is negative or not a number
    """
    if not math.isfinite(markup_percent) or markup_percent < 0:
        raise ValidationError(f"Markup must be a non-negative percentage: {markup_percent}")

    markup_amount = grand_total * markup_percent / 100
    return MarkupResult(
        markup_amount=markup_amount,
        total_with_markup=grand_total + markup_amount,
    )


def summarize_by_label(cost_items: Iterable[CostItem]) -> List[LabelSummary]:
    """
    Roll cost items up per label, in first-seen order.

    Args:
        cost_items: Per-annotation cost items

    Returns:
        One LabelSummary per label
    """
    summaries: Dict[str, LabelSummary] = {}

    for item in cost_items:
        if item.label_id is None:
            continue
        summary = summaries.get(item.label_id)
        if summary is None:
            summary = LabelSummary(
                label_id=item.label_id,
                description=item.description,
                category=item.category,
                unit=item.unit,
                unit_cost=item.unit_cost,
            )
            summaries[item.label_id] = summary
        summary.quantity += item.quantity
        summary.total_cost += item.total_cost
        summary.annotation_count += 1

    return list(summaries.values())


def validate_cost_calculation(calibration: CalibrationData) -> List[str]:
    """
    Check that costs can be computed against the calibration.

    Returns:
        List of error messages, empty if valid
    """
    errors = []

    if not calibration.is_calibrated:
        errors.append("Calibration is required for accurate cost calculations")

    if calibration.meters_per_pixel <= 0:
        errors.append("Invalid calibration: meters per pixel must be greater than 0")

    if not math.isfinite(calibration.meters_per_pixel):
        errors.append("Invalid calibration: meters per pixel must be a valid number")

    return errors
