"""
Label Catalog Module

Label definitions give annotations a unit type, a category and a price.
"""

import logging
import math
from dataclasses import dataclass, asdict, fields, replace
from typing import Any, Dict, Iterable, List, Optional

from ..constants import LabelUnit, UNCATEGORIZED, DEFAULT_ANNOTATION_COLOR
from ..errors import ValidationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LabelDefinition:
    """
    A named, colored, unit-typed and optionally priced category.

    Many annotations may reference the same label by id.
    """
    id: str
    name: str
    unit: str = LabelUnit.COUNT
    category: str = UNCATEGORIZED
    color: str = DEFAULT_ANNOTATION_COLOR
    icon: str = ""
    cost_per_unit: Optional[float] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LabelDefinition":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if values.get("cost_per_unit") is not None:
            try:
                values["cost_per_unit"] = float(values["cost_per_unit"])
            except (TypeError, ValueError):
                raise ValidationError(
                    f"Label {values.get('id')} cost per unit must be a number, "
                    f"got {values['cost_per_unit']!r}"
                )
        if not values.get("category"):
            values["category"] = UNCATEGORIZED
        return cls(**values)


def validate_label(label: LabelDefinition) -> None:
    """
    Check a label definition.

    Raises:
        ValidationError: If the id or name is empty, the unit is unknown,
            or the cost is negative or not finite
    """
    if not label.id:
        raise ValidationError("Label id is required")

    if not label.name:
        raise ValidationError(f"Label {label.id} has no name")

    if label.unit not in LabelUnit.ALL:
        raise ValidationError(
            f"Label {label.id} has unknown unit '{label.unit}' "
            f"(expected one of {', '.join(LabelUnit.ALL)})"
        )

    if label.cost_per_unit is not None:
        cost = label.cost_per_unit
        if isinstance(cost, bool) or not isinstance(cost, (int, float)):
            raise ValidationError(
                f"Label {label.id} cost per unit must be a number, got {cost!r}"
            )
        if not math.isfinite(cost) or cost < 0:
            raise ValidationError(
                f"Label {label.id} cost per unit must be a non-negative number"
            )


class LabelCatalog:
    """
    Ordered collection of label definitions joined to annotations by id.
    """

    def __init__(self, labels: Optional[Iterable[LabelDefinition]] = None):
        self._labels: List[LabelDefinition] = []
        for label in labels or []:
            self.add(label)

    def __len__(self) -> int:
        return len(self._labels)

    def __iter__(self):
        return iter(list(self._labels))

    def __contains__(self, label_id: str) -> bool:
        return self.get(label_id) is not None

    @property
    def labels(self) -> List[LabelDefinition]:
        return list(self._labels)

    def get(self, label_id: str) -> Optional[LabelDefinition]:
        for label in self._labels:
            if label.id == label_id:
                return label
        return None

    def as_map(self) -> Dict[str, LabelDefinition]:
        return {label.id: label for label in self._labels}

    def add(self, label: LabelDefinition) -> LabelDefinition:
        validate_label(label)
        if self.get(label.id) is not None:
            raise ValidationError(f"Duplicate label id: {label.id}")
        self._labels.append(label)
        return label

    def update(self, label_id: str, **changes) -> Optional[LabelDefinition]:
        """
        Merge changes into a label.

        Returns:
            The updated label, or None if the id is unknown

        Raises:
            ValidationError: If the merged label is invalid; the stored
                label is unchanged
        """
        for index, label in enumerate(self._labels):
            if label.id != label_id:
                continue
            changes.pop("id", None)
            unknown = set(changes) - {f.name for f in fields(LabelDefinition)}
            if unknown:
                raise ValidationError(f"Unknown label fields: {', '.join(sorted(unknown))}")
            updated = replace(label, **changes)
            validate_label(updated)
            self._labels[index] = updated
            return updated

        logger.debug(f"Label {label_id} not found, update ignored")
        return None

    def delete(self, label_id: str) -> bool:
        """Remove a label. Annotations that reference it are left in place."""
        for index, label in enumerate(self._labels):
            if label.id == label_id:
                del self._labels[index]
                return True

        logger.debug(f"Label {label_id} not found, delete ignored")
        return False

    def by_category(self) -> Dict[str, List[LabelDefinition]]:
        grouped: Dict[str, List[LabelDefinition]] = {}
        for label in self._labels:
            grouped.setdefault(label.category or UNCATEGORIZED, []).append(label)
        return grouped

    def categories(self) -> List[str]:
        return list(self.by_category().keys())


# Starting templates for common construction elements (example prices)
PREDEFINED_LABELS: List[LabelDefinition] = [
    LabelDefinition(
        id="label-windows",
        name="Windows",
        color="#3B82F6",
        description="Window openings and frames",
        icon="🪟",
        unit=LabelUnit.COUNT,
        category="Openings",
        cost_per_unit=500.0,
    ),
    LabelDefinition(
        id="label-doors",
        name="Doors",
        color="#EF4444",
        description="Door openings and frames",
        icon="🚪",
        unit=LabelUnit.COUNT,
        category="Openings",
        cost_per_unit=800.0,
    ),
    LabelDefinition(
        id="label-walls",
        name="Walls",
        color="#10B981",
        description="Wall segments and partitions",
        icon="🧱",
        unit=LabelUnit.LINEAR_METERS,
        category="Structure",
        cost_per_unit=150.0,
    ),
    LabelDefinition(
        id="label-floors",
        name="Floors",
        color="#F59E0B",
        description="Floor areas",
        icon="⬜",
        unit=LabelUnit.SQUARE_METERS,
        category="Structure",
        cost_per_unit=80.0,
    ),
    LabelDefinition(
        id="label-columns",
        name="Columns",
        color="#8B5CF6",
        description="Structural columns",
        icon="⬛",
        unit=LabelUnit.COUNT,
        category="Structure",
        cost_per_unit=1200.0,
    ),
    LabelDefinition(
        id="label-beams",
        name="Beams",
        color="#F97316",
        description="Structural beams",
        icon="━",
        unit=LabelUnit.LINEAR_METERS,
        category="Structure",
        cost_per_unit=200.0,
    ),
    LabelDefinition(
        id="label-electrical",
        name="Electrical Outlets",
        color="#06B6D4",
        description="Electrical outlets and switches",
        icon="⚡",
        unit=LabelUnit.COUNT,
        category="MEP",
        cost_per_unit=50.0,
    ),
    LabelDefinition(
        id="label-plumbing",
        name="Plumbing Fixtures",
        color="#0EA5E9",
        description="Plumbing fixtures and connections",
        icon="🚰",
        unit=LabelUnit.COUNT,
        category="MEP",
        cost_per_unit=300.0,
    ),
    LabelDefinition(
        id="label-stairs",
        name="Stairs",
        color="#EC4899",
        description="Stairways and steps",
        icon="🪜",
        unit=LabelUnit.COUNT,
        category="Circulation",
        cost_per_unit=5000.0,
    ),
    LabelDefinition(
        id="label-roof",
        name="Roof Area",
        color="#78716C",
        description="Roof coverage area",
        icon="⛺",
        unit=LabelUnit.SQUARE_METERS,
        category="Structure",
        cost_per_unit=120.0,
    ),
]
