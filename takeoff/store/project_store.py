"""
Project Store Module

Single owner of the calibration, annotations, labels and markup for one
drawing. Every applied mutation re-runs the full measurement and costing
pipeline synchronously, then hands the new report to subscribers.
"""

import logging
import math
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from ..calibration.manager import CalibrationData, CalibrationManager
from ..constants import DEFAULT_LENGTH_UNIT, DEFAULT_MARKUP_PERCENT, SNAPSHOT_VERSION
from ..costing.aggregator import CostItem
from ..costing.report import CostReport, build_cost_report, summarize_cost_items
from ..errors import ValidationError
from ..geometry.annotation import Annotation
from ..labels.catalog import LabelCatalog, LabelDefinition, PREDEFINED_LABELS
from .annotation_store import AnnotationStore

logger = logging.getLogger(__name__)

Subscriber = Callable[[CostReport], None]


def validate_markup_percent(markup_percent: float) -> float:
    """
    Check a markup percentage.

    Returns:
        The percentage as a float

    Raises:
        ValidationError: If it is not a number, not finite, or negative
    """
    try:
        value = float(markup_percent)
    except (TypeError, ValueError):
        raise ValidationError(f"Markup must be a number: {markup_percent!r}")

    if not math.isfinite(value) or value < 0:
        raise ValidationError(f"Markup must be a non-negative percentage: {markup_percent}")

    return value


class ProjectStore:
    """
    Calibration, annotations, labels and markup for one drawing, plus the
    cost report derived from them.

    Collaborators read `report` or subscribe for updates; they never hold
    mutable references into the store.
    """

    def __init__(
        self,
        labels: Optional[Iterable[LabelDefinition]] = None,
        markup_percent: float = DEFAULT_MARKUP_PERCENT
    ):
        self._subscribers: List[Subscriber] = []
        self._calibration = CalibrationManager(on_change=self.recompute)
        self._annotations = AnnotationStore(on_change=self.recompute)
        self._labels = LabelCatalog(PREDEFINED_LABELS if labels is None else labels)
        self._markup_percent = validate_markup_percent(markup_percent)
        self._report = self._build_report()

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def report(self) -> CostReport:
        return self._report

    @property
    def cost_items(self) -> List[CostItem]:
        return list(self._report.cost_items)

    @property
    def calibration(self) -> CalibrationData:
        return self._calibration.data

    @property
    def is_calibrated(self) -> bool:
        return self._calibration.is_calibrated

    @property
    def markup_percent(self) -> float:
        return self._markup_percent

    @property
    def labels(self) -> List[LabelDefinition]:
        return self._labels.labels

    @property
    def annotation_count(self) -> int:
        return self._annotations.count

    def page_numbers(self) -> List[int]:
        """Pages that carry at least one annotation, ascending."""
        return self._annotations.page_numbers()

    def get_label(self, label_id: str) -> Optional[LabelDefinition]:
        return self._labels.get(label_id)

    def get_annotation(self, annotation_id: str) -> Optional[Annotation]:
        return self._annotations.get(annotation_id)

    def get_annotations_by_page(self, page_number: int) -> List[Annotation]:
        return self._annotations.get_by_page(page_number)

    def all_annotations(self) -> List[Annotation]:
        return self._annotations.all_annotations()

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for new reports.

        Returns:
            A function that removes the callback
        """
        self._subscribers.append(callback)
        return lambda: self.unsubscribe(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def recompute(self) -> CostReport:
        """Rebuild the cost report from current state and notify subscribers."""
        self._report = self._build_report()
        self._publish()
        return self._report

    def _build_report(self) -> CostReport:
        return build_cost_report(
            self._annotations.all_annotations(),
            self._labels.as_map(),
            self._calibration.data,
            self._markup_percent,
        )

    def _publish(self) -> None:
        for callback in list(self._subscribers):
            callback(self._report)

    # ------------------------------------------------------------------
    # Calibration
    # ------------------------------------------------------------------

    def compute_calibration(self, reference_length: float, pixel_distance: float) -> CalibrationData:
        return self._calibration.compute_calibration(reference_length, pixel_distance)

    def compute_calibration_from_points(
        self,
        point1: Tuple[float, float],
        point2: Tuple[float, float],
        reference_length: float,
        unit: str = DEFAULT_LENGTH_UNIT
    ) -> CalibrationData:
        return self._calibration.compute_calibration_from_points(
            point1, point2, reference_length, unit
        )

    def reset_calibration(self) -> CalibrationData:
        return self._calibration.reset_calibration()

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    def add_annotation(self, annotation: Annotation) -> Annotation:
        return self._annotations.add(annotation)

    def update_annotation(
        self,
        annotation_id: str,
        canvas_size: Optional[Tuple[float, float]] = None,
        **changes
    ) -> Optional[Annotation]:
        return self._annotations.update(annotation_id, canvas_size=canvas_size, **changes)

    def delete_annotation(self, annotation_id: str) -> bool:
        return self._annotations.delete(annotation_id)

    def clear_annotations(self, page_number: Optional[int] = None) -> None:
        self._annotations.clear(page_number)

    def select_annotation(self, annotation_id: Optional[str]) -> None:
        self._annotations.select(annotation_id)

    def selected_annotation(self) -> Optional[Annotation]:
        return self._annotations.selected()

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def add_label(self, label: LabelDefinition) -> LabelDefinition:
        added = self._labels.add(label)
        logger.debug(f"Added label {label.id} ({label.name})")
        self.recompute()
        return added

    def update_label(self, label_id: str, **changes) -> Optional[LabelDefinition]:
        updated = self._labels.update(label_id, **changes)
        if updated is not None:
            self.recompute()
        return updated

    def delete_label(self, label_id: str) -> bool:
        """
        Remove a label. Annotations keep their now dangling reference and
        drop out of the cost report.
        """
        deleted = self._labels.delete(label_id)
        if deleted:
            orphaned = sum(1 for a in self._annotations.all_annotations() if a.label_id == label_id)
            if orphaned:
                logger.info(f"Deleted label {label_id}; {orphaned} annotation(s) no longer priced")
            self.recompute()
        return deleted

    def add_predefined_labels(self) -> int:
        """
        Add the predefined labels that are not already in the catalog.

        Returns:
            Number of labels added
        """
        added = 0
        for label in PREDEFINED_LABELS:
            if label.id not in self._labels:
                self._labels.add(label)
                added += 1

        if added:
            logger.debug(f"Added {added} predefined labels")
            self.recompute()
        return added

    # ------------------------------------------------------------------
    # Costs
    # ------------------------------------------------------------------

    def set_markup(self, markup_percent: float) -> CostReport:
        """
        Set the markup percentage applied to the grand total.

        Raises:
            ValidationError: If the percentage is negative or not a number
        """
        self._markup_percent = validate_markup_percent(markup_percent)
        return self.recompute()

    def override_cost_item(self, cost_item_id: str, **changes) -> Optional[CostItem]:
        """
        Manually adjust one cost item in the current report.

        The total is recomputed when quantity or unit cost changes. The
        override lives only until the next recompute.

        Returns:
            The adjusted item, or None if the id is unknown
        """
        items = list(self._report.cost_items)
        for index, item in enumerate(items):
            if item.id != cost_item_id:
                continue

            changes.pop("id", None)
            unknown = set(changes) - set(item.to_dict())
            if unknown:
                raise ValidationError(f"Unknown cost item fields: {', '.join(sorted(unknown))}")

            updated = replace(item, **changes)
            if "quantity" in changes or "unit_cost" in changes:
                updated.total_cost = updated.quantity * updated.unit_cost

            items[index] = updated
            self._report = summarize_cost_items(
                items, self._markup_percent, self._report.is_calibrated
            )
            logger.debug(f"Overrode cost item {cost_item_id}: {', '.join(sorted(changes))}")
            self._publish()
            return updated

        logger.debug(f"Cost item {cost_item_id} not found, override ignored")
        return None

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def to_snapshot(self) -> Dict[str, Any]:
        """
        Persistable state. Cost items are included as a cache and are
        regenerated on load.
        """
        return {
            "version": SNAPSHOT_VERSION,
            "calibration": self._calibration.data.to_dict(),
            "annotations": self._annotations.to_dict(),
            "labels": [label.to_dict() for label in self._labels],
            "cost_items": [item.to_dict() for item in self._report.cost_items],
            "markup_percent": self._markup_percent,
        }

    @classmethod
    def from_snapshot(cls, data: Dict[str, Any]) -> "ProjectStore":
        """
        Rebuild a store from `to_snapshot()` output.

        Raises:
            ValidationError: If the snapshot version is unsupported or any
                record is invalid
        """
        version = data.get("version", SNAPSHOT_VERSION)
        if version != SNAPSHOT_VERSION:
            raise ValidationError(f"Unsupported snapshot version: {version}")

        labels = None
        if "labels" in data:
            try:
                labels = [LabelDefinition.from_dict(record) for record in data["labels"]]
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Invalid label in snapshot: {e}")

        store = cls(
            labels=labels,
            markup_percent=data.get("markup_percent", DEFAULT_MARKUP_PERCENT),
        )
        store._calibration.restore(CalibrationData.from_dict(data.get("calibration") or {}))
        store._annotations.load(data.get("annotations") or {})
        store._report = store._build_report()

        cached = data.get("cost_items")
        if cached is not None and len(cached) != store._report.item_count:
            logger.debug(
                f"Snapshot cached {len(cached)} cost items, regenerated "
                f"{store._report.item_count}"
            )

        logger.info(
            f"Loaded snapshot: {store._annotations.count} annotations, "
            f"{len(store._labels)} labels"
        )
        return store
