"""
Annotation Store Module

CRUD over annotations partitioned by page. Normalized coordinates are
enforced at this boundary; every applied mutation notifies the owner once.
"""

import logging
import math
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..constants import MIN_POLYGON_VERTICES
from ..errors import ValidationError
from ..geometry.annotation import (
    Annotation,
    MarkerAnnotation,
    TextLabelAnnotation,
    LineAnnotation,
    PolygonAnnotation,
    annotation_field_names,
    annotation_from_dict,
)
from ..geometry.calculator import remeasure_annotation, validate_annotation_geometry
from ..geometry.coordinates import is_normalized

logger = logging.getLogger(__name__)

# Fields that change the pixel measurement of a shape
GEOMETRY_FIELDS = ("start", "end", "vertices")

# Fields that cannot be changed by update()
READ_ONLY_FIELDS = ("id", "created_at", "updated_at")


def validate_annotation(annotation: Annotation) -> None:
    """
    Check an annotation before it enters the store.

    Raises:
        ValidationError: If the page number is not a positive integer, any
            position is outside [0, 1], or a polygon has fewer than 3
            vertices
    """
    if not isinstance(annotation, (MarkerAnnotation, TextLabelAnnotation, LineAnnotation, PolygonAnnotation)):
        raise ValidationError(f"Unsupported annotation: {type(annotation).__name__}")

    if not annotation.id:
        raise ValidationError("Annotation id is required")

    page_number = annotation.page_number
    if isinstance(page_number, bool) or not isinstance(page_number, int) or page_number < 1:
        raise ValidationError(
            f"Annotation {annotation.id}: page number must be a positive integer, got {page_number!r}"
        )

    if isinstance(annotation, PolygonAnnotation) and len(annotation.vertices) < MIN_POLYGON_VERTICES:
        raise ValidationError(
            f"Annotation {annotation.id}: polygon needs at least {MIN_POLYGON_VERTICES} "
            f"vertices, got {len(annotation.vertices)}"
        )

    for point in annotation.normalized_points():
        if not all(math.isfinite(v) for v in point) or not is_normalized(point):
            raise ValidationError(
                f"Annotation {annotation.id}: coordinates ({point[0]}, {point[1]}) "
                f"are outside the normalized range [0, 1]"
            )


def _coerce_point(value: Any, field_name: str) -> Tuple[float, float]:
    try:
        if len(value) != 2:
            raise ValueError
        return (float(value[0]), float(value[1]))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field_name} point: {value!r}")


def _coerce_geometry(changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert edited points to float tuples.

    Raises:
        ValidationError: If a point is not an (x, y) pair of numbers
    """
    for key in ("start", "end"):
        if key in changes:
            changes[key] = _coerce_point(changes[key], key)
    if "vertices" in changes:
        try:
            vertices = list(changes["vertices"])
        except TypeError:
            raise ValidationError(f"Invalid vertices: {changes['vertices']!r}")
        changes["vertices"] = tuple(_coerce_point(v, "vertex") for v in vertices)
    return changes


class AnnotationStore:
    """
    Annotations keyed by page number, in insertion order within each page.

    Records are immutable; updates replace them. `on_change` is called once
    after each applied mutation. Selection is transient and does not notify.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._pages: Dict[int, List[Annotation]] = {}
        self._selected_id: Optional[str] = None
        self._on_change = on_change

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return sum(len(annotations) for annotations in self._pages.values())

    def __contains__(self, annotation_id: str) -> bool:
        return self._locate(annotation_id) is not None

    @property
    def count(self) -> int:
        return len(self)

    def page_numbers(self) -> List[int]:
        return sorted(page for page, annotations in self._pages.items() if annotations)

    def get(self, annotation_id: str) -> Optional[Annotation]:
        location = self._locate(annotation_id)
        if location is None:
            return None
        page_number, index = location
        return self._pages[page_number][index]

    def get_by_page(self, page_number: int) -> List[Annotation]:
        return list(self._pages.get(page_number, []))

    def all_annotations(self) -> List[Annotation]:
        """Every annotation, by page number then insertion order."""
        result = []
        for page_number in sorted(self._pages):
            result.extend(self._pages[page_number])
        return result

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def selected(self) -> Optional[Annotation]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    def select(self, annotation_id: Optional[str]) -> None:
        if annotation_id is not None and annotation_id not in self:
            logger.debug(f"Annotation {annotation_id} not found, selection ignored")
            return
        self._selected_id = annotation_id

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, annotation: Annotation) -> Annotation:
        """
        Insert an annotation into its page bucket.

        Raises:
            ValidationError: If the annotation is invalid or its id exists
        """
        validate_annotation(annotation)
        if annotation.id in self:
            raise ValidationError(f"Duplicate annotation id: {annotation.id}")

        for warning in validate_annotation_geometry(annotation):
            logger.warning(f"Annotation {annotation.id}: {warning}")

        self._pages.setdefault(annotation.page_number, []).append(annotation)
        logger.debug(f"Added {annotation.kind} {annotation.id} on page {annotation.page_number}")

        self._notify()
        return annotation

    def update(
        self,
        annotation_id: str,
        canvas_size: Optional[Tuple[float, float]] = None,
        **changes
    ) -> Optional[Annotation]:
        """
        Merge changes into an annotation and stamp updated_at.

        An unknown id is a no-op. Changing shape geometry requires the
        current canvas size so the pixel measurement can be re-derived.

        Args:
            annotation_id: Annotation to update
            canvas_size: (width, height) of the canvas the geometry was edited on
            **changes: Field values to merge

        Returns:
            The updated annotation, or None if the id is unknown

        Raises:
            ValidationError: If the merged annotation is invalid, or geometry
                changes without a canvas size; the stored record is unchanged
        """
        location = self._locate(annotation_id)
        if location is None:
            logger.debug(f"Annotation {annotation_id} not found, update ignored")
            return None

        page_number, index = location
        current = self._pages[page_number][index]

        for key in READ_ONLY_FIELDS:
            changes.pop(key, None)

        unknown = set(changes) - set(annotation_field_names(type(current)))
        if unknown:
            raise ValidationError(
                f"Unknown fields for {current.kind} annotation: {', '.join(sorted(unknown))}"
            )

        changes = _coerce_geometry(changes)
        geometry_changed = any(key in changes for key in GEOMETRY_FIELDS)

        if geometry_changed and canvas_size is None:
            raise ValidationError(
                f"Annotation {annotation_id}: canvas size is required to re-measure "
                f"changed {', '.join(k for k in GEOMETRY_FIELDS if k in changes)}"
            )

        if geometry_changed and "x" not in changes and "y" not in changes:
            if "start" in changes:
                changes["x"], changes["y"] = changes["start"]
            elif changes.get("vertices"):
                changes["x"], changes["y"] = changes["vertices"][0]

        updated = replace(current, updated_at=datetime.now(timezone.utc), **changes)
        validate_annotation(updated)

        if geometry_changed:
            updated = remeasure_annotation(updated, canvas_size[0], canvas_size[1])

        if updated.page_number != page_number:
            del self._pages[page_number][index]
            self._pages.setdefault(updated.page_number, []).append(updated)
        else:
            self._pages[page_number][index] = updated

        logger.debug(f"Updated {updated.kind} {annotation_id}: {', '.join(sorted(changes))}")

        self._notify()
        return updated

    def delete(self, annotation_id: str) -> bool:
        """
        Remove an annotation and clear the selection if it was selected.

        Returns:
            True if removed, False if the id was unknown
        """
        location = self._locate(annotation_id)
        if location is None:
            logger.debug(f"Annotation {annotation_id} not found, delete ignored")
            return False

        page_number, index = location
        del self._pages[page_number][index]

        if self._selected_id == annotation_id:
            self._selected_id = None

        logger.debug(f"Deleted annotation {annotation_id} from page {page_number}")

        self._notify()
        return True

    def clear(self, page_number: Optional[int] = None) -> None:
        """Clear one page's annotations, or all pages when page_number is None."""
        if page_number is None:
            self._pages = {}
            logger.debug("Cleared all annotations")
        else:
            self._pages[page_number] = []
            logger.debug(f"Cleared annotations on page {page_number}")

        self._selected_id = None
        self._notify()

    # ------------------------------------------------------------------
    # Snapshot boundary
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            str(page_number): [annotation.to_dict() for annotation in self._pages[page_number]]
            for page_number in self.page_numbers()
        }

    def load(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        """
        Replace contents from a persisted mapping without notifying.

        Raises:
            ValidationError: If any record is invalid; the store is unchanged
        """
        pages: Dict[int, List[Annotation]] = {}
        seen = set()

        for annotations in (data or {}).values():
            for record in annotations:
                annotation = annotation_from_dict(record)
                validate_annotation(annotation)
                if annotation.id in seen:
                    raise ValidationError(f"Duplicate annotation id: {annotation.id}")
                seen.add(annotation.id)
                pages.setdefault(annotation.page_number, []).append(annotation)

        self._pages = pages
        self._selected_id = None
        logger.debug(f"Loaded {len(seen)} annotations on {len(pages)} pages")

    def _locate(self, annotation_id: str) -> Optional[Tuple[int, int]]:
        for page_number, annotations in self._pages.items():
            for index, annotation in enumerate(annotations):
                if annotation.id == annotation_id:
                    return page_number, index
        return None

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
