"""
Annotation Data Structure Module

Defines the annotation variants placed on drawing pages. Positions are
normalized to the canvas size so they survive zoom and resize.
"""

import logging
import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from ..constants import AnnotationType, DEFAULT_ANNOTATION_COLOR
from ..errors import ValidationError

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_annotation_id() -> str:
    """Generate a unique annotation id."""
    return f"annotation-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True, kw_only=True)
class BaseAnnotation:
    """
    Fields shared by every annotation kind.

    `x`, `y` are the anchor position in normalized [0, 1] canvas space.
    `label_id` is a reference to a label definition, not ownership.
    """
    kind: ClassVar[str] = ""

    id: str
    page_number: int
    x: float
    y: float
    color: str = DEFAULT_ANNOTATION_COLOR
    label_id: Optional[str] = None
    notes: str = ""
    created_at: datetime = field(default_factory=_utc_now)
    updated_at: datetime = field(default_factory=_utc_now)

    def normalized_points(self) -> List[Point]:
        """All normalized positions carried by the annotation."""
        return [(self.x, self.y)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert annotation to dictionary for JSON serialization."""
        data: Dict[str, Any] = {"type": self.kind}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, tuple):
                value = _points_to_lists(value)
            data[f.name] = value
        return data


@dataclass(frozen=True, kw_only=True)
class MarkerAnnotation(BaseAnnotation):
    """Point marker without geometric extent."""
    kind: ClassVar[str] = AnnotationType.MARKER

    text: str = ""


@dataclass(frozen=True, kw_only=True)
class TextLabelAnnotation(BaseAnnotation):
    """Free-text label placed on the drawing."""
    kind: ClassVar[str] = AnnotationType.LABEL

    text: str = ""


@dataclass(frozen=True, kw_only=True)
class LineAnnotation(BaseAnnotation):
    """Two-point measurement line. `line_length` is in canvas pixels."""
    kind: ClassVar[str] = AnnotationType.LINE

    start: Point
    end: Point
    line_length: float = 0.0

    def normalized_points(self) -> List[Point]:
        return [(self.x, self.y), self.start, self.end]


@dataclass(frozen=True, kw_only=True)
class PolygonAnnotation(BaseAnnotation):
    """Closed area outline. `polygon_area` is in canvas pixels squared."""
    kind: ClassVar[str] = AnnotationType.POLYGON

    vertices: Tuple[Point, ...]
    polygon_area: float = 0.0

    def normalized_points(self) -> List[Point]:
        return [(self.x, self.y), *self.vertices]


Annotation = Union[MarkerAnnotation, TextLabelAnnotation, LineAnnotation, PolygonAnnotation]

ANNOTATION_CLASSES = {
    AnnotationType.MARKER: MarkerAnnotation,
    AnnotationType.LABEL: TextLabelAnnotation,
    AnnotationType.LINE: LineAnnotation,
    AnnotationType.POLYGON: PolygonAnnotation,
}


def _points_to_lists(value):
    if value and isinstance(value[0], tuple):
        return [list(point) for point in value]
    return list(value)


def _to_point(value) -> Point:
    try:
        if len(value) != 2:
            raise ValueError
        return (float(value[0]), float(value[1]))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid point: {value!r}")


def _to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def annotation_field_names(annotation_class) -> List[str]:
    return [f.name for f in fields(annotation_class)]


def annotation_from_dict(data: Dict[str, Any]) -> Annotation:
    """
    Build an annotation from its dictionary form.

    Args:
        data: Dictionary with a "type" key naming the variant

    Returns:
        The annotation

    Raises:
        ValidationError: If the type is unknown or required fields are missing
    """
    kind = data.get("type")
    annotation_class = ANNOTATION_CLASSES.get(kind)
    if annotation_class is None:
        raise ValidationError(f"Unknown annotation type: {kind!r}")

    known = set(annotation_field_names(annotation_class))
    values = {k: v for k, v in data.items() if k in known}

    for key in ("created_at", "updated_at"):
        if values.get(key) is not None:
            values[key] = _to_datetime(values[key])
        else:
            values.pop(key, None)

    if annotation_class is LineAnnotation:
        values["start"] = _to_point(values.get("start"))
        values["end"] = _to_point(values.get("end"))
    elif annotation_class is PolygonAnnotation:
        values["vertices"] = tuple(_to_point(v) for v in values.get("vertices") or [])

    try:
        return annotation_class(**values)
    except TypeError as e:
        raise ValidationError(f"Invalid {kind} annotation: {e}")
