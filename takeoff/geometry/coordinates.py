"""
Coordinate Normalization Module

Converts between canvas pixel coordinates and normalized [0, 1]
coordinates. Annotations are stored normalized so they render correctly
at any zoom level or canvas size.
"""

import logging
from dataclasses import dataclass
from typing import List, Sequence

from shapely.geometry import MultiPoint

from ..constants import (
    COORDINATE_TOLERANCE,
    MARKER_HIT_RADIUS,
    DEFAULT_LABEL_BOX_WIDTH,
    DEFAULT_LABEL_BOX_HEIGHT,
)
from ..errors import ValidationError
from .annotation import (
    Annotation,
    Point,
    MarkerAnnotation,
    TextLabelAnnotation,
    LineAnnotation,
    PolygonAnnotation,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned box in normalized coordinates."""
    x: float
    y: float
    width: float
    height: float

    def contains(self, point: Point) -> bool:
        return (
            self.x <= point[0] <= self.x + self.width
            and self.y <= point[1] <= self.y + self.height
        )


def _check_canvas(canvas_width: float, canvas_height: float) -> None:
    if canvas_width <= 0 or canvas_height <= 0:
        raise ValidationError(
            f"Canvas dimensions must be positive: {canvas_width}x{canvas_height}"
        )


def _snap(value: float) -> float:
    # Floating point overshoot from pointer math is pulled back into range
    if -COORDINATE_TOLERANCE <= value < 0.0:
        return 0.0
    if 1.0 < value <= 1.0 + COORDINATE_TOLERANCE:
        return 1.0
    return value


def is_normalized(point: Point) -> bool:
    return 0.0 <= point[0] <= 1.0 and 0.0 <= point[1] <= 1.0


def normalize_point(
    x_px: float,
    y_px: float,
    canvas_width: float,
    canvas_height: float
) -> Point:
    """
    Convert canvas pixel coordinates to normalized coordinates.

    Values slightly outside [0, 1] are snapped in; values further out are
    returned unchanged so the annotation store can reject them.

    Args:
        x_px: X coordinate in canvas pixels
        y_px: Y coordinate in canvas pixels
        canvas_width: Canvas width in pixels at capture time
        canvas_height: Canvas height in pixels at capture time

    Returns:
        Normalized (x, y)

    Raises:
        ValidationError: If the canvas dimensions are not positive
    """
    _check_canvas(canvas_width, canvas_height)

    point = (_snap(x_px / canvas_width), _snap(y_px / canvas_height))
    if not is_normalized(point):
        logger.warning(
            f"Coordinates out of normalized range: ({point[0]:.3f}, {point[1]:.3f}). "
            f"Canvas: ({x_px}, {y_px}), Dimensions: {canvas_width}x{canvas_height}"
        )
    return point


def denormalize_point(
    x_norm: float,
    y_norm: float,
    canvas_width: float,
    canvas_height: float
) -> Point:
    """Convert normalized coordinates back to canvas pixels."""
    _check_canvas(canvas_width, canvas_height)
    return (x_norm * canvas_width, y_norm * canvas_height)


def normalize_points(
    points: Sequence[Point],
    canvas_width: float,
    canvas_height: float
) -> List[Point]:
    return [normalize_point(x, y, canvas_width, canvas_height) for x, y in points]


def denormalize_points(
    points: Sequence[Point],
    canvas_width: float,
    canvas_height: float
) -> List[Point]:
    return [denormalize_point(x, y, canvas_width, canvas_height) for x, y in points]


def get_bounding_box(annotation: Annotation) -> BoundingBox:
    """
    Smallest normalized box containing the annotation, used for hit testing.

    Args:
        annotation: Annotation in normalized coordinates

    Returns:
        BoundingBox in normalized coordinates
    """
    match annotation:
        case MarkerAnnotation():
            return BoundingBox(
                x=annotation.x - MARKER_HIT_RADIUS,
                y=annotation.y - MARKER_HIT_RADIUS,
                width=MARKER_HIT_RADIUS * 2,
                height=MARKER_HIT_RADIUS * 2,
            )
        case TextLabelAnnotation():
            return BoundingBox(
                x=annotation.x,
                y=annotation.y,
                width=DEFAULT_LABEL_BOX_WIDTH,
                height=DEFAULT_LABEL_BOX_HEIGHT,
            )
        case LineAnnotation():
            points = [annotation.start, annotation.end]
        case PolygonAnnotation():
            points = list(annotation.vertices)
        case _:
            raise TypeError(f"Unsupported annotation: {type(annotation).__name__}")

    if not points:
        return BoundingBox(x=annotation.x, y=annotation.y, width=0.0, height=0.0)

    min_x, min_y, max_x, max_y = MultiPoint(points).bounds
    return BoundingBox(x=min_x, y=min_y, width=max_x - min_x, height=max_y - min_y)
