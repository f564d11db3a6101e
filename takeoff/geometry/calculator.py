"""
Geometry Calculator Module

Pure functions that turn pixel-space vertices into measurements and
calibrated real-world quantities.
"""

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence

import numpy as np
from shapely.geometry import Polygon

from ..calibration.manager import CalibrationData
from ..calibration.unit_converter import (
    area_pixels_to_square_meters,
    calculate_pixel_distance,
    pixels_to_meters,
)
from ..constants import LabelUnit, MIN_POLYGON_VERTICES, DEFAULT_ANNOTATION_COLOR
from ..labels.catalog import LabelDefinition
from .annotation import (
    Annotation,
    Point,
    MarkerAnnotation,
    TextLabelAnnotation,
    LineAnnotation,
    PolygonAnnotation,
    generate_annotation_id,
)
from .coordinates import normalize_point, normalize_points, denormalize_points

logger = logging.getLogger(__name__)


def clamp_non_negative(value: float) -> float:
    """Return value, or 0 when it is NaN, infinite or negative."""
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0:
        return 0.0
    return value


def calculate_distance(p1: Point, p2: Point) -> float:
    """
    Euclidean distance between two points.

    Args:
        p1: First point (x, y) in pixels
        p2: Second point (x, y) in pixels

    Returns:
        Distance in pixels
    """
    return clamp_non_negative(calculate_pixel_distance(p1, p2))


def calculate_polyline_length(points: Sequence[Point]) -> float:
    """Total length of an open polyline in pixels."""
    if len(points) < 2:
        return 0.0
    return sum(calculate_distance(a, b) for a, b in zip(points, points[1:]))


def calculate_polygon_area(vertices: Sequence[Point]) -> float:
    """
    Polygon area by the shoelace formula.

    The last vertex connects back to the first. Orientation does not
    matter.

    Args:
        vertices: Ordered (x, y) vertices in pixels

    Returns:
        Area in pixels squared, 0 for fewer than 3 vertices
    """
    if len(vertices) < MIN_POLYGON_VERTICES:
        return 0.0

    coords = np.asarray(vertices, dtype=float)
    x = coords[:, 0]
    y = coords[:, 1]
    cross = np.dot(x, np.roll(y, -1)) - np.dot(np.roll(x, -1), y)

    return clamp_non_negative(0.5 * abs(cross))


def calculate_polygon_perimeter(vertices: Sequence[Point]) -> float:
    """
    Closed perimeter of a polygon in pixels.

    Args:
        vertices: Ordered (x, y) vertices in pixels

    Returns:
        Perimeter in pixels, 0 for fewer than 3 vertices
    """
    if len(vertices) < MIN_POLYGON_VERTICES:
        return 0.0
    return clamp_non_negative(Polygon(vertices).length)


def _pixel_measure(annotation: Annotation, unit: str) -> Optional[float]:
    """Pixel length or area matching the unit, or None when the shape has none."""
    match annotation:
        case LineAnnotation():
            return annotation.line_length if unit == LabelUnit.LINEAR_METERS else None
        case PolygonAnnotation():
            return annotation.polygon_area if unit == LabelUnit.SQUARE_METERS else None
        case MarkerAnnotation() | TextLabelAnnotation():
            return None
        case _:
            raise TypeError(f"Unsupported annotation: {type(annotation).__name__}")


def derive_quantity(
    annotation: Annotation,
    label: LabelDefinition,
    calibration: CalibrationData
) -> float:
    """
    Real-world quantity of an annotation in its label's unit.

    - count: 1 per annotation
    - linear_meters: line length * meters_per_pixel
    - square_meters: polygon area * meters_per_pixel squared

    Args:
        annotation: Annotation with derived pixel measurements
        label: Label that gives the unit
        calibration: Current calibration

    Returns:
        Quantity, 0 when uncalibrated or when the geometry does not fit the unit
    """
    if not calibration.is_calibrated:
        return 0.0

    measure = _pixel_measure(annotation, label.unit)

    if label.unit == LabelUnit.COUNT:
        return 1.0

    if measure is None:
        logger.debug(
            f"Annotation {annotation.id} ({annotation.kind}) has no "
            f"{label.unit} measurement"
        )
        return 0.0

    meters_per_pixel = calibration.meters_per_pixel
    if label.unit == LabelUnit.LINEAR_METERS:
        quantity = pixels_to_meters(measure, meters_per_pixel)
    elif label.unit == LabelUnit.SQUARE_METERS:
        quantity = area_pixels_to_square_meters(measure, meters_per_pixel)
    else:
        logger.warning(f"Label {label.id} has unknown unit '{label.unit}'")
        return 0.0

    return clamp_non_negative(quantity)


def validate_annotation_geometry(annotation: Annotation) -> List[str]:
    """
    Check an annotation's shape and return warnings.

    Args:
        annotation: Annotation to check

    Returns:
        List of warning messages
    """
    warnings = []

    match annotation:
        case LineAnnotation():
            if annotation.line_length <= 0:
                warnings.append("Line has zero length")
        case PolygonAnnotation():
            if annotation.polygon_area <= 0:
                warnings.append("Polygon has zero area")
            if len(annotation.vertices) >= MIN_POLYGON_VERTICES:
                if not Polygon(annotation.vertices).is_valid:
                    warnings.append("Polygon outline crosses itself; area may be under-reported")
        case MarkerAnnotation() | TextLabelAnnotation():
            pass
        case _:
            raise TypeError(f"Unsupported annotation: {type(annotation).__name__}")

    return warnings


def remeasure_annotation(
    annotation: Annotation,
    canvas_width: float,
    canvas_height: float
) -> Annotation:
    """
    Re-derive pixel measurements from normalized geometry on a canvas.

    Args:
        annotation: Annotation in normalized coordinates
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels

    Returns:
        Annotation with updated line_length or polygon_area
    """
    match annotation:
        case LineAnnotation():
            start, end = denormalize_points(
                [annotation.start, annotation.end], canvas_width, canvas_height
            )
            return replace(annotation, line_length=calculate_distance(start, end))
        case PolygonAnnotation():
            pixels = denormalize_points(annotation.vertices, canvas_width, canvas_height)
            return replace(annotation, polygon_area=calculate_polygon_area(pixels))
        case MarkerAnnotation() | TextLabelAnnotation():
            return annotation
        case _:
            raise TypeError(f"Unsupported annotation: {type(annotation).__name__}")


def create_marker_annotation(
    page_number: int,
    position_px: Point,
    canvas_width: float,
    canvas_height: float,
    label_id: Optional[str] = None,
    text: str = "",
    color: str = DEFAULT_ANNOTATION_COLOR,
    notes: str = "",
    annotation_id: Optional[str] = None
) -> MarkerAnnotation:
    """
    Create a marker from a canvas pointer position.

    Args:
        page_number: 1-indexed page number
        position_px: Pointer (x, y) in canvas pixels
        canvas_width: Canvas width at capture time
        canvas_height: Canvas height at capture time

    Returns:
        MarkerAnnotation in normalized coordinates
    """
    x, y = normalize_point(position_px[0], position_px[1], canvas_width, canvas_height)
    return MarkerAnnotation(
        id=annotation_id or generate_annotation_id(),
        page_number=page_number,
        x=x,
        y=y,
        color=color,
        label_id=label_id,
        notes=notes,
        text=text,
    )


def create_text_label_annotation(
    page_number: int,
    position_px: Point,
    canvas_width: float,
    canvas_height: float,
    text: str,
    label_id: Optional[str] = None,
    color: str = DEFAULT_ANNOTATION_COLOR,
    notes: str = "",
    annotation_id: Optional[str] = None
) -> TextLabelAnnotation:
    """Create a text label from a canvas pointer position."""
    x, y = normalize_point(position_px[0], position_px[1], canvas_width, canvas_height)
    return TextLabelAnnotation(
        id=annotation_id or generate_annotation_id(),
        page_number=page_number,
        x=x,
        y=y,
        color=color,
        label_id=label_id,
        notes=notes,
        text=text,
    )


def create_line_annotation(
    page_number: int,
    start_px: Point,
    end_px: Point,
    canvas_width: float,
    canvas_height: float,
    label_id: Optional[str] = None,
    color: str = DEFAULT_ANNOTATION_COLOR,
    notes: str = "",
    annotation_id: Optional[str] = None
) -> LineAnnotation:
    """
    Create a measurement line from two canvas points.

    The pixel length is measured on the capture canvas, the same space the
    calibration reference line is measured in.

    Args:
        page_number: 1-indexed page number
        start_px: Start (x, y) in canvas pixels
        end_px: End (x, y) in canvas pixels
        canvas_width: Canvas width at capture time
        canvas_height: Canvas height at capture time

    Returns:
        LineAnnotation with normalized endpoints and line_length in pixels
    """
    start, end = normalize_points([start_px, end_px], canvas_width, canvas_height)
    line_length = calculate_distance(start_px, end_px)

    logger.debug(f"Line on page {page_number}: {line_length:.1f} px")

    return LineAnnotation(
        id=annotation_id or generate_annotation_id(),
        page_number=page_number,
        x=start[0],
        y=start[1],
        start=start,
        end=end,
        line_length=line_length,
        color=color,
        label_id=label_id,
        notes=notes,
    )


def create_polygon_annotation(
    page_number: int,
    vertices_px: Sequence[Point],
    canvas_width: float,
    canvas_height: float,
    label_id: Optional[str] = None,
    color: str = DEFAULT_ANNOTATION_COLOR,
    notes: str = "",
    annotation_id: Optional[str] = None
) -> PolygonAnnotation:
    """
    Create an area outline from canvas vertices.

    Args:
        page_number: 1-indexed page number
        vertices_px: Ordered (x, y) vertices in canvas pixels
        canvas_width: Canvas width at capture time
        canvas_height: Canvas height at capture time

    Returns:
        PolygonAnnotation with normalized vertices and polygon_area in pixels squared
    """
    vertices = tuple(normalize_points(vertices_px, canvas_width, canvas_height))
    polygon_area = calculate_polygon_area(vertices_px)

    logger.debug(
        f"Polygon on page {page_number}: {len(vertices)} vertices, "
        f"{polygon_area:.1f} px²"
    )

    anchor = vertices[0] if vertices else (0.0, 0.0)
    return PolygonAnnotation(
        id=annotation_id or generate_annotation_id(),
        page_number=page_number,
        x=anchor[0],
        y=anchor[1],
        vertices=vertices,
        polygon_area=polygon_area,
        color=color,
        label_id=label_id,
        notes=notes,
    )
