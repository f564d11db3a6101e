# Geometry measurement module

from .annotation import (
    Annotation,
    Point,
    BaseAnnotation,
    MarkerAnnotation,
    TextLabelAnnotation,
    LineAnnotation,
    PolygonAnnotation,
    ANNOTATION_CLASSES,
    annotation_from_dict,
    generate_annotation_id,
)

from .coordinates import (
    BoundingBox,
    is_normalized,
    normalize_point,
    denormalize_point,
    normalize_points,
    denormalize_points,
    get_bounding_box,
)

from .calculator import (
    clamp_non_negative,
    calculate_distance,
    calculate_polyline_length,
    calculate_polygon_area,
    calculate_polygon_perimeter,
    derive_quantity,
    validate_annotation_geometry,
    remeasure_annotation,
    create_marker_annotation,
    create_text_label_annotation,
    create_line_annotation,
    create_polygon_annotation,
)

__all__ = [
    # Annotation
    "Annotation",
    "Point",
    "BaseAnnotation",
    "MarkerAnnotation",
    "TextLabelAnnotation",
    "LineAnnotation",
    "PolygonAnnotation",
    "ANNOTATION_CLASSES",
    "annotation_from_dict",
    "generate_annotation_id",
    # Coordinates
    "BoundingBox",
    "is_normalized",
    "normalize_point",
    "denormalize_point",
    "normalize_points",
    "denormalize_points",
    "get_bounding_box",
    # Calculator
    "clamp_non_negative",
    "calculate_distance",
    "calculate_polyline_length",
    "calculate_polygon_area",
    "calculate_polygon_perimeter",
    "derive_quantity",
    "validate_annotation_geometry",
    "remeasure_annotation",
    "create_marker_annotation",
    "create_text_label_annotation",
    "create_line_annotation",
    "create_polygon_annotation",
]
