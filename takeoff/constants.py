"""
Drawing Takeoff - Master Constants Reference

Thresholds, unit names and defaults shared by the calibration, geometry
and costing stages.
"""

# =============================================================================
# CALIBRATION CONSTANTS
# =============================================================================

# Reference lines shorter than this (in canvas pixels) are rejected
MIN_PIXEL_DISTANCE = 1.0

# Reference lines shorter than this produce a precision warning
SHORT_REFERENCE_PIXELS = 10.0

# Length unit conversions to meters
LENGTH_UNITS_TO_METERS = {
    "mm": 0.001,
    "cm": 0.01,
    "m": 1.0,
    "km": 1000.0,
    "in": 0.0254,
    "ft": 0.3048,
}

# Unit aliases accepted in calibration strings
LENGTH_UNIT_ALIASES = {
    "millimeter": "mm",
    "millimeters": "mm",
    "centimeter": "cm",
    "centimeters": "cm",
    "meter": "m",
    "meters": "m",
    "kilometer": "km",
    "kilometers": "km",
    "inch": "in",
    "inches": "in",
    "foot": "ft",
    "feet": "ft",
}

DEFAULT_LENGTH_UNIT = "m"

# =============================================================================
# COORDINATE CONSTANTS
# =============================================================================

# Normalized coordinates within this distance of [0, 1] are snapped back in
COORDINATE_TOLERANCE = 0.001

# Minimum vertices for a polygon annotation
MIN_POLYGON_VERTICES = 3

# Hit radius used for marker bounding boxes (normalized)
MARKER_HIT_RADIUS = 0.01

# Default label annotation box (normalized)
DEFAULT_LABEL_BOX_WIDTH = 0.1
DEFAULT_LABEL_BOX_HEIGHT = 0.03

DEFAULT_ANNOTATION_COLOR = "#3B82F6"

# =============================================================================
# COSTING CONSTANTS
# =============================================================================

UNCATEGORIZED = "Uncategorized"

# Markup bounds enforced by the command line (the core accepts any >= 0)
MIN_MARKUP_PERCENT = 0.0
MAX_MARKUP_PERCENT = 50.0
DEFAULT_MARKUP_PERCENT = 0.0

# Tolerance when checking category percentages sum to 100
PERCENTAGE_SUM_TOLERANCE = 1e-6

DEFAULT_CURRENCY = "USD"

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "AUD": "A$",
    "CAD": "C$",
}

# =============================================================================
# DRAWING / CLI CONSTANTS
# =============================================================================

# DPI used to derive canvas sizes from PDF pages
DEFAULT_CANVAS_DPI = 96

MIN_CANVAS_DPI = 36
MAX_CANVAS_DPI = 600

POINTS_PER_INCH = 72

SNAPSHOT_VERSION = 1

# Output files the pipeline can write
OUTPUT_FORMATS = ("csv", "json", "snapshot")

# =============================================================================
# ANNOTATION TYPES
# =============================================================================

class AnnotationType:
    MARKER = "marker"
    LABEL = "label"
    LINE = "line"
    POLYGON = "polygon"

    ALL = (MARKER, LABEL, LINE, POLYGON)

# =============================================================================
# LABEL UNITS
# =============================================================================

class LabelUnit:
    COUNT = "count"
    LINEAR_METERS = "linear_meters"
    SQUARE_METERS = "square_meters"

    ALL = (COUNT, LINEAR_METERS, SQUARE_METERS)


# Display names used on cost items and reports
UNIT_DISPLAY_NAMES = {
    LabelUnit.COUNT: "ea",
    LabelUnit.LINEAR_METERS: "m",
    LabelUnit.SQUARE_METERS: "m²",
}
