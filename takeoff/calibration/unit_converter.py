"""
Unit Converter Module

Functions for converting between canvas pixels and real-world units.
"""

import logging
import math
import re
from typing import Tuple

from ..constants import (
    LENGTH_UNITS_TO_METERS,
    LENGTH_UNIT_ALIASES,
    DEFAULT_LENGTH_UNIT,
)
from ..errors import ValidationError

logger = logging.getLogger(__name__)


def normalize_length_unit(unit: str) -> str:
    """
    Map a unit name or alias to its canonical short form.

    Args:
        unit: Unit string such as "m", "meters", "FT"

    Returns:
        Canonical unit ("mm", "cm", "m", "km", "in", "ft")

    Raises:
        ValidationError: If the unit is not recognized
    """
    key = (unit or DEFAULT_LENGTH_UNIT).strip().lower()
    key = LENGTH_UNIT_ALIASES.get(key, key)
    if key not in LENGTH_UNITS_TO_METERS:
        raise ValidationError(f"Unknown length unit: {unit}")
    return key


def length_to_meters(length: float, unit: str = DEFAULT_LENGTH_UNIT) -> float:
    """
    Convert a length in the given unit to meters.

    Args:
        length: Length value
        unit: Unit of the value

    Returns:
        Length in meters
    """
    return length * LENGTH_UNITS_TO_METERS[normalize_length_unit(unit)]


def meters_to_length(length_m: float, unit: str = DEFAULT_LENGTH_UNIT) -> float:
    """Convert a length in meters to the given unit."""
    return length_m / LENGTH_UNITS_TO_METERS[normalize_length_unit(unit)]


def pixels_to_meters(length_px: float, meters_per_pixel: float) -> float:
    """
    Convert a canvas length in pixels to meters.

    Args:
        length_px: Length in canvas pixels
        meters_per_pixel: Calibrated scale

    Returns:
        Length in meters
    """
    if meters_per_pixel <= 0:
        logger.warning("Scale is not positive, returning 0")
        return 0.0
    return length_px * meters_per_pixel


def area_pixels_to_square_meters(area_px: float, meters_per_pixel: float) -> float:
    """
    Convert a canvas area in pixels squared to square meters.

    Note: Area conversion uses the scale squared.

    Args:
        area_px: Area in pixels squared
        meters_per_pixel: Calibrated scale

    Returns:
        Area in square meters
    """
    if meters_per_pixel <= 0:
        logger.warning("Scale is not positive, returning 0")
        return 0.0
    return area_px * (meters_per_pixel ** 2)


def format_length(length_m: float, unit: str = DEFAULT_LENGTH_UNIT) -> str:
    """
    Format a length in meters for display in the given unit.

    Returns:
        Formatted string like "12.50 m"
    """
    canonical = normalize_length_unit(unit)
    return f"{meters_to_length(length_m, canonical):.2f} {canonical}"


def format_area(area_sqm: float) -> str:
    """
    Format an area in square meters.

    Returns:
        Formatted string like "25.00 m²"
    """
    return f"{area_sqm:.2f} m²"


def calculate_pixel_distance(
    point1: Tuple[float, float],
    point2: Tuple[float, float]
) -> float:
    """Distance between two canvas points in pixels."""
    dx = point2[0] - point1[0]
    dy = point2[1] - point1[1]
    return math.sqrt(dx * dx + dy * dy)


def parse_calibration_string(calib_string: str) -> Tuple[Tuple[float, float], Tuple[float, float], float, str]:
    """
    Parse a calibration string in format "x1,y1:x2,y2=LENGTH UNIT".

    Args:
        calib_string: Calibration string like "100,200:300,200=5m"

    Returns:
        Tuple of (point1, point2, length, unit)

    Raises:
        ValidationError: If string format is invalid
    """
    number = r"(\d+(?:\.\d+)?)"
    pattern = rf"\s*{number},{number}:{number},{number}\s*=\s*{number}\s*([a-zA-Z]+)?\s*$"

    match = re.match(pattern, calib_string)
    if not match:
        raise ValidationError(f"Invalid calibration format: {calib_string}")

    x1, y1, x2, y2, length, unit = match.groups()

    point1 = (float(x1), float(y1))
    point2 = (float(x2), float(y2))
    real_length = float(length)
    length_unit = normalize_length_unit(unit or DEFAULT_LENGTH_UNIT)

    return point1, point2, real_length, length_unit
