"""
Calibration Manager Module

Derives the meters-per-pixel scale from one reference measurement and
gates every downstream unit conversion on it.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..constants import (
    MIN_PIXEL_DISTANCE,
    SHORT_REFERENCE_PIXELS,
    DEFAULT_LENGTH_UNIT,
)
from ..errors import ValidationError
from .unit_converter import calculate_pixel_distance, length_to_meters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationData:
    """Pixel to real-world scale. `meters_per_pixel` is only valid when calibrated."""
    reference_length: float = 0.0  # meters
    pixel_distance: float = 0.0
    meters_per_pixel: float = 0.0
    is_calibrated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CalibrationData":
        """
        Rebuild calibration from persisted data.

        The scale is re-derived from the reference measurement rather than
        trusted from the stored value.

        Raises:
            ValidationError: If a calibrated record has invalid inputs
        """
        if not data or not data.get("is_calibrated"):
            return UNCALIBRATED

        reference_length = float(data.get("reference_length", 0.0))
        pixel_distance = float(data.get("pixel_distance", 0.0))
        error = validate_calibration_inputs(reference_length, pixel_distance)
        if error:
            raise ValidationError(f"Invalid stored calibration: {error}")

        return cls(
            reference_length=reference_length,
            pixel_distance=pixel_distance,
            meters_per_pixel=reference_length / pixel_distance,
            is_calibrated=True,
        )


UNCALIBRATED = CalibrationData()


def validate_calibration_inputs(reference_length: float, pixel_distance: float) -> Optional[str]:
    """
    Validate a calibration measurement.

    Args:
        reference_length: Real-world length in meters
        pixel_distance: Measured canvas distance in pixels

    Returns:
        Error message if invalid, None if valid
    """
    try:
        reference_length = float(reference_length)
        pixel_distance = float(pixel_distance)
    except (TypeError, ValueError):
        return "Calibration values must be numbers"

    if not math.isfinite(reference_length):
        return "Reference length must be a valid number"

    if not math.isfinite(pixel_distance):
        return "Pixel distance must be a valid number"

    if reference_length <= 0:
        return "Reference length must be greater than 0"

    if pixel_distance < MIN_PIXEL_DISTANCE:
        return f"Pixel distance must be at least {MIN_PIXEL_DISTANCE:g} pixel"

    return None


def calibration_warnings(data: CalibrationData) -> List[str]:
    """
    Soft warnings about a calibration that is valid but imprecise.

    Args:
        data: Calibration to check

    Returns:
        List of warning messages
    """
    warnings = []

    if not data.is_calibrated:
        warnings.append("Drawing is not calibrated; costs cannot be computed")
        return warnings

    if data.pixel_distance < SHORT_REFERENCE_PIXELS:
        warnings.append(
            f"Reference line is very short ({data.pixel_distance:.0f} pixels); "
            f"draw a longer line for better accuracy"
        )

    return warnings


class CalibrationManager:
    """
    Owns the calibration record.

    `on_change` is called once after every applied mutation.
    """

    def __init__(self, on_change: Optional[Callable[[], None]] = None):
        self._data = UNCALIBRATED
        self._on_change = on_change

    @property
    def data(self) -> CalibrationData:
        return self._data

    @property
    def is_calibrated(self) -> bool:
        return self._data.is_calibrated

    def compute_calibration(self, reference_length: float, pixel_distance: float) -> CalibrationData:
        """
        Calibrate from a reference length and its measured pixel distance.

        Args:
            reference_length: Real-world length in meters (> 0)
            pixel_distance: Canvas distance in pixels (>= 1)

        Returns:
            The new calibration

        Raises:
            ValidationError: If inputs are invalid; state is unchanged
        """
        error = validate_calibration_inputs(reference_length, pixel_distance)
        if error:
            logger.warning(f"Calibration rejected: {error}")
            raise ValidationError(error)

        reference_length = float(reference_length)
        pixel_distance = float(pixel_distance)
        meters_per_pixel = reference_length / pixel_distance

        self._data = CalibrationData(
            reference_length=reference_length,
            pixel_distance=pixel_distance,
            meters_per_pixel=meters_per_pixel,
            is_calibrated=True,
        )
        logger.info(
            f"Calibration: {reference_length:.3f} m / {pixel_distance:.1f} px "
            f"= {meters_per_pixel:.6f} m/px"
        )

        for warning in calibration_warnings(self._data):
            logger.warning(warning)

        self._notify()
        return self._data

    def compute_calibration_from_points(
        self,
        point1: Tuple[float, float],
        point2: Tuple[float, float],
        reference_length: float,
        unit: str = DEFAULT_LENGTH_UNIT
    ) -> CalibrationData:
        """
        Calibrate from two canvas points and the real length between them.

        Args:
            point1: First point (x, y) in canvas pixels
            point2: Second point (x, y) in canvas pixels
            reference_length: Real-world length between the points
            unit: Unit of reference_length

        Returns:
            The new calibration
        """
        pixel_distance = calculate_pixel_distance(point1, point2)
        return self.compute_calibration(length_to_meters(reference_length, unit), pixel_distance)

    def reset_calibration(self) -> CalibrationData:
        """Restore the uncalibrated state."""
        self._data = UNCALIBRATED
        logger.info("Calibration reset")
        self._notify()
        return self._data

    def restore(self, data: CalibrationData) -> None:
        """Replace the record without notifying, used when loading a snapshot."""
        self._data = data

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
