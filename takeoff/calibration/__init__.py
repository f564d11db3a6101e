# Drawing calibration module

from .manager import (
    CalibrationData,
    CalibrationManager,
    UNCALIBRATED,
    validate_calibration_inputs,
    calibration_warnings,
)

from .unit_converter import (
    normalize_length_unit,
    length_to_meters,
    meters_to_length,
    pixels_to_meters,
    area_pixels_to_square_meters,
    format_length,
    format_area,
    calculate_pixel_distance,
    parse_calibration_string,
)

__all__ = [
    # Manager
    "CalibrationData",
    "CalibrationManager",
    "UNCALIBRATED",
    "validate_calibration_inputs",
    "calibration_warnings",
    # Unit Converter
    "normalize_length_unit",
    "length_to_meters",
    "meters_to_length",
    "pixels_to_meters",
    "area_pixels_to_square_meters",
    "format_length",
    "format_area",
    "calculate_pixel_distance",
    "parse_calibration_string",
]
