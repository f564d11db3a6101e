"""
Pipeline Orchestration Module

Loads a takeoff file (or a saved snapshot), runs calibration, measurement
and costing, and writes the output files.
"""

import json
import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .calibration.manager import calibration_warnings
from .calibration.unit_converter import length_to_meters, parse_calibration_string
from .constants import (
    AnnotationType,
    DEFAULT_CANVAS_DPI,
    DEFAULT_CURRENCY,
    DEFAULT_LENGTH_UNIT,
    DEFAULT_ANNOTATION_COLOR,
    OUTPUT_FORMATS,
)
from .costing.aggregator import validate_cost_calculation
from .costing.report import CostReport
from .errors import ValidationError
from .geometry.annotation import Annotation
from .geometry.calculator import (
    create_marker_annotation,
    create_text_label_annotation,
    create_line_annotation,
    create_polygon_annotation,
)
from .labels.catalog import LabelDefinition
from .output.csv_writer import write_cost_report_to_csv, generate_csv_filename, format_currency
from .output.json_writer import (
    write_cost_report_to_json,
    generate_json_filename,
    write_snapshot,
    generate_snapshot_filename,
)
from .pdf.reader import open_pdf, get_page_count, get_canvas_sizes
from .store.project_store import ProjectStore

logger = logging.getLogger(__name__)

CanvasSize = Tuple[float, float]


@dataclass
class PipelineConfig:
    """Configuration for pipeline execution."""
    input_file: str
    output_dir: str
    drawing: Optional[str] = None
    dpi: int = DEFAULT_CANVAS_DPI
    calibration: Optional[str] = None
    markup_percent: Optional[float] = None
    currency: str = DEFAULT_CURRENCY
    formats: List[str] = field(default_factory=lambda: list(OUTPUT_FORMATS))
    verbose: bool = False


@dataclass
class PipelineResult:
    """Result from full pipeline execution."""
    input_file: str
    output_dir: str
    total_annotations: int
    cost_item_count: int
    grand_total: float
    total_with_markup: float
    is_calibrated: bool
    report: CostReport
    warnings: List[str]
    csv_path: Optional[str]
    json_path: Optional[str]
    snapshot_path: Optional[str]
    processing_time: float


def load_takeoff_file(filepath: str) -> Dict[str, Any]:
    """
    Read a takeoff or snapshot JSON file.

    Raises:
        ValidationError: If the file is missing or is not a JSON object
    """
    path = Path(filepath)
    if not path.is_file():
        raise ValidationError(f"Input file not found: {filepath}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Input file is not valid JSON: {filepath} ({e})")

    if not isinstance(data, dict):
        raise ValidationError(f"Input file must contain a JSON object: {filepath}")

    return data


def is_snapshot(data: Dict[str, Any]) -> bool:
    """Snapshots store normalized annotations keyed by page."""
    return isinstance(data.get("annotations"), dict)


def _parse_canvas(value: Any, context: str) -> CanvasSize:
    try:
        if isinstance(value, dict):
            width, height = float(value["width"]), float(value["height"])
        else:
            width, height = float(value[0]), float(value[1])
    except (KeyError, IndexError, TypeError, ValueError):
        raise ValidationError(f"{context}: invalid canvas size {value!r}")

    if width <= 0 or height <= 0:
        raise ValidationError(f"{context}: canvas size must be positive, got {width}x{height}")
    return (width, height)


def _parse_point(value: Any, context: str) -> Tuple[float, float]:
    try:
        return (float(value[0]), float(value[1]))
    except (IndexError, TypeError, ValueError):
        raise ValidationError(f"{context}: invalid point {value!r}")


def resolve_canvas_size(
    record: Dict[str, Any],
    page_number: int,
    page_canvases: Optional[Dict[int, CanvasSize]] = None,
    default_canvas: Optional[CanvasSize] = None
) -> CanvasSize:
    """
    Canvas the annotation's pixel coordinates were captured on.

    Precedence: the annotation's own canvas, then the drawing page rendered
    at the configured DPI, then the project-level canvas.

    Raises:
        ValidationError: If no canvas size is known for the annotation
    """
    context = f"Annotation on page {page_number}"

    if record.get("canvas") is not None:
        return _parse_canvas(record["canvas"], context)

    if page_canvases:
        if page_number not in page_canvases:
            raise ValidationError(
                f"{context}: drawing has {len(page_canvases)} pages"
            )
        return page_canvases[page_number]

    if default_canvas is not None:
        return default_canvas

    raise ValidationError(f"{context}: no canvas size (set 'canvas' or pass a drawing)")


def build_annotation(record: Dict[str, Any], canvas_size: CanvasSize) -> Annotation:
    """
    Create an annotation from a pixel-space takeoff record.

    Args:
        record: Takeoff record with "type", "page_number" and pixel geometry
        canvas_size: (width, height) of the capture canvas

    Returns:
        Annotation in normalized coordinates

    Raises:
        ValidationError: If the type is unknown or the geometry is malformed
    """
    kind = record.get("type")
    page_number = record.get("page_number", 1)
    context = f"Annotation on page {page_number}"
    width, height = canvas_size

    common = {
        "label_id": record.get("label_id"),
        "color": record.get("color", DEFAULT_ANNOTATION_COLOR),
        "notes": record.get("notes", ""),
        "annotation_id": record.get("id"),
    }

    match kind:
        case AnnotationType.MARKER:
            position = _parse_point(record.get("position"), context)
            return create_marker_annotation(
                page_number, position, width, height, text=record.get("text", ""), **common
            )
        case AnnotationType.LABEL:
            position = _parse_point(record.get("position"), context)
            return create_text_label_annotation(
                page_number, position, width, height, record.get("text", ""), **common
            )
        case AnnotationType.LINE:
            start = _parse_point(record.get("start"), context)
            end = _parse_point(record.get("end"), context)
            return create_line_annotation(page_number, start, end, width, height, **common)
        case AnnotationType.POLYGON:
            vertices = [_parse_point(v, context) for v in record.get("vertices") or []]
            return create_polygon_annotation(page_number, vertices, width, height, **common)
        case _:
            raise ValidationError(f"{context}: unknown annotation type {kind!r}")


def apply_calibration(store: ProjectStore, calibration: Dict[str, Any]) -> None:
    """
    Calibrate from a takeoff "calibration" block.

    Accepts either {"reference_length", "pixel_distance"} or
    {"point1", "point2", "reference_length"}, each with an optional "unit".
    """
    unit = calibration.get("unit", DEFAULT_LENGTH_UNIT)
    try:
        reference_length = float(calibration.get("reference_length"))
    except (TypeError, ValueError):
        raise ValidationError(
            f"Calibration: reference length must be a number, got {calibration.get('reference_length')!r}"
        )

    if "point1" in calibration or "point2" in calibration:
        store.compute_calibration_from_points(
            _parse_point(calibration.get("point1"), "Calibration"),
            _parse_point(calibration.get("point2"), "Calibration"),
            reference_length,
            unit,
        )
    else:
        store.compute_calibration(
            length_to_meters(reference_length, unit),
            calibration.get("pixel_distance"),
        )


def build_store_from_takeoff(
    data: Dict[str, Any],
    page_canvases: Optional[Dict[int, CanvasSize]] = None
) -> ProjectStore:
    """
    Build a project from a takeoff file.

    Args:
        data: Parsed takeoff JSON
        page_canvases: Canvas size per page, from the drawing

    Returns:
        ProjectStore with labels, calibration, markup and annotations applied
    """
    labels = None
    if "labels" in data:
        try:
            labels = [LabelDefinition.from_dict(record) for record in data["labels"]]
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid label definition: {e}")

    store = ProjectStore(labels=labels, markup_percent=data.get("markup_percent", 0.0))

    if labels is not None and data.get("include_predefined_labels"):
        store.add_predefined_labels()

    if data.get("calibration"):
        apply_calibration(store, data["calibration"])

    default_canvas = None
    if data.get("canvas") is not None:
        default_canvas = _parse_canvas(data["canvas"], "Project")

    for record in data.get("annotations") or []:
        page_number = record.get("page_number", 1)
        canvas_size = resolve_canvas_size(record, page_number, page_canvases, default_canvas)
        store.add_annotation(build_annotation(record, canvas_size))

    return store


def check_page_numbers(store: ProjectStore, page_count: int) -> None:
    """
    Raises:
        ValidationError: If an annotation sits on a page the drawing lacks
    """
    for page_number in store.page_numbers():
        if page_number > page_count:
            raise ValidationError(
                f"Annotations on page {page_number}, but the drawing has {page_count} pages"
            )


def collect_warnings(store: ProjectStore) -> List[str]:
    """Calibration, cost and label reference warnings for the current state."""
    warnings = list(calibration_warnings(store.calibration))

    if store.is_calibrated:
        warnings.extend(validate_cost_calculation(store.calibration))

    for annotation in store.all_annotations():
        if not annotation.label_id:
            continue
        label = store.get_label(annotation.label_id)
        if label is None:
            warnings.append(
                f"Annotation {annotation.id} references unknown label {annotation.label_id}"
            )
        elif label.cost_per_unit is None:
            warnings.append(f"Label {label.id} has no cost per unit; annotation {annotation.id} not priced")

    return warnings


def run_pipeline(args) -> PipelineResult:
    """
    Run the full takeoff pipeline.

    Args:
        args: Parsed command-line arguments

    Returns:
        PipelineResult with all outputs
    """
    start_time = time.time()

    config = PipelineConfig(
        input_file=args.input,
        output_dir=args.output,
        drawing=getattr(args, 'drawing', None),
        dpi=getattr(args, 'dpi', DEFAULT_CANVAS_DPI),
        calibration=getattr(args, 'calib', None),
        markup_percent=getattr(args, 'markup', None),
        currency=getattr(args, 'currency', DEFAULT_CURRENCY),
        formats=list(getattr(args, 'formats', None) or OUTPUT_FORMATS),
        verbose=getattr(args, 'verbose', False),
    )

    log_level = logging.DEBUG if config.verbose else logging.INFO
    logging.basicConfig(level=log_level, format='%(message)s')

    logger.info(f"Processing: {config.input_file}")

    data = load_takeoff_file(config.input_file)

    page_canvases = None
    page_count = None
    if config.drawing:
        doc = open_pdf(config.drawing)
        try:
            page_canvases = get_canvas_sizes(doc, config.dpi)
            page_count = get_page_count(doc)
        finally:
            doc.close()

    if is_snapshot(data):
        logger.info("Input is a saved snapshot")
        store = ProjectStore.from_snapshot(data)
    else:
        store = build_store_from_takeoff(data, page_canvases)

    if page_count is not None:
        check_page_numbers(store, page_count)

    if config.calibration:
        point1, point2, length, unit = parse_calibration_string(config.calibration)
        store.compute_calibration_from_points(point1, point2, length, unit)

    if config.markup_percent is not None:
        store.set_markup(config.markup_percent)

    report = store.report
    all_warnings = collect_warnings(store)

    output_dir = Path(config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    csv_path = None
    json_path = None
    snapshot_path = None

    if "csv" in config.formats:
        csv_path = write_cost_report_to_csv(
            report, generate_csv_filename(config.input_file, config.output_dir)
        )
        logger.info(f"CSV written: {csv_path}")

    if "json" in config.formats:
        json_path = write_cost_report_to_json(
            report,
            generate_json_filename(config.input_file, config.output_dir),
            input_file=config.input_file,
            currency=config.currency,
            warnings=all_warnings,
        )
        logger.info(f"JSON written: {json_path}")

    if "snapshot" in config.formats:
        snapshot_path = write_snapshot(
            store.to_snapshot(),
            generate_snapshot_filename(config.input_file, config.output_dir),
        )
        logger.info(f"Snapshot written: {snapshot_path}")

    processing_time = time.time() - start_time

    logger.info(f"\nSummary:")
    logger.info(f"  Annotations: {store.annotation_count}")
    logger.info(f"  Cost items: {report.item_count}")
    logger.info(f"  Subtotal: {format_currency(report.grand_total, config.currency)}")
    if report.markup_percent > 0:
        logger.info(
            f"  Markup ({report.markup_percent:g}%): "
            f"{format_currency(report.markup_amount, config.currency)}"
        )
    logger.info(f"  Total: {format_currency(report.total_with_markup, config.currency)}")
    logger.info(f"  Processing time: {processing_time:.1f}s")

    if all_warnings:
        logger.info(f"\nWarnings ({len(all_warnings)}):")
        for w in all_warnings[:10]:
            logger.info(f"  - {w}")
        if len(all_warnings) > 10:
            logger.info(f"  ... and {len(all_warnings) - 10} more")

    return PipelineResult(
        input_file=config.input_file,
        output_dir=config.output_dir,
        total_annotations=store.annotation_count,
        cost_item_count=report.item_count,
        grand_total=report.grand_total,
        total_with_markup=report.total_with_markup,
        is_calibrated=report.is_calibrated,
        report=report,
        warnings=all_warnings,
        csv_path=csv_path,
        json_path=json_path,
        snapshot_path=snapshot_path,
        processing_time=processing_time,
    )
