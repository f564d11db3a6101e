"""
JSON Writer Module

Writes the cost report with run metadata, and reads and writes project
snapshots.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from .. import __version__
from ..constants import DEFAULT_CURRENCY
from ..costing.aggregator import summarize_by_label
from ..costing.report import CostReport

logger = logging.getLogger(__name__)

PIPELINE_VERSION = __version__


def build_output_json(
    report: CostReport,
    input_file: str,
    currency: str = DEFAULT_CURRENCY,
    warnings: Optional[List[str]] = None
) -> Dict[str, Any]:
    """
    Build the complete output document.

    Args:
        report: Cost report
        input_file: Takeoff file the report was computed from
        currency: Currency code the prices are in
        warnings: Warnings collected during the run

    Returns:
        Dictionary with metadata, cost items, category totals and a
        per-label summary
    """
    report_data = report.to_dict()

    return {
        "metadata": {
            "input_file": str(input_file),
            "pipeline_version": PIPELINE_VERSION,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "currency": currency,
            "is_calibrated": report.is_calibrated,
            "total_items": report.item_count,
            "grand_total": report_data["grand_total"],
            "markup_percent": report_data["markup_percent"],
            "markup_amount": report_data["markup_amount"],
            "total_with_markup": report_data["total_with_markup"],
            "warnings": list(warnings or []),
        },
        "cost_items": report_data["cost_items"],
        "category_totals": report_data["category_totals"],
        "label_summary": [summary.to_dict() for summary in summarize_by_label(report.cost_items)],
    }


def write_cost_report_to_json(
    report: CostReport,
    output_path: str,
    input_file: str = "",
    currency: str = DEFAULT_CURRENCY,
    warnings: Optional[List[str]] = None
) -> str:
    """
    Write a cost report to a JSON file.

    Returns:
        Path to written file
    """
    data = build_output_json(report, input_file, currency, warnings)

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.debug(f"Wrote cost report JSON to {path}")
    return str(path)


def write_snapshot(snapshot: Dict[str, Any], output_path: str) -> str:
    """Write a project snapshot (`ProjectStore.to_snapshot()`) to disk."""
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot, f, indent=2, ensure_ascii=False)

    logger.debug(f"Wrote snapshot to {path}")
    return str(path)


def read_snapshot(input_path: str) -> Dict[str, Any]:
    with open(input_path, "r", encoding="utf-8") as f:
        return json.load(f)


def generate_json_filename(input_file: str, output_dir: str) -> str:
    stem = Path(input_file).stem
    return str(Path(output_dir) / f"{stem}_costs.json")


def generate_snapshot_filename(input_file: str, output_dir: str) -> str:
    stem = Path(input_file).stem
    return str(Path(output_dir) / f"{stem}_snapshot.json")
