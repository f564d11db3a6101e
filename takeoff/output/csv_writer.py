"""
CSV Writer Module

Writes a cost report as a spreadsheet-friendly CSV: one row per cost item,
the subtotal, markup and total rows, then a per-category summary.
"""

import csv
import logging
from pathlib import Path
from typing import Any, List

from ..constants import CURRENCY_SYMBOLS, DEFAULT_CURRENCY
from ..costing.aggregator import CostItem
from ..costing.report import CostReport

logger = logging.getLogger(__name__)

CATEGORY_SUMMARY_HEADER = ["Category", "Items", "Cost", "Percentage"]


def format_currency(amount: float, currency: str = DEFAULT_CURRENCY) -> str:
    """
    Format an amount for display, e.g. "$1,250.00".

    Unknown currency codes are written as a prefix ("NZD 1,250.00").
    """
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{currency.upper()} {amount:,.2f}"
    return f"{symbol}{amount:,.2f}"


def _total_row(label: str, amount: float) -> List[Any]:
    row: List[Any] = [""] * len(CostItem.csv_header())
    row[0] = label
    row[4] = f"{amount:.2f}"
    return row


def build_csv_rows(report: CostReport, include_summary: bool = True) -> List[List[Any]]:
    """
    Build all CSV rows for a report.

    Args:
        report: Cost report
        include_summary: Append totals and the category summary

    Returns:
        List of rows, header first
    """
    rows: List[List[Any]] = [CostItem.csv_header()]
    rows.extend(item.to_csv_row() for item in report.cost_items)

    if not include_summary:
        return rows

    rows.append([])
    rows.append(_total_row("SUBTOTAL", report.grand_total))
    if report.markup_percent > 0:
        rows.append(_total_row(f"Markup ({report.markup_percent:g}%)", report.markup_amount))
    rows.append(_total_row("TOTAL", report.total_with_markup))

    rows.append([])
    rows.append(CATEGORY_SUMMARY_HEADER)
    for category, totals in report.category_totals.items():
        rows.append([
            category,
            totals.count,
            f"{totals.cost:.2f}",
            f"{totals.percentage:.1f}",
        ])

    return rows


def write_cost_report_to_csv(
    report: CostReport,
    output_path: str,
    include_summary: bool = True
) -> str:
    """
    Write a cost report to a CSV file.

    Args:
        report: Cost report
        output_path: Path for output CSV file
        include_summary: Append totals and the category summary

    Returns:
        Path to written file
    """
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerows(build_csv_rows(report, include_summary))

    logger.debug(f"Wrote {report.item_count} cost items to {path}")
    return str(path)


def generate_csv_filename(input_file: str, output_dir: str) -> str:
    """
    Generate output CSV filename from input filename.

    Args:
        input_file: Input takeoff file path
        output_dir: Output directory

    Returns:
        Full path to output CSV
    """
    stem = Path(input_file).stem
    return str(Path(output_dir) / f"{stem}_costs.csv")
