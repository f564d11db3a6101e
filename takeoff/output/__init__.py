# Report output module

from .csv_writer import (
    format_currency,
    build_csv_rows,
    write_cost_report_to_csv,
    generate_csv_filename,
    CATEGORY_SUMMARY_HEADER,
)

from .json_writer import (
    build_output_json,
    write_cost_report_to_json,
    write_snapshot,
    read_snapshot,
    generate_json_filename,
    generate_snapshot_filename,
    PIPELINE_VERSION,
)

__all__ = [
    # CSV
    "format_currency",
    "build_csv_rows",
    "write_cost_report_to_csv",
    "generate_csv_filename",
    "CATEGORY_SUMMARY_HEADER",
    # JSON
    "build_output_json",
    "write_cost_report_to_json",
    "write_snapshot",
    "read_snapshot",
    "generate_json_filename",
    "generate_snapshot_filename",
    "PIPELINE_VERSION",
]
