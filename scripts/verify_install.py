#!/usr/bin/env python
"""
Drawing Takeoff - Installation Verification Script

Run this script to verify all dependencies are correctly installed and the
measurement pipeline produces the expected numbers.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def check_package(name: str, import_name: str = None, version_attr: str = "__version__") -> tuple[bool, str]:
    """Check if a package is installed and return version."""
    import_name = import_name or name
    try:
        module = __import__(import_name)
        version = getattr(module, version_attr, "unknown")
        return True, str(version)
    except ImportError as e:
        return False, str(e)


def check_constants() -> tuple[bool, str]:
    """Check if constants module loads correctly."""
    try:
        from takeoff.constants import (
            MIN_PIXEL_DISTANCE,
            DEFAULT_CANVAS_DPI,
            SNAPSHOT_VERSION,
            LabelUnit,
        )
        return True, f"loaded ({MIN_PIXEL_DISTANCE=}, {DEFAULT_CANVAS_DPI=}, {SNAPSHOT_VERSION=})"
    except ImportError as e:
        return False, str(e)


def check_labels() -> tuple[bool, str]:
    """Check the predefined label set is valid."""
    try:
        from takeoff.labels import LabelCatalog, PREDEFINED_LABELS
        catalog = LabelCatalog(PREDEFINED_LABELS)
        return True, f"{len(catalog)} labels in {len(catalog.categories())} categories"
    except Exception as e:
        return False, str(e)


def check_costing() -> tuple[bool, str]:
    """Price a 5 m x 5 m floor at 50 per m² on a 0.05 m/px drawing."""
    try:
        from takeoff.geometry import create_polygon_annotation
        from takeoff.store import ProjectStore

        store = ProjectStore()
        store.update_label("label-floors", cost_per_unit=50.0)
        store.compute_calibration(5.0, 100.0)
        store.add_annotation(create_polygon_annotation(
            1, [(0, 0), (100, 0), (100, 100), (0, 100)], 1000, 1000, label_id="label-floors",
        ))
        total = store.report.grand_total
        if abs(total - 1250.0) > 1e-6:
            return False, f"expected 1250.00, got {total:.2f}"
        return True, f"grand total {total:.2f}"
    except Exception as e:
        return False, str(e)


def main():
    print("=" * 60)
    print("Drawing Takeoff - Installation Verification")
    print("=" * 60)
    print()

    results = []

    # Core packages
    print("Core Dependencies:")
    print("-" * 40)

    packages = [
        ("pymupdf", "pymupdf", "__version__"),
        ("shapely", "shapely", "__version__"),
        ("numpy", "numpy", "__version__"),
    ]

    for name, import_name, version_attr in packages:
        ok, info = check_package(name, import_name, version_attr)
        status = "PASS" if ok else "FAIL"
        print(f"  {name:25} [{status}] {info}")
        results.append((name, ok))

    # pytest (optional)
    ok, info = check_package("pytest")
    status = "PASS" if ok else "WARN"  # Only needed to run the tests
    print(f"  {'pytest':25} [{status}] {info}")

    print()
    print("Configuration:")
    print("-" * 40)

    ok, info = check_constants()
    status = "PASS" if ok else "FAIL"
    print(f"  {'constants.py':25} [{status}] {info}")
    results.append(("constants", ok))

    ok, info = check_labels()
    status = "PASS" if ok else "FAIL"
    print(f"  {'predefined labels':25} [{status}] {info}")
    results.append(("labels", ok))

    print()
    print("Pipeline:")
    print("-" * 40)

    ok, info = check_costing()
    status = "PASS" if ok else "FAIL"
    print(f"  {'cost report':25} [{status}] {info}")
    results.append(("costing", ok))

    print()
    print("=" * 60)

    # Summary
    passed = sum(1 for _, ok in results if ok)
    total = len(results)

    if passed == total:
        print(f"ALL CHECKS PASSED ({passed}/{total})")
        print("Environment is ready for drawing takeoffs.")
        return 0
    else:
        failed = [name for name, ok in results if not ok]
        print(f"SOME CHECKS FAILED ({passed}/{total})")
        print(f"Failed: {', '.join(failed)}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
