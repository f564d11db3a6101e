"""
PDF Reader Tests

Tests for opening drawings and sizing page canvases.
"""

import sys
import tempfile
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import pymupdf

from takeoff.pdf import (
    open_pdf,
    get_page_count,
    get_page,
    get_page_dimensions,
    get_canvas_size,
    get_canvas_sizes,
    PDFReadError,
    PDFCorruptedError,
)


def create_test_pdf(pages=((612, 792),)):
    """Create a temporary PDF with the given page sizes in points."""
    doc = pymupdf.open()
    for width, height in pages:
        doc.new_page(width=width, height=height)

    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False) as f:
        temp_path = f.name
    doc.save(temp_path)
    doc.close()
    return temp_path


def test_open_pdf():
    """Test opening a valid PDF."""
    temp_path = create_test_pdf()
    try:
        doc = open_pdf(temp_path)
        assert get_page_count(doc) == 1
        doc.close()
    finally:
        Path(temp_path).unlink()

    print("  [PASS] Open valid PDF")


def test_open_missing_pdf():
    """Test that a missing file raises PDFReadError."""
    try:
        open_pdf("/nonexistent/path/plans.pdf")
        assert False, "Should have raised PDFReadError"
    except PDFReadError as e:
        assert "not found" in str(e).lower()

    print("  [PASS] Missing file raises PDFReadError")


def test_open_corrupted_pdf():
    """Test that a file which is not a PDF raises PDFCorruptedError."""
    with tempfile.NamedTemporaryFile(suffix=".pdf", delete=False, mode="w") as f:
        f.write("not a pdf")
        temp_path = f.name
    try:
        open_pdf(temp_path)
        assert False, "Should have raised PDFCorruptedError"
    except PDFCorruptedError:
        pass
    finally:
        Path(temp_path).unlink()

    print("  [PASS] Corrupted file raises PDFCorruptedError")


def test_get_page_is_one_indexed():
    """Test that pages are addressed 1..page_count."""
    temp_path = create_test_pdf(pages=((612, 792), (792, 612)))
    try:
        doc = open_pdf(temp_path)
        assert get_page_dimensions(get_page(doc, 1)) == (612, 792)
        assert get_page_dimensions(get_page(doc, 2)) == (792, 612)

        for page_number in [0, 3]:
            try:
                get_page(doc, page_number)
                assert False, f"Should have raised PDFReadError for page {page_number}"
            except PDFReadError:
                pass
        doc.close()
    finally:
        Path(temp_path).unlink()

    print("  [PASS] Pages are 1-indexed")


def test_get_canvas_size():
    """Test canvas size for a Letter page at 96 and 72 DPI."""
    temp_path = create_test_pdf()
    try:
        doc = open_pdf(temp_path)
        page = get_page(doc, 1)

        width, height = get_canvas_size(page)
        assert abs(width - 816.0) < 1e-6
        assert abs(height - 1056.0) < 1e-6

        assert get_canvas_size(page, dpi=72) == (612, 792)
        doc.close()
    finally:
        Path(temp_path).unlink()

    print("  [PASS] Letter page is 816 x 1056 px at 96 DPI")


def test_get_canvas_sizes():
    """Test canvas sizes for every page."""
    temp_path = create_test_pdf(pages=((612, 792), (1224, 792)))
    try:
        doc = open_pdf(temp_path)
        sizes = get_canvas_sizes(doc, dpi=144)
        doc.close()
    finally:
        Path(temp_path).unlink()

    assert sorted(sizes.keys()) == [1, 2]
    assert sizes[1] == (1224, 1584)
    assert sizes[2] == (2448, 1584)

    print("  [PASS] Canvas sizes for all pages")


def run_all_tests():
    """Run all PDF reader tests."""
    print("\n" + "=" * 60)
    print("PDF Reader Tests")
    print("=" * 60)

    tests = [
        test_open_pdf,
        test_open_missing_pdf,
        test_open_corrupted_pdf,
        test_get_page_is_one_indexed,
        test_get_canvas_size,
        test_get_canvas_sizes,
    ]

    passed = 0
    for test in tests:
        try:
            test()
            passed += 1
        except AssertionError as e:
            print(f"  [FAIL] {test.__name__}: {e}")
        except Exception as e:
            print(f"  [ERROR] {test.__name__}: {e}")

    print("\n" + "=" * 60)
    print(f"PDF Reader Results: {passed}/{len(tests)} tests passed")
    print("=" * 60)

    return passed == len(tests)


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
