"""
PDF Reader Module

Functions for opening a drawing PDF and sizing the canvas its pages are
displayed on.
"""

import logging
from pathlib import Path
from typing import Dict, Tuple

import pymupdf

from ..constants import DEFAULT_CANVAS_DPI, POINTS_PER_INCH

logger = logging.getLogger(__name__)


class PDFReadError(Exception):
    """Raised when a PDF cannot be read."""
    pass


class PDFPasswordProtectedError(PDFReadError):
    """Raised when a PDF is password protected."""
    pass


class PDFCorruptedError(PDFReadError):
    """Raised when a PDF is corrupted."""
    pass


def open_pdf(filepath: str) -> pymupdf.Document:
    """
    Open a PDF file and return a document object.

    Args:
        filepath: Path to the PDF file

    Returns:
        pymupdf.Document object

    Raises:
        PDFReadError: If file not found
        PDFPasswordProtectedError: If PDF is password protected
        PDFCorruptedError: If PDF is corrupted
    """
    path = Path(filepath)

    if not path.exists():
        raise PDFReadError(f"File not found: {filepath}")

    if not path.is_file():
        raise PDFReadError(f"Path is not a file: {filepath}")

    try:
        doc = pymupdf.open(filepath)
    except Exception as e:
        error_msg = str(e).lower()
        if "password" in error_msg or "encrypted" in error_msg:
            raise PDFPasswordProtectedError(
                f"PDF is password protected: {filepath}. "
                "Please provide an unprotected version."
            )
        raise PDFCorruptedError(f"Cannot open PDF (may be corrupted): {filepath}. Error: {e}")

    if doc.needs_pass:
        doc.close()
        raise PDFPasswordProtectedError(
            f"PDF is password protected: {filepath}. "
            "Please provide an unprotected version."
        )

    if doc.page_count == 0:
        doc.close()
        raise PDFCorruptedError(f"PDF has no pages: {filepath}")

    logger.info(f"Opened PDF: {filepath} ({doc.page_count} pages)")
    return doc


def get_page_count(doc: pymupdf.Document) -> int:
    """Number of pages; annotations may sit on pages 1..count."""
    return doc.page_count


def get_page(doc: pymupdf.Document, page_number: int) -> pymupdf.Page:
    """
    Get a page by its 1-indexed page number, as annotations number pages.

    Raises:
        PDFReadError: If page number is invalid
    """
    if page_number < 1 or page_number > doc.page_count:
        raise PDFReadError(
            f"Invalid page number: {page_number}. "
            f"Document has {doc.page_count} pages (1-{doc.page_count})."
        )

    return doc.load_page(page_number - 1)


def get_page_dimensions(page: pymupdf.Page) -> Tuple[float, float]:
    """
    Get the dimensions of a page in PDF points.

    Note: 72 points = 1 inch

    Args:
        page: pymupdf.Page object

    Returns:
        Tuple of (width, height) in PDF points
    """
    rect = page.rect
    return (rect.width, rect.height)


def get_canvas_size(page: pymupdf.Page, dpi: int = DEFAULT_CANVAS_DPI) -> Tuple[float, float]:
    """
    Size in pixels of the canvas a page is rendered onto at a DPI.

    Args:
        page: pymupdf.Page object
        dpi: Render resolution

    Returns:
        Tuple of (width, height) in canvas pixels
    """
    width_pts, height_pts = get_page_dimensions(page)
    zoom = dpi / POINTS_PER_INCH
    return (width_pts * zoom, height_pts * zoom)


def get_canvas_sizes(doc: pymupdf.Document, dpi: int = DEFAULT_CANVAS_DPI) -> Dict[int, Tuple[float, float]]:
    """
    Canvas size of every page.

    Returns:
        Mapping of 1-indexed page number to (width, height) in pixels
    """
    sizes = {}
    for page_number in range(1, doc.page_count + 1):
        sizes[page_number] = get_canvas_size(get_page(doc, page_number), dpi)
        logger.debug(
            f"Page {page_number}: canvas {sizes[page_number][0]:.0f}x"
            f"{sizes[page_number][1]:.0f} px at {dpi} DPI"
        )
    return sizes
