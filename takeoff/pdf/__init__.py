# Drawing PDF reading module

from .reader import (
    open_pdf,
    get_page_count,
    get_page,
    get_page_dimensions,
    get_canvas_size,
    get_canvas_sizes,
    PDFReadError,
    PDFPasswordProtectedError,
    PDFCorruptedError,
)

__all__ = [
    # Reader functions
    "open_pdf",
    "get_page_count",
    "get_page",
    "get_page_dimensions",
    "get_canvas_size",
    "get_canvas_sizes",
    # Reader exceptions
    "PDFReadError",
    "PDFPasswordProtectedError",
    "PDFCorruptedError",
]
