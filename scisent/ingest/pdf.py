"""
PDF text fragments via PyMuPDF.

Each text span reported by ``page.get_text("dict")`` becomes one
TextFragment:

- height: span bbox height
- transform: (size*cos, size*sin, -size*sin, size*cos, origin_x, origin_y)
  built from the line writing direction, so a and d carry the horizontal
  and vertical scale of the run
- font_id: the span font name

Whitespace-only spans are skipped (see is_blank_span).

The page style table maps each font name to the metrics of the last span
seen with that font on the page.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from scisent.errors import DocumentParseError
from scisent.ingest.base import DocumentSource
from scisent.models import PageText, TextFragment

logger = logging.getLogger(__name__)

# MuPDF is not thread-safe; every fitz call in the package holds this lock.
MUPDF_LOCK = threading.RLock()


def _import_fitz():
    try:
        import fitz  # PyMuPDF
    except ImportError:
        raise ImportError("PyMuPDF is required. Install with: pip install PyMuPDF")
    return fitz


def open_pdf(path: str | Path, error_cls=DocumentParseError):
    """Open a document with PyMuPDF, mapping failures to ``error_cls``."""
    fitz = _import_fitz()
    path = Path(path)
    if not path.exists():
        raise error_cls(f"PDF not found: {path}")
    try:
        with MUPDF_LOCK:
            return fitz.open(str(path))
    except Exception as e:
        raise error_cls(f"Cannot open {path}: {e}") from e


def span_to_fragment(span: dict, direction=(1.0, 0.0)) -> TextFragment:
    """Convert a PyMuPDF span dict to a TextFragment."""
    size = float(span.get("size", 0.0))
    cos, sin = direction
    x0, y0, x1, y1 = span.get("bbox", (0.0, 0.0, 0.0, 0.0))
    ox, oy = span.get("origin", (x0, y1))
    return TextFragment(
        text=span.get("text", "").strip(),
        height=y1 - y0,
        transform=(size * cos, size * sin, -size * sin, size * cos, ox, oy),
        font_id=span.get("font", ""),
    )


def is_blank_span(span: dict) -> bool:
    """Whitespace-only spans never become fragments.

    pdf.js text content also reports whitespace runs as items, and those
    count toward the layout modes there. PyMuPDF emits them unevenly
    (depending on how the PDF spaces words), so counting them would let
    word-spacing style sway the modes; they are skipped instead.
    """
    return not span.get("text", "").strip()


def span_style(span: dict) -> dict:
    """Style descriptor recorded for a span's font."""
    return {
        "fontFamily": span.get("font", ""),
        "size": span.get("size", 0.0),
        "flags": span.get("flags", 0),
        "ascender": span.get("ascender", 0.0),
        "descender": span.get("descender", 0.0),
    }


class PDFDocumentSource(DocumentSource):
    """Document source reading text spans from a PDF with PyMuPDF.

    Usage:
        with PDFDocumentSource("paper.pdf") as source:
            page = source.get_page(0)
            print(len(page.fragments))
    """

    def __init__(self, pdf_path: str | Path):
        self.pdf_path = Path(pdf_path)
        self._doc = open_pdf(self.pdf_path)
        with MUPDF_LOCK:
            self._page_count = len(self._doc)
        logger.debug("Opened %s (%d pages)", self.pdf_path, self._page_count)

    def page_count(self) -> int:
        return self._page_count

    def get_page(self, index: int) -> PageText:
        self._check_index(index)
        try:
            with MUPDF_LOCK:
                blocks = self._doc[index].get_text("dict")["blocks"]
        except Exception as e:
            raise DocumentParseError(
                f"Failed to read text of page {index + 1} in {self.pdf_path}: {e}",
                page=index,
            ) from e

        fragments = []
        styles = {}
        for block in blocks:
            if block.get("type") != 0:  # Not a text block
                continue
            for line in block.get("lines", []):
                direction = tuple(line.get("dir", (1.0, 0.0)))
                for span in line.get("spans", []):
                    if is_blank_span(span):
                        continue
                    fragments.append(span_to_fragment(span, direction))
                    styles[span.get("font", "")] = span_style(span)

        return PageText(index=index, fragments=tuple(fragments), styles=styles)

    def close(self) -> None:
        if self._doc is not None:
            with MUPDF_LOCK:
                self._doc.close()
            self._doc = None
