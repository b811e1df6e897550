"""
Document ingestion: document sources and page aggregation.
"""

from __future__ import annotations

from pathlib import Path

from scisent.ingest.base import DocumentSource, InMemoryDocumentSource, JsonDocumentSource
from scisent.ingest.aggregate import FragmentAggregator, aggregate_pages, merge_pages


def open_source(path: str | Path) -> DocumentSource:
    """Open a document source, choosing the reader by file suffix.

    ``.json`` files are read as pdf.js text-content dumps; everything else
    goes through PyMuPDF.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        return JsonDocumentSource(path)
    from scisent.ingest.pdf import PDFDocumentSource
    return PDFDocumentSource(path)


__all__ = [
    "DocumentSource",
    "InMemoryDocumentSource",
    "JsonDocumentSource",
    "FragmentAggregator",
    "aggregate_pages",
    "merge_pages",
    "open_source",
]
