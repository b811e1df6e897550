"""
Document sources: the boundary between a document parser and the
extraction pipeline.

A document source answers two questions: how many pages there are, and
what fragments and styles a given page holds. Sources must allow
get_page() to be called from worker threads.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from scisent.errors import DocumentParseError
from scisent.models import PageText, TextFragment


class DocumentSource(ABC):
    """Abstract base for anything that yields positioned text per page."""

    @abstractmethod
    def page_count(self) -> int:
        """Return the number of pages in the document."""

    @abstractmethod
    def get_page(self, index: int) -> PageText:
        """Return fragments and styles of the 0-indexed page."""

    def close(self) -> None:
        """Release any resources held by the source."""

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def _check_index(self, index: int) -> None:
        count = self.page_count()
        if not 0 <= index < count:
            raise DocumentParseError(
                f"Page index {index} out of range (document has {count} pages)",
                page=index,
            )


class InMemoryDocumentSource(DocumentSource):
    """A source backed by already-built pages.

    Usage:
        source = InMemoryDocumentSource.from_fragments([[frag1, frag2], [frag3]])
    """

    def __init__(self, pages: Sequence[PageText]):
        self._pages = list(pages)

    @classmethod
    def from_fragments(
        cls,
        pages: Sequence[Sequence[TextFragment]],
        styles: Sequence[dict] | None = None,
    ) -> "InMemoryDocumentSource":
        styles = list(styles or [])
        return cls([
            PageText(
                index=i,
                fragments=tuple(frags),
                styles=styles[i] if i < len(styles) else {},
            )
            for i, frags in enumerate(pages)
        ])

    def page_count(self) -> int:
        return len(self._pages)

    def get_page(self, index: int) -> PageText:
        self._check_index(index)
        return self._pages[index]


class JsonDocumentSource(DocumentSource):
    """A source reading a JSON dump of pdf.js-style text content.

    Accepted layouts:
        [{"items": [...], "styles": {...}}, ...]
        {"pages": [{"items": [...], "styles": {...}}, ...]}

    Items may use either the pdf.js keys (str, fontName) or the
    snake_case keys of TextFragment.to_dict().
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        if not self.path.exists():
            raise DocumentParseError(f"File not found: {self.path}")
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise DocumentParseError(f"Cannot read {self.path}: {e}") from e

        if isinstance(data, dict):
            data = data.get("pages")
        if not isinstance(data, list):
            raise DocumentParseError(
                f"{self.path}: expected a list of pages or an object with 'pages'"
            )
        self._raw_pages = data

    def page_count(self) -> int:
        return len(self._raw_pages)

    def get_page(self, index: int) -> PageText:
        self._check_index(index)
        raw = self._raw_pages[index]
        if not isinstance(raw, dict):
            raise DocumentParseError(f"Page {index} is not an object", page=index)
        try:
            fragments = tuple(
                TextFragment.from_dict(item) for item in raw.get("items", [])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DocumentParseError(
                f"Malformed text item on page {index}: {e}", page=index
            ) from e
        styles = raw.get("styles") or {}
        if not isinstance(styles, dict):
            raise DocumentParseError(f"Malformed style table on page {index}", page=index)
        return PageText(index=index, fragments=fragments, styles=dict(styles))
