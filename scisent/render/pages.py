"""
Page rendering to bitmaps.

Rendering runs apart from sentence extraction: it opens its own document
handle, uses its own worker pool, and a failing page is recorded and
skipped instead of aborting the other pages.

The number of pages currently being rendered lives in a RenderTracker
owned by the renderer. Callers ask the tracker (``is_rendering``) instead
of reading shared module state.
"""

from __future__ import annotations

import logging
import math
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from scisent.config import DEFAULT_MAX_WORKERS, DEFAULT_RENDER_WIDTH
from scisent.errors import RenderError
from scisent.ingest.pdf import MUPDF_LOCK, open_pdf

logger = logging.getLogger(__name__)


class RenderTracker:
    """Thread-safe count of in-flight page renders."""

    def __init__(self):
        self._lock = threading.Lock()
        self._in_flight = 0

    def increment(self) -> int:
        with self._lock:
            self._in_flight += 1
            return self._in_flight

    def decrement(self) -> int:
        with self._lock:
            if self._in_flight == 0:
                raise RuntimeError("RenderTracker decremented below zero")
            self._in_flight -= 1
            return self._in_flight

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    @property
    def is_rendering(self) -> bool:
        return self.in_flight > 0


@dataclass
class RenderConfig:
    """Configuration for page rendering."""
    desired_width: int = DEFAULT_RENDER_WIDTH  # CSS pixels
    output_scale: float = 1.0  # device pixel ratio
    max_workers: int = DEFAULT_MAX_WORKERS
    image_format: str = "png"

    def __post_init__(self):
        if self.desired_width <= 0:
            raise ValueError("desired_width must be > 0")
        if self.output_scale <= 0:
            raise ValueError("output_scale must be > 0")


@dataclass
class RenderResult:
    """Outcome of rendering a document: written files and per-page errors."""
    outputs: Dict[int, Path] = field(default_factory=dict)
    failures: Dict[int, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failures

    @property
    def pages_rendered(self) -> List[int]:
        return sorted(self.outputs)


def page_zoom(page_width: float, desired_width: int, output_scale: float = 1.0) -> float:
    """Zoom factor mapping a page of ``page_width`` points to the target bitmap."""
    if page_width <= 0:
        raise ValueError("page width must be > 0")
    return desired_width / page_width * output_scale


def bitmap_size(page_width: float, page_height: float, config: RenderConfig) -> tuple[int, int]:
    """Pixel size of the rendered bitmap for a page."""
    scale = config.desired_width / page_width
    return (
        math.floor(page_width * scale * config.output_scale),
        math.floor(page_height * scale * config.output_scale),
    )


class PageRenderer:
    """Render document pages to PNG bitmaps.

    Usage:
        renderer = PageRenderer(RenderConfig(desired_width=1000))
        result = renderer.render_document("paper.pdf", "out/")
        print(result.pages_rendered, result.failures)
    """

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        tracker: Optional[RenderTracker] = None,
    ):
        self.config = config or RenderConfig()
        self.tracker = tracker or RenderTracker()
        self._background: Optional[ThreadPoolExecutor] = None

    @property
    def is_rendering(self) -> bool:
        return self.tracker.is_rendering

    def _render(self, doc, index: int) -> bytes:
        import fitz

        with MUPDF_LOCK:
            page = doc[index]
            zoom = page_zoom(page.rect.width, self.config.desired_width, self.config.output_scale)
            pix = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom))
            return pix.tobytes(self.config.image_format)

    def render_page(self, doc_path: str | Path, index: int) -> bytes:
        """Render one 0-indexed page and return the encoded image bytes."""
        doc = open_pdf(doc_path, error_cls=RenderError)
        self.tracker.increment()
        try:
            return self._render(doc, index)
        finally:
            self.tracker.decrement()
            with MUPDF_LOCK:
                doc.close()

    def _render_to_file(self, doc, index: int, output_dir: Path) -> Path:
        self.tracker.increment()
        try:
            data = self._render(doc, index)
            out = output_dir / f"page-{index + 1:04d}.{self.config.image_format}"
            out.write_bytes(data)
            return out
        finally:
            self.tracker.decrement()

    def render_document(
        self,
        doc_path: str | Path,
        output_dir: str | Path,
        pages: Optional[List[int]] = None,
    ) -> RenderResult:
        """Render pages of a document into ``output_dir``.

        A failing page is logged and recorded in ``RenderResult.failures``;
        the remaining pages are still rendered.

        Raises:
            RenderError: if the document itself cannot be opened
        """
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        doc = open_pdf(doc_path, error_cls=RenderError)
        result = RenderResult()
        try:
            with MUPDF_LOCK:
                total = len(doc)
            indices = list(range(total)) if pages is None else list(pages)
            if not indices:
                return result

            workers = min(self.config.max_workers, len(indices))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scisent-render") as pool:
                futures = {
                    index: pool.submit(self._render_to_file, doc, index, output_dir)
                    for index in indices
                }
                for index, future in futures.items():
                    try:
                        result.outputs[index] = future.result()
                    except Exception as e:
                        logger.warning("Rendering page %d failed: %s", index + 1, e)
                        result.failures[index] = str(e)
        finally:
            with MUPDF_LOCK:
                doc.close()
        return result

    def submit(
        self,
        doc_path: str | Path,
        output_dir: str | Path,
        pages: Optional[List[int]] = None,
    ) -> Future:
        """Start render_document() in the background and return its Future."""
        if self._background is None:
            self._background = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scisent-bg")
        return self._background.submit(self.render_document, doc_path, output_dir, pages)

    def shutdown(self, wait: bool = True) -> None:
        if self._background is not None:
            self._background.shutdown(wait=wait)
            self._background = None
