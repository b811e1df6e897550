"""
Tests for page rendering.

Tests cover:
- RenderTracker counting
- Bitmap sizing
- Rendering pages to PNG
- Per-page failure isolation
- Background rendering independent of extraction
"""

import threading

import pytest

from scisent.errors import RenderError
from scisent.ingest import InMemoryDocumentSource
from scisent.models import TextFragment
from scisent.pipeline import ExtractionPipeline
from scisent.render import PageRenderer, RenderConfig, RenderTracker, bitmap_size, page_zoom

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fitz():
    return pytest.importorskip("fitz")


@pytest.fixture
def two_page_pdf(fitz, tmp_path):
    """A small two-page PDF at the default page size."""
    doc = fitz.open()
    for i in range(2):
        page = doc.new_page(width=400, height=600)
        page.insert_text((50, 80), f"Page {i + 1} body text.", fontsize=11, fontname="helv")
    path = tmp_path / "two.pdf"
    doc.save(str(path))
    doc.close()
    return path


# ============================================================================
# RenderTracker Tests
# ============================================================================

class TestRenderTracker:
    def test_starts_idle(self):
        tracker = RenderTracker()
        assert tracker.in_flight == 0
        assert not tracker.is_rendering

    def test_increment_decrement(self):
        tracker = RenderTracker()
        assert tracker.increment() == 1
        assert tracker.increment() == 2
        assert tracker.is_rendering
        assert tracker.decrement() == 1
        assert tracker.decrement() == 0
        assert not tracker.is_rendering

    def test_cannot_go_negative(self):
        with pytest.raises(RuntimeError):
            RenderTracker().decrement()

    def test_concurrent_updates(self):
        tracker = RenderTracker()

        def work():
            for _ in range(500):
                tracker.increment()
                tracker.decrement()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert tracker.in_flight == 0


# ============================================================================
# Sizing Tests
# ============================================================================

class TestSizing:
    def test_zoom_fits_width(self):
        assert page_zoom(400, 800) == pytest.approx(2.0)

    def test_zoom_includes_output_scale(self):
        assert page_zoom(400, 800, output_scale=1.5) == pytest.approx(3.0)

    def test_zoom_rejects_empty_page(self):
        with pytest.raises(ValueError):
            page_zoom(0, 800)

    def test_bitmap_size(self):
        config = RenderConfig(desired_width=800, output_scale=2.0)
        assert bitmap_size(400, 600, config) == (1600, 2400)

    def test_bitmap_size_floors(self):
        config = RenderConfig(desired_width=300)
        assert bitmap_size(400, 601, config) == (300, 450)

    def test_config_validation(self):
        with pytest.raises(ValueError):
            RenderConfig(desired_width=0)
        with pytest.raises(ValueError):
            RenderConfig(output_scale=0)


# ============================================================================
# PageRenderer Tests
# ============================================================================

class TestPageRenderer:
    def test_render_page_returns_png(self, two_page_pdf):
        renderer = PageRenderer(RenderConfig(desired_width=200))
        data = renderer.render_page(two_page_pdf, 0)
        assert data.startswith(PNG_MAGIC)
        assert not renderer.is_rendering

    def test_render_document_writes_files(self, fitz, two_page_pdf, tmp_path):
        out_dir = tmp_path / "pages"
        renderer = PageRenderer(RenderConfig(desired_width=200))
        result = renderer.render_document(two_page_pdf, out_dir)

        assert result.success
        assert result.pages_rendered == [0, 1]
        assert result.outputs[0].name == "page-0001.png"
        pix = fitz.Pixmap(str(result.outputs[1]))
        assert pix.width == 200
        assert pix.height == 300

    def test_failed_page_does_not_abort_others(self, two_page_pdf, tmp_path):
        renderer = PageRenderer(RenderConfig(desired_width=100))
        result = renderer.render_document(two_page_pdf, tmp_path / "out", pages=[0, 7, 1])

        assert result.pages_rendered == [0, 1]
        assert list(result.failures) == [7]
        assert not result.success
        assert renderer.tracker.in_flight == 0

    def test_missing_document(self, fitz, tmp_path):
        with pytest.raises(RenderError):
            PageRenderer().render_document(tmp_path / "missing.pdf", tmp_path / "out")

    def test_background_render_independent_of_extraction(self, two_page_pdf, tmp_path):
        renderer = PageRenderer(RenderConfig(desired_width=100))
        try:
            future = renderer.submit(two_page_pdf, tmp_path / "bg", pages=[0, 9])

            source = InMemoryDocumentSource.from_fragments([[
                TextFragment("Body text here.", 10, (1, 0, 0, 1, 0, 0), "F1"),
            ]])
            sentences = ExtractionPipeline().run(source).sentences

            result = future.result(timeout=30)
        finally:
            renderer.shutdown()

        assert sentences == ["Body text here."]
        assert result.pages_rendered == [0]
        assert 9 in result.failures
