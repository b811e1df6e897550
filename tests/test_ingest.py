"""
Tests for document sources and page aggregation.

Tests cover:
- Style table merging (last write wins)
- Page order preserved under concurrent retrieval
- Whole-run failure when one page fails
- Cancellation before and during the join
- JSON and PyMuPDF document sources
"""

import json
import threading
import time

import pytest

from scisent.errors import DocumentParseError, ExtractionCancelled
from scisent.ingest import (
    FragmentAggregator,
    InMemoryDocumentSource,
    JsonDocumentSource,
    aggregate_pages,
    merge_pages,
    open_source,
)
from scisent.ingest.base import DocumentSource
from scisent.ingest.pdf import is_blank_span, span_to_fragment
from scisent.models import PageText, TextFragment


def frag(text, font="F1"):
    return TextFragment(text=text, height=10, transform=(1, 0, 0, 1, 0, 0), font_id=font)


class DelayedSource(DocumentSource):
    """Pages finish in reverse order: earlier pages sleep longer."""

    def __init__(self, n_pages=4):
        self.n_pages = n_pages

    def page_count(self):
        return self.n_pages

    def get_page(self, index):
        time.sleep(0.02 * (self.n_pages - index))
        return PageText(
            index=index,
            fragments=(frag(f"p{index}a"), frag(f"p{index}b")),
            styles={"F1": {"page": index}},
        )


class FailingSource(DocumentSource):
    def __init__(self, bad_page=1, error=None):
        self.bad_page = bad_page
        self.error = error or RuntimeError("corrupt content stream")

    def page_count(self):
        return 3

    def get_page(self, index):
        if index == self.bad_page:
            raise self.error
        return PageText(index=index, fragments=(frag(f"p{index}"),))


class TestMergePages:
    """Tests for the pure flatten + merge step."""

    def test_style_last_write_wins(self):
        pages = [
            PageText(0, (frag("a"),), {"F1": {"size": 10}}),
            PageText(1, (frag("b"),), {"F1": {"size": 12}}),
        ]
        merged = merge_pages(pages)
        assert merged.styles == {"F1": {"size": 12}}

    def test_styles_union(self):
        pages = [
            PageText(0, (), {"F1": {"size": 10}}),
            PageText(1, (), {"F2": {"size": 8}}),
        ]
        assert set(merge_pages(pages).styles) == {"F1", "F2"}

    def test_document_order(self):
        pages = [
            PageText(0, (frag("a"), frag("b"))),
            PageText(1, (frag("c"),)),
        ]
        merged = merge_pages(pages)
        assert [f.text for f in merged.fragments] == ["a", "b", "c"]
        assert merged.page_count == 2

    def test_empty(self):
        merged = merge_pages([])
        assert merged.is_empty
        assert merged.styles == {}


class TestFragmentAggregator:
    """Tests for concurrent page retrieval."""

    def test_preserves_page_order(self):
        text = FragmentAggregator(max_workers=4).aggregate(DelayedSource(4))
        assert [f.text for f in text.fragments] == [
            "p0a", "p0b", "p1a", "p1b", "p2a", "p2b", "p3a", "p3b",
        ]
        # Last page's style wins regardless of completion order
        assert text.styles["F1"] == {"page": 3}

    def test_pages_fetched_concurrently(self):
        barrier = threading.Barrier(2, timeout=5)

        class BarrierSource(DocumentSource):
            def page_count(self):
                return 2

            def get_page(self, index):
                barrier.wait()
                return PageText(index, (frag(str(index)),))

        text = FragmentAggregator(max_workers=2).aggregate(BarrierSource())
        assert [f.text for f in text.fragments] == ["0", "1"]

    def test_single_worker(self):
        text = aggregate_pages(DelayedSource(3), max_workers=1)
        assert len(text.fragments) == 6

    def test_zero_pages(self):
        text = aggregate_pages(InMemoryDocumentSource([]))
        assert text.is_empty
        assert text.page_count == 0

    def test_failure_is_fatal_and_wrapped(self):
        with pytest.raises(DocumentParseError) as exc_info:
            aggregate_pages(FailingSource(bad_page=1))
        assert exc_info.value.page == 1
        assert "corrupt" in str(exc_info.value)

    def test_parse_error_propagates_unchanged(self):
        original = DocumentParseError("bad xref", page=2)
        with pytest.raises(DocumentParseError) as exc_info:
            aggregate_pages(FailingSource(bad_page=2, error=original))
        assert exc_info.value is original

    def test_cancel_before_start(self):
        event = threading.Event()
        event.set()
        with pytest.raises(ExtractionCancelled):
            aggregate_pages(DelayedSource(2), cancel_event=event)

    def test_cancel_while_joining(self):
        release = threading.Event()
        event = threading.Event()

        class BlockingSource(DocumentSource):
            def page_count(self):
                return 2

            def get_page(self, index):
                if index == 1:
                    release.wait(timeout=2)
                return PageText(index, (frag(str(index)),))

        timer = threading.Timer(0.1, event.set)
        timer.start()
        try:
            with pytest.raises(ExtractionCancelled):
                aggregate_pages(BlockingSource(), max_workers=2, cancel_event=event)
        finally:
            release.set()
            timer.cancel()

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            FragmentAggregator(max_workers=0)


class TestInMemorySource:
    def test_from_fragments(self):
        source = InMemoryDocumentSource.from_fragments(
            [[frag("a")], [frag("b"), frag("c")]],
            styles=[{"F1": {"size": 1}}],
        )
        assert source.page_count() == 2
        assert source.get_page(0).styles == {"F1": {"size": 1}}
        assert source.get_page(1).styles == {}

    def test_out_of_range(self):
        source = InMemoryDocumentSource.from_fragments([[frag("a")]])
        with pytest.raises(DocumentParseError):
            source.get_page(3)


class TestJsonSource:
    """Tests for pdf.js text-content dumps."""

    def _write(self, tmp_path, data):
        path = tmp_path / "content.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_reads_pdfjs_pages(self, tmp_path):
        path = self._write(tmp_path, [
            {
                "items": [{"str": "Hi", "height": 10, "transform": [10, 0, 0, 10, 5, 5], "fontName": "g1"}],
                "styles": {"g1": {"fontFamily": "serif"}},
            },
        ])
        with open_source(path) as source:
            page = source.get_page(0)
        assert page.fragments[0].text == "Hi"
        assert page.fragments[0].scale_x == 10
        assert page.styles == {"g1": {"fontFamily": "serif"}}

    def test_accepts_pages_object(self, tmp_path):
        path = self._write(tmp_path, {"pages": [{"items": []}, {"items": []}]})
        assert JsonDocumentSource(path).page_count() == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(DocumentParseError):
            JsonDocumentSource(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DocumentParseError):
            JsonDocumentSource(path)

    def test_malformed_item(self, tmp_path):
        path = self._write(tmp_path, [{"items": [{"height": 10}]}])
        with pytest.raises(DocumentParseError) as exc_info:
            JsonDocumentSource(path).get_page(0)
        assert exc_info.value.page == 0


class TestPDFSource:
    """Tests for the PyMuPDF source using generated PDFs."""

    @pytest.fixture
    def fitz(self):
        return pytest.importorskip("fitz")

    @pytest.fixture
    def paper_pdf(self, fitz, tmp_path):
        doc = fitz.open()
        page = doc.new_page()
        page.insert_text((72, 72), "A Study of Things", fontsize=18, fontname="helv")
        page.insert_text((72, 120), "Neural networks learn useful features.", fontsize=11, fontname="helv")
        page.insert_text((72, 140), "Training uses large data-", fontsize=11, fontname="helv")
        page.insert_text((72, 160), "sets from many sources [4].", fontsize=11, fontname="helv")
        page.insert_text((72, 760), "1 Footnote in small print.", fontsize=7, fontname="helv")
        doc.new_page()  # empty second page
        path = tmp_path / "paper.pdf"
        doc.save(str(path))
        doc.close()
        return path

    def test_fragments_and_styles(self, paper_pdf):
        with open_source(paper_pdf) as source:
            assert source.page_count() == 2
            page = source.get_page(0)
            empty = source.get_page(1)

        texts = [f.text for f in page.fragments]
        assert "Neural networks learn useful features." in texts
        assert empty.fragments == ()

        body = [f for f in page.fragments if f.text.startswith("Neural")][0]
        title = [f for f in page.fragments if f.text.startswith("A Study")][0]
        assert body.scale_x == pytest.approx(11)
        assert body.scale_y == pytest.approx(11)
        assert title.height > body.height
        assert body.font_id in page.styles

    def test_unreadable_file(self, fitz, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")
        with pytest.raises(DocumentParseError):
            open_source(path)

    def test_missing_file(self, fitz, tmp_path):
        with pytest.raises(DocumentParseError):
            open_source(tmp_path / "nope.pdf")


class TestSpanConversion:
    """Tests for turning PyMuPDF span dicts into fragments."""

    SPAN = {
        "text": " Body text ",
        "size": 10.0,
        "font": "Times-Roman",
        "bbox": (72.0, 100.0, 140.0, 112.0),
        "origin": (72.0, 110.0),
    }

    def test_span_to_fragment(self):
        fragment = span_to_fragment(self.SPAN)
        assert fragment.text == "Body text"
        assert fragment.height == pytest.approx(12.0)
        assert fragment.transform == (10.0, 0.0, -0.0, 10.0, 72.0, 110.0)
        assert fragment.font_id == "Times-Roman"

    @pytest.mark.parametrize("text", ["", " ", "\t  "])
    def test_whitespace_spans_are_blank(self, text):
        assert is_blank_span(dict(self.SPAN, text=text))

    def test_text_span_is_not_blank(self):
        assert not is_blank_span(self.SPAN)
