"""
Fragment aggregation: fetch every page, then flatten into document order.

Pages are independent, so retrieval fans out over a thread pool. All
results are joined before anything is flattened, and the final order is
always page order followed by within-page order, whatever order the
workers finish in.

Failure policy: one failing page fails the whole run. There are no
partial results.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import Optional, Sequence

from scisent.config import DEFAULT_MAX_WORKERS
from scisent.errors import DocumentParseError, ExtractionCancelled
from scisent.ingest.base import DocumentSource
from scisent.models import AggregatedText, PageText, StyleTable

logger = logging.getLogger(__name__)

# How often the join barrier re-checks the cancel event (seconds)
_POLL_INTERVAL = 0.05


def merge_pages(pages: Sequence[PageText]) -> AggregatedText:
    """Flatten pages into one fragment sequence and merge their styles.

    Pages are taken in the order given. When two pages define the same
    style key, the later page's descriptor wins.
    """
    fragments = []
    styles: StyleTable = {}
    for page in pages:
        fragments.extend(page.fragments)
        styles.update(page.styles)
    return AggregatedText(
        fragments=tuple(fragments),
        styles=styles,
        page_count=len(pages),
    )


class FragmentAggregator:
    """Collect all pages of a document concurrently.

    Usage:
        aggregator = FragmentAggregator(max_workers=4)
        text = aggregator.aggregate(source)
        print(len(text.fragments))
    """

    def __init__(self, max_workers: int = DEFAULT_MAX_WORKERS):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = max_workers

    def aggregate(
        self,
        source: DocumentSource,
        cancel_event: Optional[threading.Event] = None,
    ) -> AggregatedText:
        """Fetch every page of ``source`` and merge them.

        Args:
            source: Document source to read
            cancel_event: Optional event; once set, retrieval stops and
                ExtractionCancelled is raised

        Raises:
            DocumentParseError: if any page fails
            ExtractionCancelled: if cancel_event is set before the join
        """
        cancel_event = cancel_event or threading.Event()
        try:
            count = source.page_count()
        except DocumentParseError:
            raise
        except Exception as e:
            raise DocumentParseError(f"Cannot count pages: {e}") from e

        if count == 0:
            return AggregatedText()

        workers = min(self.max_workers, count)
        logger.debug("Fetching %d pages with %d workers", count, workers)

        pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="scisent-page")
        try:
            futures = [
                pool.submit(self._fetch, source, i, cancel_event)
                for i in range(count)
            ]
            self._join(futures, cancel_event)
            pages = [f.result() for f in futures]
        except BaseException:
            # Do not wait for pages still in flight; their results are discarded
            pool.shutdown(wait=False, cancel_futures=True)
            raise
        pool.shutdown()

        return merge_pages(pages)

    def _fetch(
        self,
        source: DocumentSource,
        index: int,
        cancel_event: threading.Event,
    ) -> PageText:
        if cancel_event.is_set():
            raise ExtractionCancelled(f"Cancelled before page {index + 1}")
        try:
            page = source.get_page(index)
        except (DocumentParseError, ExtractionCancelled):
            raise
        except Exception as e:
            raise DocumentParseError(f"Page {index + 1} failed: {e}", page=index) from e
        logger.debug("Page %d: %d fragments", index + 1, len(page.fragments))
        return page

    def _join(self, futures: list[Future], cancel_event: threading.Event) -> None:
        """Wait for all futures, raising on cancellation or the first failure."""
        pending = set(futures)
        while pending:
            if cancel_event.is_set():
                raise ExtractionCancelled("Extraction cancelled while joining pages")
            done, pending = wait(pending, timeout=_POLL_INTERVAL, return_when=FIRST_EXCEPTION)
            for f in done:
                exc = f.exception()
                if exc is not None:
                    raise exc


def aggregate_pages(
    source: DocumentSource,
    max_workers: int = DEFAULT_MAX_WORKERS,
    cancel_event: Optional[threading.Event] = None,
) -> AggregatedText:
    """Convenience wrapper around FragmentAggregator.aggregate()."""
    return FragmentAggregator(max_workers=max_workers).aggregate(source, cancel_event)
