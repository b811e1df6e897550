"""
Sentence extraction pipeline for SciSent.

This module orchestrates the complete extraction workflow:
1. Aggregate: fetch every page's fragments concurrently and flatten them
2. Classify: find the modal height, scale and font of the document
3. Filter: keep fragments matching the modal classification
4. Segment: split the body text into cleaned sentences

Design:
- Pipeline is configurable via PipelineConfig
- Each stage is independent and testable on its own
- Progress callbacks for CLI integration
- Deterministic: the same fragments always give the same sentences
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

from scisent.config import DEFAULT_MAX_WORKERS
from scisent.ingest import DocumentSource, FragmentAggregator, open_source
from scisent.layout import BodyTextFilter, FeatureHistogram, build_histograms, classify_histograms
from scisent.models import AggregatedText, ModalClassification
from scisent.segment import SegmenterConfig, SentenceSegmenter

logger = logging.getLogger(__name__)

# Type alias for progress callbacks
ProgressCallback = Callable[[str, float], None]

# Passed for "limit" to mean "use PipelineConfig.limit"; None means no limit
USE_CONFIG_LIMIT = object()


@dataclass
class PipelineConfig:
    """Configuration for the extraction pipeline."""
    max_workers: int = DEFAULT_MAX_WORKERS
    # 0.0 keeps exact numeric matching; > 0 changes which fragments match
    tolerance: float = 0.0
    segmenter: SegmenterConfig = field(default_factory=SegmenterConfig)
    # Default sentence limit; None returns every sentence
    limit: Optional[int] = None

    def to_dict(self) -> dict:
        """Serialize config for logging/debugging."""
        return {
            "max_workers": self.max_workers,
            "tolerance": self.tolerance,
            "lowercase_only": self.segmenter.lowercase_only,
            "limit": self.limit,
        }


@dataclass
class ExtractionResult:
    """Result of running the pipeline on one document."""
    sentences: list[str] = field(default_factory=list)
    classification: Optional[ModalClassification] = None
    histograms: dict[str, FeatureHistogram] = field(default_factory=dict)
    body_text: str = ""
    fragment_count: int = 0
    body_fragment_count: int = 0
    page_count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.fragment_count == 0

    @property
    def stats(self) -> dict:
        return {
            "pages": self.page_count,
            "fragments": self.fragment_count,
            "body_fragments": self.body_fragment_count,
            "sentences": len(self.sentences),
        }


class ExtractionPipeline:
    """Main pipeline turning a document source into sentences.

    Usage:
        pipeline = ExtractionPipeline(PipelineConfig(max_workers=4))
        with open_source("paper.pdf") as source:
            result = pipeline.run(source)
        print(result.sentences[:3])
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        progress_callback: ProgressCallback | None = None,
    ):
        self.config = config or PipelineConfig()
        self.progress_callback = progress_callback or (lambda msg, pct: None)
        self.aggregator = FragmentAggregator(max_workers=self.config.max_workers)
        self.segmenter = SentenceSegmenter(self.config.segmenter)

    def run(
        self,
        source: DocumentSource,
        limit: Any = USE_CONFIG_LIMIT,
        cancel_event: Optional[threading.Event] = None,
    ) -> ExtractionResult:
        """Run all four stages on ``source``.

        Args:
            source: Document to read
            limit: Sentence limit for this run. Defaults to config.limit;
                an explicit None returns every sentence
            cancel_event: Optional event honored while pages are fetched

        Returns:
            ExtractionResult with sentences and intermediate data
        """
        self.progress_callback("Reading pages...", 0.0)
        text = self.aggregator.aggregate(source, cancel_event=cancel_event)
        return self.run_aggregated(text, limit=limit)

    def run_aggregated(
        self,
        text: AggregatedText,
        limit: Any = USE_CONFIG_LIMIT,
    ) -> ExtractionResult:
        """Run classification, filtering and segmentation on joined pages."""
        if limit is USE_CONFIG_LIMIT:
            limit = self.config.limit
        result = ExtractionResult(
            fragment_count=len(text.fragments),
            page_count=text.page_count,
        )

        if text.is_empty:
            logger.info("Document has no text fragments; nothing to extract")
            self.progress_callback("No text found", 1.0)
            return result

        self.progress_callback("Classifying layout...", 0.4)
        result.histograms = build_histograms(text.fragments)
        result.classification = classify_histograms(result.histograms)
        logger.debug("Modal classification: %s", result.classification.to_dict())

        self.progress_callback("Selecting body text...", 0.6)
        body = BodyTextFilter(result.classification, tolerance=self.config.tolerance)
        selected = list(body.select(text.fragments))
        result.body_fragment_count = len(selected)
        result.body_text = body.separator.join(f.text for f in selected)

        self.progress_callback("Segmenting sentences...", 0.8)
        result.sentences = self.segmenter.segment(result.body_text, limit=limit)

        logger.info(
            "Extracted %d sentences from %d/%d body fragments",
            len(result.sentences), result.body_fragment_count, result.fragment_count,
        )
        self.progress_callback("Done", 1.0)
        return result


def extract_sentences(
    path: str | Path,
    limit: Any = USE_CONFIG_LIMIT,
    config: PipelineConfig | None = None,
    cancel_event: Optional[threading.Event] = None,
) -> list[str]:
    """Convenience function to extract sentences from a document file.

    Args:
        path: PDF (or pdf.js JSON dump) to read
        limit: Maximum number of sentences (None for all; default
            config.limit)
        config: Optional pipeline configuration

    Returns:
        Sentences in document order
    """
    pipeline = ExtractionPipeline(config)
    with open_source(path) as source:
        return pipeline.run(source, limit=limit, cancel_event=cancel_event).sentences
