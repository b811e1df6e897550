"""
SciSent: representative sentences from the body text of PDF documents.

Documents arrive as loose, positioned text fragments. SciSent finds the
fragments that make up the main body text by majority vote over their
layout (height, horizontal and vertical scale, font), joins them, and
splits the result into cleaned sentences.

Pipeline:
1. Aggregate page fragments (concurrently, joined in page order)
2. Classify the modal layout features
3. Filter body-text fragments
4. Segment into sentences

License: MIT
"""

__version__ = "0.1.0"

from scisent.errors import (
    DocumentParseError,
    ExtractionCancelled,
    RenderError,
    ScisentError,
    TranslationError,
)
from scisent.models import ModalClassification, PageText, TextFragment
from scisent.pipeline import ExtractionPipeline, PipelineConfig, extract_sentences

__all__ = [
    "DocumentParseError",
    "ExtractionCancelled",
    "RenderError",
    "ScisentError",
    "TranslationError",
    "ModalClassification",
    "PageText",
    "TextFragment",
    "ExtractionPipeline",
    "PipelineConfig",
    "extract_sentences",
]
