"""
Layout classification: modal features and body text selection.
"""

from scisent.layout.modal import (
    FEATURES,
    FeatureHistogram,
    build_histograms,
    classify,
    classify_histograms,
)
from scisent.layout.body import BodyTextFilter, extract_body_text, select_body_fragments

__all__ = [
    "FEATURES",
    "FeatureHistogram",
    "build_histograms",
    "classify",
    "classify_histograms",
    "BodyTextFilter",
    "extract_body_text",
    "select_body_fragments",
]
