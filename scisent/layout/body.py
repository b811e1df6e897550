"""
Body text selection.

A fragment is body text when it matches the modal font AND at least one of
the modal numeric features:

    (height == modal height OR scale_x == modal scale_x
        OR scale_y == modal scale_y) AND font_id == modal font_id

Numeric comparison is exact by default. Setting ``tolerance`` > 0 compares
with ``abs(x - modal) <= tolerance`` instead, which selects more fragments
than the exact rule on documents with floating-point noise.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from scisent.models import ModalClassification, TextFragment


class BodyTextFilter:
    """Select and join body-text fragments for one classification.

    Usage:
        body = BodyTextFilter(classification)
        text = body.join(fragments)
    """

    def __init__(
        self,
        classification: ModalClassification,
        tolerance: float = 0.0,
        separator: str = " ",
    ):
        if tolerance < 0:
            raise ValueError("tolerance must be >= 0")
        self.classification = classification
        self.tolerance = tolerance
        self.separator = separator

    def _same(self, value: float, modal: float) -> bool:
        if self.tolerance == 0.0:
            return value == modal
        return abs(value - modal) <= self.tolerance

    def is_body(self, fragment: TextFragment) -> bool:
        c = self.classification
        if fragment.font_id != c.modal_font_id:
            return False
        return (
            self._same(fragment.height, c.modal_height)
            or self._same(fragment.scale_x, c.modal_scale_x)
            or self._same(fragment.scale_y, c.modal_scale_y)
        )

    def select(self, fragments: Sequence[TextFragment]) -> Iterator[TextFragment]:
        """Yield matching fragments in their original order."""
        return (f for f in fragments if self.is_body(f))

    def join(self, fragments: Sequence[TextFragment]) -> str:
        """Concatenate the text of matching fragments."""
        return self.separator.join(f.text for f in self.select(fragments))


def select_body_fragments(
    fragments: Sequence[TextFragment],
    classification: ModalClassification,
    tolerance: float = 0.0,
) -> list[TextFragment]:
    return list(BodyTextFilter(classification, tolerance).select(fragments))


def extract_body_text(
    fragments: Sequence[TextFragment],
    classification: ModalClassification,
    tolerance: float = 0.0,
) -> str:
    """Join the text of all body fragments with single spaces."""
    return BodyTextFilter(classification, tolerance).join(fragments)
