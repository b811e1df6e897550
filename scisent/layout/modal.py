"""
Modal layout features.

Body text is the most common kind of text in a paper, so the most frequent
value of each layout feature describes it. Four features are tracked:

- height: rendered height of the run
- scale_x: transform coefficient a
- scale_y: transform coefficient d
- font_id: font identifier

Histograms are keyed by the exact observed value. There is no rounding or
binning: 10.0 and 10.0001 are different keys.

Tie-break: when several values share the highest count, the value first
seen while scanning fragments in document order wins. The comparator is
explicit and does not depend on container iteration order.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, Iterable, Sequence

from scisent.models import ModalClassification, TextFragment

FEATURES: Dict[str, Callable[[TextFragment], Hashable]] = {
    "height": lambda f: f.height,
    "scale_x": lambda f: f.scale_x,
    "scale_y": lambda f: f.scale_y,
    "font_id": lambda f: f.font_id,
}


class FeatureHistogram:
    """Exact value -> occurrence count, remembering first-seen positions."""

    def __init__(self, name: str = ""):
        self.name = name
        self.counts: Dict[Any, int] = {}
        self.first_seen: Dict[Any, int] = {}
        self.total = 0

    def add(self, value: Hashable) -> None:
        if value not in self.counts:
            self.counts[value] = 0
            self.first_seen[value] = self.total
        self.counts[value] += 1
        self.total += 1

    def update(self, values: Iterable[Hashable]) -> "FeatureHistogram":
        for value in values:
            self.add(value)
        return self

    def __len__(self) -> int:
        return len(self.counts)

    def __getitem__(self, value: Hashable) -> int:
        return self.counts.get(value, 0)

    def __contains__(self, value: Hashable) -> bool:
        return value in self.counts

    def _rank(self, value: Hashable) -> tuple[int, int]:
        # Higher count first, then earlier first appearance
        return (self.counts[value], -self.first_seen[value])

    def modal(self) -> Any:
        """Return the most frequent value (earliest wins ties)."""
        if not self.counts:
            raise ValueError(f"Cannot take the mode of empty histogram {self.name!r}")
        return max(self.counts, key=self._rank)

    def most_common(self, n: int | None = None) -> list[tuple[Any, int]]:
        """Values ordered by the modal ranking, like Counter.most_common()."""
        ranked = sorted(self.counts, key=self._rank, reverse=True)
        if n is not None:
            ranked = ranked[:n]
        return [(value, self.counts[value]) for value in ranked]

    def __repr__(self) -> str:
        return f"FeatureHistogram({self.name!r}, values={len(self)}, total={self.total})"


def build_histograms(fragments: Sequence[TextFragment]) -> Dict[str, FeatureHistogram]:
    """Build one histogram per tracked feature over all fragments."""
    histograms = {name: FeatureHistogram(name) for name in FEATURES}
    for fragment in fragments:
        for name, getter in FEATURES.items():
            histograms[name].add(getter(fragment))
    return histograms


def classify_histograms(histograms: Dict[str, FeatureHistogram]) -> ModalClassification:
    """Reduce prepared histograms to a ModalClassification."""
    return ModalClassification(
        modal_height=histograms["height"].modal(),
        modal_scale_x=histograms["scale_x"].modal(),
        modal_scale_y=histograms["scale_y"].modal(),
        modal_font_id=histograms["font_id"].modal(),
    )


def classify(fragments: Sequence[TextFragment]) -> ModalClassification:
    """Compute the modal classification of a document.

    Raises:
        ValueError: if ``fragments`` is empty (there is no mode to take)
    """
    if not fragments:
        raise ValueError("Cannot classify a document without fragments")
    return classify_histograms(build_histograms(fragments))
