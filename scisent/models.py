"""
Core data model for SciSent.

The extraction pipeline operates on positioned text fragments as they come
out of a document parser:

- TextFragment: one run of text with its height, affine transform and font
- PageText: the fragments and style table of a single page
- AggregatedText: all pages flattened into document order
- ModalClassification: the most frequent value of each layout feature

Everything here is immutable once built. Fragments and classifications are
frozen dataclasses so they can be shared freely after the page join.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

# fontId -> opaque style descriptor
StyleTable = Dict[str, Dict[str, Any]]

# Affine matrix [a, b, c, d, e, f]
Transform = Tuple[float, float, float, float, float, float]

IDENTITY_TRANSFORM: Transform = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)


@dataclass(frozen=True)
class TextFragment:
    """A single positioned run of text.

    Attributes:
        text: The fragment's text content
        height: Rendered height of the run
        transform: Affine matrix (a, b, c, d, e, f); a and d are the
            horizontal and vertical scale coefficients
        font_id: Identifier of the font used by the run
    """
    text: str
    height: float
    transform: Transform = IDENTITY_TRANSFORM
    font_id: str = ""

    def __post_init__(self):
        if len(self.transform) != 6:
            raise ValueError(
                f"transform must have 6 coefficients, got {len(self.transform)}"
            )
        # Normalize lists coming from JSON so fragments stay hashable
        object.__setattr__(self, "transform", tuple(self.transform))

    @property
    def scale_x(self) -> float:
        return self.transform[0]

    @property
    def scale_y(self) -> float:
        return self.transform[3]

    @classmethod
    def from_dict(cls, data: dict) -> "TextFragment":
        """Build a fragment from a dict.

        Accepts both the snake_case form produced by to_dict() and the
        item form of pdf.js getTextContent() (str / fontName).
        """
        text = data["text"] if "text" in data else data["str"]
        font_id = data.get("font_id", data.get("fontName", ""))
        return cls(
            text=text,
            height=data.get("height", 0),
            transform=tuple(data.get("transform", IDENTITY_TRANSFORM)),
            font_id=font_id,
        )

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "height": self.height,
            "transform": list(self.transform),
            "font_id": self.font_id,
        }


@dataclass(frozen=True)
class PageText:
    """Fragments and style table of one page."""
    index: int
    fragments: Tuple[TextFragment, ...] = ()
    styles: StyleTable = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "fragments", tuple(self.fragments))


@dataclass(frozen=True)
class AggregatedText:
    """All fragments of a document in page order, plus merged styles."""
    fragments: Tuple[TextFragment, ...] = ()
    styles: StyleTable = field(default_factory=dict)
    page_count: int = 0

    @property
    def is_empty(self) -> bool:
        return len(self.fragments) == 0


@dataclass(frozen=True)
class ModalClassification:
    """The modal value of every tracked layout feature of a document."""
    modal_height: float
    modal_scale_x: float
    modal_scale_y: float
    modal_font_id: str

    def to_dict(self) -> dict:
        return {
            "modal_height": self.modal_height,
            "modal_scale_x": self.modal_scale_x,
            "modal_scale_y": self.modal_scale_y,
            "modal_font_id": self.modal_font_id,
        }
