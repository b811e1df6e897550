"""
Sentence segmentation and cleanup for extracted body text.

Boundary rule:
    A sentence ends after ".", "?" or "!" followed by whitespace when the
    next non-whitespace character is a Latin letter. The whitespace is
    dropped. Digits, brackets and other characters never start a new
    sentence, so "in 2019. 42 samples" stays together.

By default the letter test ignores case. A period followed by an uppercase
letter does not end a sentence when the word before it is an abbreviation:
a single-letter initial ("J. Smith"), a dotted acronym ("U.S. Army"), or a
listed title or short form ("Dr. Smith", "Fig. Two"). A lowercase letter
always opens a new sentence, so "option b. then" and "e.g. the" split.
With ``lowercase_only=True`` only a lowercase letter opens a new sentence
and abbreviations are not consulted at all, which also keeps ordinary
capitalized sentences together.

Cleanup, applied to every segment in this order:
    1. remove each literal "- " (line-wrap hyphenation such as "exam- ple")
    2. remove citation markers such as "[12]" or "[3,4]"
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

DEFAULT_ABBREVIATIONS: FrozenSet[str] = frozenset({
    "dr", "mr", "mrs", "ms", "prof", "st", "jr", "sr",
    "fig", "figs", "eq", "eqs", "vs", "al", "cf", "no",
})

HYPHEN_BREAK = "- "
CITATION_RE = re.compile(r"\[[0-9]+(?:,[0-9]+)*\]")

_TERMINATOR_RE = re.compile(r"[.?!]\s+")
_DOTTED_RE = re.compile(r"(?:[A-Za-z]\.)+[A-Za-z]")
_LEADING_PUNCT = "([{\"'"


@dataclass
class SegmenterConfig:
    """Options for sentence segmentation."""
    lowercase_only: bool = False
    abbreviations: FrozenSet[str] = field(default_factory=lambda: DEFAULT_ABBREVIATIONS)
    drop_empty: bool = True


def _is_latin_letter(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z")


def clean_sentence(sentence: str) -> str:
    """Repair "- " line-wrap joins and strip bracketed citation markers."""
    return CITATION_RE.sub("", sentence.replace(HYPHEN_BREAK, ""))


class SentenceSegmenter:
    """Split body text into cleaned sentences.

    Usage:
        segmenter = SentenceSegmenter()
        sentences = segmenter.segment("He won. She lost.")
        # ['He won.', 'She lost.']
    """

    def __init__(self, config: Optional[SegmenterConfig] = None):
        self.config = config or SegmenterConfig()
        self._abbreviations = frozenset(a.lower() for a in self.config.abbreviations)

    def _opens_sentence(self, ch: str) -> bool:
        if self.config.lowercase_only:
            return "a" <= ch <= "z"
        return _is_latin_letter(ch)

    def _word_before(self, text: str, end: int) -> str:
        """The whitespace-delimited word ending right before ``end``."""
        start = end
        while start > 0 and not text[start - 1].isspace():
            start -= 1
        return text[start:end].lstrip(_LEADING_PUNCT)

    def _is_abbreviation(self, word: str) -> bool:
        if not word:
            return False
        if len(word) == 1:
            return word.isalpha()
        if _DOTTED_RE.fullmatch(word):
            return True
        return word.lower() in self._abbreviations

    def split(self, text: str) -> list[str]:
        """Split ``text`` at sentence boundaries, without cleanup."""
        if not text:
            return []

        pieces = []
        start = 0
        for match in _TERMINATOR_RE.finditer(text):
            nxt = match.end()
            if nxt >= len(text) or not self._opens_sentence(text[nxt]):
                continue
            stop = match.start()
            # Abbreviations only hold back a capitalized continuation ("Dr. Smith")
            if (
                not self.config.lowercase_only
                and text[nxt].isupper()
                and text[stop] == "."
                and self._is_abbreviation(self._word_before(text, stop))
            ):
                continue
            pieces.append(text[start:stop + 1])
            start = nxt
        pieces.append(text[start:])
        return pieces

    def segment(self, text: str, limit: Optional[int] = None) -> list[str]:
        """Split and clean ``text``.

        Args:
            text: Body text to segment
            limit: Maximum number of sentences to return (None for all)

        Returns:
            Cleaned sentences in text order. Segments that are empty once
            cleaned (a lone "[12]") are left out unless the config sets
            ``drop_empty=False``, which keeps them as "" entries.
        """
        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0 or None")

        sentences = []
        for piece in self.split(text):
            cleaned = clean_sentence(piece)
            if self.config.drop_empty and not cleaned.strip():
                continue
            sentences.append(cleaned)
            if limit is not None and len(sentences) >= limit:
                break
        return sentences[:limit] if limit is not None else sentences


def segment_sentences(
    text: str,
    limit: Optional[int] = None,
    config: Optional[SegmenterConfig] = None,
) -> list[str]:
    """Convenience function: segment ``text`` with a default segmenter."""
    return SentenceSegmenter(config).segment(text, limit=limit)
