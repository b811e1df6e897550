"""
Base translator interface and implementations.

This module defines:
- Abstract Translator interface that all backends implement
- DummyTranslator for testing and offline use
- create_translator() factory

Translators are independent of extraction: they take plain sentence
strings and return TranslationResult objects. Backend failures raise
TranslationError and are never retried here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class TranslationResult:
    """Result of a translation operation.

    Attributes:
        text: The translated text
        source_text: Original source text
        detected_source_lang: Language reported by the backend, if any
        metadata: Additional info (backend, target language, ...)
    """
    text: str
    source_text: str
    detected_source_lang: Optional[str] = None
    metadata: dict = field(default_factory=dict)


class Translator(ABC):
    """Abstract base class for all translation backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the translator name (e.g., 'deepl', 'dummy')."""

    @abstractmethod
    def translate(self, text: str) -> TranslationResult:
        """Translate a single text segment."""

    def translate_batch(self, texts: list[str]) -> list[TranslationResult]:
        """Translate multiple segments.

        Default implementation calls translate() in a loop and stops at
        the first failure.
        """
        return [self.translate(text) for text in texts]


class DummyTranslator(Translator):
    """A dummy translator for testing.

    Modes:
    - 'echo': Return the input unchanged
    - 'upper': Return uppercase version
    - 'prefix': Add [TRANSLATED] prefix
    """

    def __init__(self, mode: str = "prefix", target_lang: str = "ZH"):
        self.mode = mode
        self.target_lang = target_lang

    @property
    def name(self) -> str:
        return f"dummy-{self.mode}"

    def translate(self, text: str) -> TranslationResult:
        if self.mode == "echo":
            translated = text
        elif self.mode == "upper":
            translated = text.upper()
        else:  # prefix
            translated = f"[TRANSLATED] {text}"

        return TranslationResult(
            text=translated,
            source_text=text,
            metadata={"translator": self.name, "target_lang": self.target_lang},
        )


def create_translator(backend: str, **kwargs) -> Translator:
    """Factory function to create a translator by name.

    Supported backends and aliases:
        - dummy, echo, test: Test translator, no network
        - deepl: DeepL v2 REST API (needs DEEPL_API_KEY or a stored key)
    """
    backend_lower = backend.lower().replace("_", "-")

    if backend_lower in ("dummy", "echo", "test"):
        mode = kwargs.get("mode", "echo" if backend_lower == "echo" else "prefix")
        return DummyTranslator(mode=mode, target_lang=kwargs.get("target_lang") or "ZH")

    elif backend_lower == "deepl":
        from scisent.translate.deepl import DeepLTranslator
        return DeepLTranslator(
            api_key=kwargs.get("api_key"),
            target_lang=kwargs.get("target_lang"),
            source_lang=kwargs.get("source_lang"),
            api_url=kwargs.get("api_url"),
        )

    raise ValueError(
        f"Unknown translator backend: {backend}. Available backends: dummy, deepl"
    )
