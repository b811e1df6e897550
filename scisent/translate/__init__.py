"""
Translation backends for extracted sentences.
"""

from scisent.translate.base import (
    DummyTranslator,
    TranslationResult,
    Translator,
    create_translator,
)

__all__ = [
    "DummyTranslator",
    "TranslationResult",
    "Translator",
    "create_translator",
]
