"""
DeepL translation backend.

Talks to the DeepL v2 REST endpoint directly with requests:

    POST /v2/translate
    Authorization: DeepL-Auth-Key <key>
    Content-Type: application/x-www-form-urlencoded

    text=...&target_lang=ZH

The first entry of the ``translations`` array in the JSON response is
returned. Network errors, non-2xx responses and unexpected payloads all
raise TranslationError; nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from scisent.config import (
    DEEPL_FREE_URL,
    DEEPL_PRO_URL,
    REQUEST_TIMEOUT,
    load_settings,
)
from scisent.errors import TranslationError
from scisent.keys import get_key
from scisent.translate.base import TranslationResult, Translator

logger = logging.getLogger(__name__)


def endpoint_for_key(api_key: str) -> str:
    """Free-plan keys end in ':fx' and must use the free endpoint."""
    return DEEPL_FREE_URL if api_key.endswith(":fx") else DEEPL_PRO_URL


class DeepLTranslator(Translator):
    """DeepL API translator.

    Usage:
        translator = DeepLTranslator(api_key="...:fx", target_lang="ZH")
        result = translator.translate("Hello world")
        print(result.text)
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        target_lang: Optional[str] = None,
        source_lang: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        settings = load_settings()
        self.api_key = api_key or get_key("deepl")
        self.target_lang = (target_lang or settings.target_lang).upper()
        self.source_lang = source_lang.upper() if source_lang else None
        self._api_url = api_url or settings.deepl_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def name(self) -> str:
        return "deepl"

    @property
    def api_url(self) -> str:
        if self._api_url:
            return self._api_url
        return endpoint_for_key(self.api_key or "")

    def _form(self, text: str) -> dict:
        form = {"text": text, "target_lang": self.target_lang}
        if self.source_lang:
            form["source_lang"] = self.source_lang
        return form

    def translate(self, text: str) -> TranslationResult:
        if not self.api_key:
            raise TranslationError(
                "DeepL API key missing. Set DEEPL_API_KEY or run: scisent keys set deepl"
            )

        try:
            response = self.session.post(
                self.api_url,
                headers={"Authorization": f"DeepL-Auth-Key {self.api_key}"},
                data=self._form(text),  # requests form-encodes dict bodies
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise TranslationError(f"DeepL request failed: {e}") from e

        if response.status_code in (401, 403):
            raise TranslationError(
                "DeepL rejected the API key", status_code=response.status_code
            )
        if not response.ok:
            raise TranslationError(
                f"DeepL returned HTTP {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )

        try:
            first = response.json()["translations"][0]
            translated = first["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise TranslationError(f"Malformed DeepL response: {e}") from e

        logger.debug("Translated %d chars to %s", len(text), self.target_lang)
        return TranslationResult(
            text=translated,
            source_text=text,
            detected_source_lang=first.get("detected_source_language"),
            metadata={"translator": self.name, "target_lang": self.target_lang},
        )
