"""
DeepL translation gateway.

Talks to the DeepL v2 REST API over an async httpx client. Free-tier keys
(suffix ``:fx``) are routed to the free endpoint automatically.
"""

from __future__ import annotations

import httpx

from translate_locales.errors import TranslationError, TranslationErrorKind
from translate_locales.gateway.base import (
    Formality,
    GatewayStats,
    TranslationGateway,
    TranslationSettings,
)

DEEPL_FREE_URL = "https://api-free.deepl.com"
DEEPL_PRO_URL = "https://api.deepl.com"

# DeepL rejects bare codes for these target languages
TARGET_LANGUAGE_VARIANTS = {
    "en": "EN-US",
    "pt": "PT-PT",
    "zh": "ZH-HANS",
}


def to_deepl_target(locale: str) -> str:
    """Map a locale code to a DeepL target language code."""
    normalized = locale.replace("_", "-").lower()
    if normalized in TARGET_LANGUAGE_VARIANTS:
        return TARGET_LANGUAGE_VARIANTS[normalized]
    return normalized.upper()


def to_deepl_source(locale: str) -> str:
    """Map a locale code to a DeepL source language code (base language only)."""
    return locale.replace("_", "-").split("-", 1)[0].upper()


class DeepLGateway(TranslationGateway):
    """
    DeepL translation gateway.

    Requires a DeepL API key. HTTP failures are mapped onto
    ``TranslationErrorKind`` so callers can tell a bad key from an exhausted
    quota or a network hiccup.
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str | None = None,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize DeepL gateway.

        Args:
            api_key: DeepL authentication key.
            base_url: API base URL; derived from the key type when None.
            timeout: Request timeout in seconds.
            client: Pre-built httpx client (mainly for tests).

        Raises:
            TranslationError: If no API key is given.
        """
        if not api_key:
            raise TranslationError(
                "DeepL gateway requires an API key (set DEEPL_API_KEY)",
                kind=TranslationErrorKind.AUTH,
                provider="deepl",
            )

        self._api_key = api_key
        self._base_url = base_url or (
            DEEPL_FREE_URL if api_key.endswith(":fx") else DEEPL_PRO_URL
        )
        self._client = client or httpx.AsyncClient(base_url=self._base_url, timeout=timeout)
        self.stats = GatewayStats()

    @property
    def name(self) -> str:
        """Gateway name."""
        return "deepl"

    @property
    def base_url(self) -> str:
        """API base URL in use."""
        return self._base_url

    def _build_payload(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings,
    ) -> dict:
        payload: dict = {
            "text": [text],
            "target_lang": to_deepl_target(target_locale),
            "source_lang": to_deepl_source(source_locale),
            "preserve_formatting": settings.preserve_formatting,
            "split_sentences": settings.split_sentences,
        }
        if settings.formality != Formality.DEFAULT:
            payload["formality"] = settings.formality.value
        if settings.context:
            payload["context"] = settings.context
        if settings.glossary_id:
            payload["glossary_id"] = settings.glossary_id
        return payload

    async def translate_text(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ) -> str:
        """Translate text via the DeepL API."""
        settings = settings or TranslationSettings()
        payload = self._build_payload(text, target_locale, source_locale, settings)
        self.stats.requests += 1

        try:
            response = await self._client.post(
                "/v2/translate",
                json=payload,
                headers={"Authorization": f"DeepL-Auth-Key {self._api_key}"},
            )
        except httpx.HTTPError as e:
            self.stats.failures += 1
            raise TranslationError(
                f"DeepL request failed: {e}",
                kind=TranslationErrorKind.NETWORK,
                provider=self.name,
            ) from e

        if response.status_code != 200:
            self.stats.failures += 1
            raise TranslationError(
                f"DeepL error {response.status_code}: {response.text[:200]}",
                kind=_error_kind(response),
                provider=self.name,
            )

        try:
            translations = response.json().get("translations") or []
        except ValueError as e:
            self.stats.failures += 1
            raise TranslationError(
                "DeepL returned a malformed response",
                kind=TranslationErrorKind.EMPTY_RESULT,
                provider=self.name,
            ) from e

        translated = translations[0].get("text") if translations else None
        if not isinstance(translated, str) or not translated:
            self.stats.failures += 1
            raise TranslationError(
                "DeepL returned no translation",
                kind=TranslationErrorKind.EMPTY_RESULT,
                provider=self.name,
            )

        self.stats.characters += len(text)
        return translated

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()


def _error_kind(response: httpx.Response) -> TranslationErrorKind:
    """Classify a non-200 DeepL response."""
    status = response.status_code
    if status in (401, 403):
        return TranslationErrorKind.AUTH
    if status in (429, 456):
        return TranslationErrorKind.QUOTA
    if status == 400 and "lang" in response.text.lower():
        return TranslationErrorKind.UNSUPPORTED_PAIR
    if status >= 500:
        return TranslationErrorKind.NETWORK
    return TranslationErrorKind.REJECTED
