"""
LLM translation gateway.

Uses the OpenAI-compatible chat API (OpenRouter by default) to translate
short field values. Meant as an alternative or fallback to DeepL.
"""

from __future__ import annotations

import asyncio

import openai
from openai import AsyncOpenAI

from translate_locales.errors import TranslationError, TranslationErrorKind
from translate_locales.gateway.base import (
    Formality,
    GatewayStats,
    TranslationGateway,
    TranslationSettings,
)

SYSTEM_PROMPT = """You are a professional translator for a content management system.
Translate the user's text from {source} to {target}.
Return only the translated text, without quotes, notes or explanations.
{formatting}{formality}"""

_FORMALITY_HINTS = {
    Formality.MORE: "Use a formal register.\n",
    Formality.PREFER_MORE: "Prefer a formal register.\n",
    Formality.LESS: "Use an informal register.\n",
    Formality.PREFER_LESS: "Prefer an informal register.\n",
}


class LLMGateway(TranslationGateway):
    """
    Translation gateway backed by a chat-completion model.

    Transient failures (connection errors, timeouts) are retried with
    exponential backoff up to ``max_retries`` attempts; every other failure
    is reported immediately.
    """

    # Model aliases for convenience
    MODELS = {
        "default": "anthropic/claude-sonnet-4.5",
        "fast": "anthropic/claude-3-haiku",
        "deepseek": "deepseek/deepseek-chat",
        "gemini": "google/gemini-pro-1.5",
    }

    def __init__(
        self,
        api_key: str | None,
        model: str = "default",
        base_url: str = "https://openrouter.ai/api/v1",
        timeout: float = 60.0,
        max_retries: int = 1,
        temperature: float = 0.2,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize LLM gateway.

        Args:
            api_key: API key for the OpenAI-compatible endpoint.
            model: Model key (from MODELS) or full model name.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            max_retries: Attempts for transient failures.
            temperature: Sampling temperature.
            client: Pre-built client (mainly for tests).

        Raises:
            TranslationError: If no API key is given.
        """
        if not api_key:
            raise TranslationError(
                "LLM gateway requires an API key (set OPENROUTER_API_KEY)",
                kind=TranslationErrorKind.AUTH,
                provider="llm",
            )

        self._model_name = self.MODELS.get(model, model)
        self._max_retries = max(1, max_retries)
        self._temperature = temperature
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )
        self.stats = GatewayStats()

    @property
    def name(self) -> str:
        """Gateway name."""
        return "llm"

    @property
    def model(self) -> str:
        """Current model name."""
        return self._model_name

    def _messages(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings,
    ) -> list[dict[str, str]]:
        system_prompt = SYSTEM_PROMPT.format(
            source=source_locale,
            target=target_locale,
            formatting=(
                "Preserve punctuation, capitalization and whitespace exactly.\n"
                if settings.preserve_formatting
                else ""
            ),
            formality=_FORMALITY_HINTS.get(settings.formality, ""),
        )
        if settings.context:
            system_prompt += f"Context: {settings.context}\n"
        return [
            {"role": "system", "content": system_prompt.strip()},
            {"role": "user", "content": text},
        ]

    async def translate_text(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ) -> str:
        """Translate text with a chat completion."""
        settings = settings or TranslationSettings()
        messages = self._messages(text, target_locale, source_locale, settings)
        self.stats.requests += 1

        for attempt in range(self._max_retries):
            try:
                response = await self._client.chat.completions.create(
                    model=self._model_name,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=self._temperature,
                )
                break
            except (openai.APIConnectionError, openai.APITimeoutError) as e:
                if attempt < self._max_retries - 1:
                    # Exponential backoff
                    await asyncio.sleep(2**attempt)
                    continue
                self.stats.failures += 1
                raise TranslationError(
                    f"LLM request failed: {e}",
                    kind=TranslationErrorKind.NETWORK,
                    provider=self.name,
                ) from e
            except openai.APIError as e:
                self.stats.failures += 1
                raise TranslationError(
                    f"LLM request rejected: {e}",
                    kind=_error_kind(e),
                    provider=self.name,
                ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            self.stats.failures += 1
            raise TranslationError(
                "LLM returned an empty translation",
                kind=TranslationErrorKind.EMPTY_RESULT,
                provider=self.name,
            )

        self.stats.characters += len(text)
        return content.strip()

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.close()


def _error_kind(error: openai.APIError) -> TranslationErrorKind:
    """Classify an OpenAI client error."""
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return TranslationErrorKind.AUTH
    if isinstance(error, openai.RateLimitError):
        return TranslationErrorKind.QUOTA
    if isinstance(error, openai.InternalServerError):
        return TranslationErrorKind.NETWORK
    return TranslationErrorKind.REJECTED
