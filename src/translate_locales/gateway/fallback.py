"""
Fallback translation gateway wrapper.

Automatically retries failed translations with a fallback gateway.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from translate_locales.errors import TranslationError
from translate_locales.gateway.base import TranslationGateway, TranslationSettings

logger = logging.getLogger(__name__)


class FallbackGateway(TranslationGateway):
    """
    Translation gateway wrapper with automatic fallback.

    Attempts each translation with the primary gateway first. If the primary
    raises ``TranslationError``, the same request is sent to the fallback.

    Useful when the primary provider's quota runs out mid-run or it does not
    support one of the configured locales.
    """

    def __init__(self, primary: TranslationGateway, fallback: TranslationGateway):
        """
        Initialize fallback gateway wrapper.

        Args:
            primary: Gateway to try first.
            fallback: Gateway to use if the primary fails.
        """
        self._primary = primary
        self._fallback = fallback

        # Track usage statistics
        self._primary_requests = 0
        self._fallback_requests = 0
        self._primary_failures = 0

    @property
    def name(self) -> str:
        """Gateway name."""
        return f"{self._primary.name}+{self._fallback.name}"

    @property
    def primary_gateway(self) -> TranslationGateway:
        """Get the primary gateway."""
        return self._primary

    @property
    def fallback_gateway(self) -> TranslationGateway:
        """Get the fallback gateway."""
        return self._fallback

    def get_stats(self) -> dict[str, Any]:
        """
        Get usage statistics.

        Returns:
            Dictionary with request counts and fallback rate.
        """
        total_requests = self._primary_requests + self._fallback_requests
        return {
            "total_requests": total_requests,
            "primary_requests": self._primary_requests,
            "fallback_requests": self._fallback_requests,
            "primary_failures": self._primary_failures,
            "fallback_rate": (
                self._fallback_requests / total_requests if total_requests > 0 else 0.0
            ),
        }

    async def translate_text(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ) -> str:
        """
        Translate with automatic fallback.

        Raises:
            TranslationError: If both gateways fail (the fallback's error,
                chained to the primary's).
        """
        start_time = time.perf_counter()

        try:
            result = await self._primary.translate_text(
                text, target_locale, source_locale, settings
            )
            self._primary_requests += 1
            return result
        except TranslationError as e:
            primary_error = e
            self._primary_failures += 1
            logger.warning(
                "Primary gateway (%s) failed, switching to fallback (%s)",
                self._primary.name,
                self._fallback.name,
                extra={
                    "stage": "gateway",
                    "context": {
                        "primary": self._primary.name,
                        "fallback": self._fallback.name,
                        "target_locale": target_locale,
                        "error": str(e),
                        "error_kind": e.kind.value,
                    },
                },
            )

        try:
            result = await self._fallback.translate_text(
                text, target_locale, source_locale, settings
            )
        except TranslationError as fallback_error:
            logger.error(
                "Both primary and fallback gateways failed",
                extra={
                    "stage": "gateway",
                    "context": {
                        "primary_error": str(primary_error),
                        "fallback_error": str(fallback_error),
                    },
                },
            )
            # Raise the fallback error (more recent)
            raise fallback_error from primary_error

        self._fallback_requests += 1
        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Fallback gateway %s succeeded after %.0fms",
            self._fallback.name,
            elapsed_ms,
            extra={"stage": "gateway", "context": {"latency_ms": elapsed_ms}},
        )
        return result

    async def aclose(self) -> None:
        """Close both wrapped gateways."""
        await self._primary.aclose()
        await self._fallback.aclose()
