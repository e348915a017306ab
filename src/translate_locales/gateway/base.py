"""
Base classes for translation gateways.

Defines the abstract interface that every translation provider adapter must
implement, and the settings value object handed to it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum


class Formality(str, Enum):
    """Requested register of the translated text."""

    DEFAULT = "default"
    MORE = "more"
    LESS = "less"
    PREFER_MORE = "prefer_more"
    PREFER_LESS = "prefer_less"


@dataclass(frozen=True)
class TranslationSettings:
    """
    Options forwarded to the translation provider.

    Treated as an immutable value: the pipeline passes the same instance to
    every gateway call of an invocation.
    """

    formality: Formality = Formality.DEFAULT
    preserve_formatting: bool = True
    split_sentences: str = "nonewlines"
    context: str | None = None
    glossary_id: str | None = None


@dataclass
class GatewayStats:
    """Counters kept by a gateway for diagnostics."""

    requests: int = 0
    failures: int = 0
    characters: int = 0


class TranslationGateway(ABC):
    """
    Abstract base class for translation gateways.

    Implementations raise ``TranslationError`` for every failure (auth, quota,
    network, unsupported locale pair, unusable result). They never retry on
    behalf of the pipeline beyond their own transport-level policy.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Gateway name for logging and identification."""
        ...

    @abstractmethod
    async def translate_text(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ) -> str:
        """
        Translate a single text payload.

        Args:
            text: Text to translate.
            target_locale: Locale code to translate into.
            source_locale: Locale code of ``text``.
            settings: Provider options; defaults apply when None.

        Returns:
            The translated text.

        Raises:
            TranslationError: If no usable translation could be produced.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the gateway."""
        return None
