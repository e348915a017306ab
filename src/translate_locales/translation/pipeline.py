"""
Multi-locale translation pipeline.

Provides the invocation entry points:
- Source and target locale resolution from the localization configuration
- Concurrent per-locale reconciliation with failure isolation
- A report of which locales were committed and which failed
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from translate_locales.errors import DocumentNotFoundError
from translate_locales.gateway.base import TranslationGateway, TranslationSettings
from translate_locales.store.base import DocumentStore
from translate_locales.translation.reconciler import LocaleOutcome, LocaleReconciler

if TYPE_CHECKING:
    from translate_locales.config import LocalizationConfig

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_LOCALE = "en"


@dataclass
class TranslationRequest:
    """Everything one pipeline invocation needs."""

    document: Mapping[str, Any]
    collection: str
    translatable_paths: Sequence[str]
    target_locales: Sequence[str] | None = None
    settings: TranslationSettings | None = None
    source_locale: str | None = None


@dataclass
class TranslationReport:
    """Outcome of one pipeline invocation."""

    collection: str
    document_id: Any
    source_locale: str
    outcomes: list[LocaleOutcome] = field(default_factory=list)
    elapsed_ms: float = 0.0

    @property
    def committed(self) -> list[str]:
        """Locales whose translation was written."""
        return [o.locale for o in self.outcomes if o.committed]

    @property
    def failed(self) -> list[str]:
        """Locales whose translation failed."""
        return [o.locale for o in self.outcomes if not o.committed]

    def outcome_for(self, locale: str) -> LocaleOutcome | None:
        """Get the outcome of one locale."""
        for outcome in self.outcomes:
            if outcome.locale == locale:
                return outcome
        return None


class TranslationPipeline:
    """
    Translates a document into every configured locale.

    All target locales are processed concurrently; a failure in one locale is
    logged and reported without affecting the others.
    """

    def __init__(
        self,
        store: DocumentStore,
        gateway: TranslationGateway,
        localization: LocalizationConfig,
    ):
        """
        Initialize translation pipeline.

        Args:
            store: Locale-scoped document store.
            gateway: Translation gateway shared by all locales.
            localization: Locale codes and default locale.
        """
        self.store = store
        self.gateway = gateway
        self.localization = localization

    def resolve_source_locale(
        self,
        document: Mapping[str, Any],
        source_locale: str | None = None,
    ) -> str:
        """
        Determine the locale a document is translated from.

        Explicit argument first, then the document's ``sourceLanguage`` field,
        then the configured default locale.
        """
        return (
            source_locale
            or document.get("sourceLanguage")
            or self.localization.default_locale
            or DEFAULT_SOURCE_LOCALE
        )

    def resolve_target_locales(
        self,
        source_locale: str,
        codes: Sequence[str] | None = None,
    ) -> list[str]:
        """Configured locales minus the source, optionally limited to ``codes``."""
        return [
            locale
            for locale in self.localization.locale_codes
            if locale != source_locale and (codes is None or locale in codes)
        ]

    async def translate(self, request: TranslationRequest) -> TranslationReport:
        """
        Translate a document into its target locales.

        Never raises for per-locale failures; inspect the returned report.
        """
        start_time = time.perf_counter()
        source_locale = self.resolve_source_locale(request.document, request.source_locale)
        targets = self.resolve_target_locales(source_locale, request.target_locales)
        doc_id = request.document.get("id")

        report = TranslationReport(
            collection=request.collection,
            document_id=doc_id,
            source_locale=source_locale,
        )
        if not targets:
            logger.info(
                "No target locales for %s/%s",
                request.collection,
                doc_id,
                extra={"stage": "pipeline", "context": {"source_locale": source_locale}},
            )
            return report

        reconciler = LocaleReconciler(
            self.store,
            self.gateway,
            collection=request.collection,
            source_locale=source_locale,
            settings=request.settings,
        )
        paths = list(request.translatable_paths)

        report.outcomes = list(
            await asyncio.gather(
                *(reconciler.reconcile(request.document, paths, locale) for locale in targets)
            )
        )
        report.elapsed_ms = (time.perf_counter() - start_time) * 1000

        logger.info(
            "Translated %s/%s: %d committed, %d failed",
            request.collection,
            doc_id,
            len(report.committed),
            len(report.failed),
            extra={
                "stage": "pipeline",
                "context": {
                    "document_id": doc_id,
                    "committed": report.committed,
                    "failed": report.failed,
                    "elapsed_ms": report.elapsed_ms,
                },
            },
        )
        return report

    async def translate_by_id(
        self,
        collection: str,
        doc_id: str,
        translatable_paths: Sequence[str],
        *,
        target_locales: Sequence[str] | None = None,
        settings: TranslationSettings | None = None,
        source_locale: str | None = None,
    ) -> TranslationReport:
        """
        Fetch a document from the store and translate it.

        Raises:
            DocumentNotFoundError: If the source document does not exist.
            StoreError: If the source document cannot be read.
        """
        locale = source_locale or self.localization.default_locale
        document = await self.store.find_by_id(
            collection, doc_id, locale=locale, fallback_locale=False
        )
        if document is None:
            raise DocumentNotFoundError(
                f"Document {doc_id} not found in {collection} at locale {locale}",
                collection=collection,
                doc_id=str(doc_id),
                locale=locale,
            )

        return await self.translate(
            TranslationRequest(
                document=document,
                collection=collection,
                translatable_paths=translatable_paths,
                target_locales=target_locales,
                settings=settings,
                source_locale=locale,
            )
        )
