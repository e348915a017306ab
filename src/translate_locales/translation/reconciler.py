"""
Locale reconciler.

Commits the translation of one document into one target locale. Each target
locale goes through::

    START -> CHECK_EXISTING -> MERGE | SYNTHESIZE -> COMMITTED
                                                  \\-> FAILED

MERGE updates an existing locale instance with the translated fields only.
SYNTHESIZE builds a complete new instance from the source-locale document and
creates it as a draft. Every write carries ``skip_auto_processing`` so the
store's own hooks (slug generation, auto-translation) stay quiet.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from translate_locales.errors import DocumentNotFoundError
from translate_locales.gateway.base import TranslationGateway, TranslationSettings
from translate_locales.store.base import (
    IDENTITY_FIELDS,
    SKIP_AUTO_PROCESSING,
    STATUS_FIELD,
    DocumentStatus,
    DocumentStore,
)
from translate_locales.translation.fields import FieldTranslator
from translate_locales.translation.paths import get_path, has_path, set_path, top_level_key
from translate_locales.translation.richtext import clone_tree

logger = logging.getLogger(__name__)


class LocaleState(str, Enum):
    """States of a per-locale reconciliation unit."""

    START = "start"
    CHECK_EXISTING = "check_existing"
    MERGE = "merge"
    SYNTHESIZE = "synthesize"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass
class LocaleOutcome:
    """Result of reconciling one target locale."""

    locale: str
    state: LocaleState
    action: str | None = None  # "update" or "create"
    error: str | None = None

    @property
    def committed(self) -> bool:
        return self.state == LocaleState.COMMITTED


def build_synthesized_document(
    source: Mapping[str, Any],
    translated: Mapping[str, Any],
    paths: Sequence[str],
) -> dict[str, Any]:
    """
    Build a complete locale instance from the source document.

    All source fields except identity, timestamps and status are cloned; each
    translated path is overlaid on top. Paths the translator produced no value
    for keep the source value. For dotted paths the top-level parent is
    guaranteed to exist.
    """
    document = {
        key: clone_tree(value)
        for key, value in source.items()
        if key not in IDENTITY_FIELDS and key != STATUS_FIELD
    }

    for path in paths:
        if has_path(translated, path):
            set_path(document, path, get_path(translated, path))

    for path in paths:
        if "." not in path:
            continue
        parent = top_level_key(path)
        if not document.get(parent):
            document[parent] = clone_tree(get_path(source, parent)) or {}

    return document


class LocaleReconciler:
    """
    Reconciles one source document against one target locale.

    The reconciler never raises: failures are logged and reported through the
    returned ``LocaleOutcome``.
    """

    def __init__(
        self,
        store: DocumentStore,
        gateway: TranslationGateway,
        *,
        collection: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ):
        self.store = store
        self.gateway = gateway
        self.collection = collection
        self.source_locale = source_locale
        self.settings = settings or TranslationSettings()

    async def reconcile(
        self,
        document: Mapping[str, Any],
        paths: Sequence[str],
        target_locale: str,
    ) -> LocaleOutcome:
        """Translate ``document`` into ``target_locale`` and commit it."""
        doc_id = document.get("id")
        state = LocaleState.START
        log_context = {
            "collection": self.collection,
            "document_id": doc_id,
            "locale": target_locale,
        }

        try:
            state = LocaleState.CHECK_EXISTING
            existing = await self.store.find_by_id(
                self.collection,
                doc_id,
                locale=target_locale,
                fallback_locale=False,
                depth=0,
            )

            translator = FieldTranslator(
                self.gateway, target_locale, self.source_locale, self.settings
            )
            translated = await translator.translate_fields(document, paths)

            if existing is not None:
                state = LocaleState.MERGE
                await self._merge(doc_id, translated, target_locale)
                action = "update"
            else:
                state = LocaleState.SYNTHESIZE
                await self._synthesize(doc_id, translated, paths, target_locale)
                action = "create"

        except Exception as e:
            logger.error(
                "Translation failed for locale %s during %s: %s",
                target_locale,
                state.value,
                e,
                extra={
                    "stage": "reconcile",
                    "context": {**log_context, "state": state.value, "error": str(e)},
                },
            )
            return LocaleOutcome(locale=target_locale, state=LocaleState.FAILED, error=str(e))

        logger.info(
            "Committed %s translation (%s)",
            target_locale,
            action,
            extra={"stage": "reconcile", "context": {**log_context, "action": action}},
        )
        return LocaleOutcome(locale=target_locale, state=LocaleState.COMMITTED, action=action)

    async def _merge(self, doc_id: Any, translated: dict[str, Any], target_locale: str) -> None:
        await self.store.update(
            self.collection,
            doc_id,
            translated,
            locale=target_locale,
            context=SKIP_AUTO_PROCESSING,
        )

    async def _synthesize(
        self,
        doc_id: Any,
        translated: dict[str, Any],
        paths: Sequence[str],
        target_locale: str,
    ) -> None:
        source = await self.store.find_by_id(
            self.collection,
            doc_id,
            locale=self.source_locale,
            fallback_locale=False,
        )
        if source is None:
            raise DocumentNotFoundError(
                f"Source document {doc_id} not found at locale {self.source_locale}",
                collection=self.collection,
                doc_id=str(doc_id),
                locale=self.source_locale,
            )

        data = build_synthesized_document(source, translated, paths)
        await self.store.create(
            self.collection,
            data,
            locale=target_locale,
            status=DocumentStatus.DRAFT,
            context=SKIP_AUTO_PROCESSING,
            doc_id=doc_id,
        )
