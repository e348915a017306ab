"""
Collection write hooks.

Registered on a document store, these reproduce the automatic behaviour of the
content platform: slugs follow titles and saved documents are translated into
the other locales. Both are skipped for writes made with
``skip_auto_processing``, which is how the pipeline's own writes avoid
re-triggering them.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from translate_locales.store.base import WriteContext
from translate_locales.translation.pipeline import TranslationPipeline, TranslationRequest

if TYPE_CHECKING:
    from translate_locales.config import CollectionConfig
    from translate_locales.gateway.base import TranslationSettings
    from translate_locales.store.duckdb_store import DuckDBDocumentStore

logger = logging.getLogger(__name__)


def slugify(value: str) -> str:
    """Lowercase ASCII slug with hyphen separators."""
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = re.sub(r"[^a-z0-9]+", "-", normalized.lower())
    return slug.strip("-")


def slug_before_change(data: dict[str, Any], **_: Any) -> dict[str, Any] | None:
    """Derive ``slug`` from ``title`` when a title is written."""
    title = data.get("title")
    if not isinstance(title, str) or not title.strip():
        return None
    return {**data, "slug": slugify(title)}


def make_translate_after_change(
    pipeline: TranslationPipeline,
    collections: Mapping[str, CollectionConfig],
    settings: TranslationSettings | None = None,
) -> Callable[..., Awaitable[None]]:
    """
    Build an after-change hook that translates saved documents.

    Only writes in the source locale of the document are translated; writes
    into other locales are left alone.
    """

    async def translate_after_change(
        doc: dict[str, Any],
        *,
        collection: str,
        locale: str,
        operation: str,
        context: WriteContext,
    ) -> None:
        if context.skip_auto_processing:
            return

        options = collections.get(collection)
        if options is None or not options.auto_translate or not options.fields:
            return

        source_locale = pipeline.resolve_source_locale(doc)
        if locale != source_locale:
            return

        logger.debug(
            "Auto-translating %s/%s after %s",
            collection,
            doc.get("id"),
            operation,
            extra={"stage": "hooks", "context": {"document_id": doc.get("id")}},
        )
        await pipeline.translate(
            TranslationRequest(
                document=doc,
                collection=collection,
                translatable_paths=options.fields,
                settings=settings,
                source_locale=source_locale,
            )
        )

    return translate_after_change


def register_collection_hooks(
    store: DuckDBDocumentStore,
    pipeline: TranslationPipeline,
    collections: Mapping[str, CollectionConfig],
    settings: TranslationSettings | None = None,
) -> None:
    """Install slug and auto-translation hooks for every configured collection."""
    translate_hook = make_translate_after_change(pipeline, collections, settings)
    for collection in collections:
        store.register_hook(collection, "before_change", slug_before_change)
        store.register_hook(collection, "after_change", translate_hook)
