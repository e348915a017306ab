"""
Pytest configuration and fixtures for the translate-locales test suite.

This module provides reusable fixtures for:
- A scripted translation gateway (no network)
- A DuckDB document store on a temporary path that records its writes
- Sample documents with plain, structured-text and array fields
"""

from __future__ import annotations

import copy
import logging
from typing import Any

import pytest

from translate_locales.config import LocalizationConfig
from translate_locales.errors import StoreError, TranslationError, TranslationErrorKind
from translate_locales.gateway.base import TranslationGateway, TranslationSettings
from translate_locales.store.base import DocumentStatus, WriteContext
from translate_locales.store.duckdb_store import DuckDBDocumentStore
from translate_locales.translation.pipeline import TranslationPipeline


class FakeGateway(TranslationGateway):
    """Translates ``text`` to ``[locale] text`` and fails on request."""

    def __init__(
        self,
        fail_locales: set[str] | None = None,
        fail_texts: set[str] | None = None,
        errors: dict[str, Exception] | None = None,
    ):
        self.fail_locales = fail_locales or set()
        self.fail_texts = fail_texts or set()
        self.errors = errors or {}
        self.calls: list[tuple[str, str, str, TranslationSettings | None]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def translate_text(
        self,
        text: str,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ) -> str:
        self.calls.append((text, target_locale, source_locale, settings))
        if text in self.errors:
            raise self.errors[text]
        if target_locale in self.fail_locales or text in self.fail_texts:
            raise TranslationError(
                f"cannot translate {text!r}",
                kind=TranslationErrorKind.NETWORK,
                provider=self.name,
            )
        return f"[{target_locale}] {text}"


class RecordingStore(DuckDBDocumentStore):
    """DuckDB store that records every write and can fail on demand."""

    def __init__(self, db_path, fail_locales: set[str] | None = None):
        super().__init__(db_path)
        self.fail_locales = fail_locales or set()
        self.updates: list[dict[str, Any]] = []
        self.creates: list[dict[str, Any]] = []

    async def update(self, collection, doc_id, data, *, locale, context=WriteContext()):
        self.updates.append(
            {
                "collection": collection,
                "doc_id": doc_id,
                "data": copy.deepcopy(data),
                "locale": locale,
                "context": context,
            }
        )
        if locale in self.fail_locales:
            raise StoreError("write rejected", collection=collection, locale=locale)
        return await super().update(collection, doc_id, data, locale=locale, context=context)

    async def create(
        self,
        collection,
        data,
        *,
        locale,
        status=DocumentStatus.DRAFT,
        context=WriteContext(),
        doc_id=None,
    ):
        self.creates.append(
            {
                "collection": collection,
                "doc_id": doc_id,
                "data": copy.deepcopy(data),
                "locale": locale,
                "status": status,
                "context": context,
            }
        )
        if locale in self.fail_locales:
            raise StoreError("write rejected", collection=collection, locale=locale)
        return await super().create(
            collection, data, locale=locale, status=status, context=context, doc_id=doc_id
        )


def rich_text(*texts: str) -> dict[str, Any]:
    """Build a structured-text value with one paragraph per text."""
    return {
        "root": {
            "type": "root",
            "format": "",
            "indent": 0,
            "version": 1,
            "children": [
                {
                    "type": "paragraph",
                    "format": "",
                    "version": 1,
                    "children": [
                        {"type": "text", "text": text, "format": 1, "detail": 0, "version": 1}
                    ],
                }
                for text in texts
            ],
        }
    }


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def localization() -> LocalizationConfig:
    return LocalizationConfig(locale_codes=["en", "lt", "de"], default_locale="en")


@pytest.fixture
def store(tmp_path):
    store = RecordingStore(tmp_path / "content.duckdb")
    yield store
    store.close()


@pytest.fixture
def pipeline(store, gateway, localization) -> TranslationPipeline:
    return TranslationPipeline(store, gateway, localization)


@pytest.fixture
def case_document() -> dict[str, Any]:
    """A source document exercising every field kind."""
    return {
        "title": "Hello",
        "subtitle": "A short story",
        "slug": "hello",
        "price": 42,
        "thumbnail": {"id": "media-1", "url": "/media/hello.png"},
        "content": rich_text("Hi there", "Second paragraph"),
        "strategies": [
            {"id": "s1", "name": "Plan", "description": "Make a plan", "order": 1},
            {"id": "s2", "name": "Act", "description": "", "order": 2},
            "loose-item",
        ],
        "firstSection": {"text": "Intro", "image": "media-2"},
    }


CASE_FIELDS = ["title", "subtitle", "content", "strategies", "firstSection.text"]


@pytest.fixture
def case_fields() -> list[str]:
    return list(CASE_FIELDS)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo handler and propagation changes made by ``setup_logging``."""
    logger = logging.getLogger("translate_locales")
    level, propagate = logger.level, logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = propagate
