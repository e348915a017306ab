"""
DuckDB document store for translate-locales.

Stores one row per (collection, document id, locale) and keeps the processing
log used by the ``logs`` command.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from translate_locales.errors import DocumentNotFoundError, StoreError
from translate_locales.store.base import (
    IDENTITY_FIELDS,
    STATUS_FIELD,
    DocumentStatus,
    DocumentStore,
    WriteContext,
)

HOOK_EVENTS = ("before_change", "after_change")


def merge_documents(base: Mapping[str, Any], patch: Mapping[str, Any]) -> dict[str, Any]:
    """Deep-merge ``patch`` into a copy of ``base``; lists and scalars are replaced."""
    merged = dict(base)
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_documents(current, value)
        else:
            merged[key] = value
    return merged


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


class DuckDBDocumentStore(DocumentStore):
    """DuckDB-backed locale-scoped document store."""

    # SQL for creating tables
    _SCHEMA = """
    -- One row per locale instance of a document
    CREATE TABLE IF NOT EXISTS documents (
        collection VARCHAR NOT NULL,
        doc_id VARCHAR NOT NULL,
        locale VARCHAR NOT NULL,
        status VARCHAR NOT NULL DEFAULT 'draft',
        data JSON NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        PRIMARY KEY (collection, doc_id, locale)
    );

    -- Processing log for audit trail
    CREATE TABLE IF NOT EXISTS processing_log (
        id INTEGER PRIMARY KEY,
        run_id VARCHAR NOT NULL,
        document_id VARCHAR,
        stage VARCHAR NOT NULL,
        level VARCHAR NOT NULL,
        message TEXT NOT NULL,
        context JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    -- Create sequence for processing_log if not exists
    CREATE SEQUENCE IF NOT EXISTS processing_log_id_seq START 1;

    CREATE INDEX IF NOT EXISTS idx_documents_locale ON documents(collection, locale);
    CREATE INDEX IF NOT EXISTS idx_log_lookup ON processing_log(run_id, stage, level);
    """

    def __init__(self, db_path: Path | str):
        """Initialize store; the connection is opened lazily."""
        self.db_path = Path(db_path)
        if str(db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._run_id = str(uuid.uuid4())
        self._hooks: dict[tuple[str, str], list[Callable[..., Any]]] = {}

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
            self._conn.execute(self._SCHEMA)
        return self._conn

    @property
    def run_id(self) -> str:
        """Get current run ID."""
        return self._run_id

    def new_run(self) -> str:
        """Start a new run and return its ID."""
        self._run_id = str(uuid.uuid4())
        return self._run_id

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    # ==================== Hooks ====================

    def register_hook(self, collection: str, event: str, hook: Callable[..., Any]) -> None:
        """
        Register a write hook for a collection.

        ``before_change`` hooks are plain callables that may return replacement
        data; ``after_change`` hooks are coroutines. Neither runs for writes
        made with ``skip_auto_processing``.
        """
        if event not in HOOK_EVENTS:
            raise ValueError(f"Unknown hook event: {event}. Valid options: {list(HOOK_EVENTS)}")
        self._hooks.setdefault((collection, event), []).append(hook)

    def _run_before_change(
        self,
        collection: str,
        data: dict[str, Any],
        locale: str,
        operation: str,
        context: WriteContext,
    ) -> dict[str, Any]:
        if context.skip_auto_processing:
            return data
        for hook in self._hooks.get((collection, "before_change"), []):
            result = hook(data, collection=collection, locale=locale, operation=operation)
            if result is not None:
                data = result
        return data

    async def _run_after_change(
        self,
        collection: str,
        doc: dict[str, Any],
        locale: str,
        operation: str,
        context: WriteContext,
    ) -> None:
        if context.skip_auto_processing:
            return
        for hook in self._hooks.get((collection, "after_change"), []):
            await hook(
                doc,
                collection=collection,
                locale=locale,
                operation=operation,
                context=context,
            )

    # ==================== Documents ====================

    def _fetch(self, collection: str, doc_id: str, locale: str) -> dict[str, Any] | None:
        try:
            row = self.conn.execute(
                """
                SELECT doc_id, data, status, created_at, updated_at
                FROM documents
                WHERE collection = ? AND doc_id = ? AND locale = ?
                """,
                [collection, str(doc_id), locale],
            ).fetchone()
        except duckdb.Error as e:
            raise StoreError(
                f"Failed to read document: {e}",
                collection=collection,
                doc_id=str(doc_id),
                locale=locale,
            ) from e
        return self._row_to_document(row) if row else None

    def _fetch_written(self, collection: str, doc_id: str, locale: str) -> dict[str, Any]:
        """Read back a row that was just written."""
        document = self._fetch(collection, doc_id, locale)
        if document is None:
            raise StoreError(
                f"Document {doc_id} vanished after write",
                collection=collection,
                doc_id=str(doc_id),
                locale=locale,
            )
        return document

    def _row_to_document(self, row: tuple) -> dict[str, Any]:
        doc_id, data, status, created_at, updated_at = row
        document = json.loads(data) if isinstance(data, str) else dict(data)
        document["id"] = doc_id
        document[STATUS_FIELD] = status
        document["createdAt"] = _timestamp(created_at)
        document["updatedAt"] = _timestamp(updated_at)
        return document

    @staticmethod
    def _serialize(data: Mapping[str, Any]) -> str:
        stored = {
            key: value
            for key, value in data.items()
            if key not in IDENTITY_FIELDS and key != STATUS_FIELD
        }
        return json.dumps(stored, ensure_ascii=False, default=str)

    async def find_by_id(
        self,
        collection: str,
        doc_id: str,
        *,
        locale: str,
        fallback_locale: str | bool = False,
        depth: int = 0,
    ) -> dict[str, Any] | None:
        """Fetch one locale instance, optionally falling back to another locale."""
        document = self._fetch(collection, doc_id, locale)
        if document is None and isinstance(fallback_locale, str) and fallback_locale != locale:
            document = self._fetch(collection, doc_id, fallback_locale)
        return document

    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        locale: str,
        context: WriteContext = WriteContext(),
    ) -> dict[str, Any]:
        """Deep-merge data into an existing locale instance."""
        existing = self._fetch(collection, doc_id, locale)
        if existing is None:
            raise DocumentNotFoundError(
                f"No document {doc_id} in {collection} at locale {locale}",
                collection=collection,
                doc_id=str(doc_id),
                locale=locale,
            )

        data = self._run_before_change(collection, data, locale, "update", context)
        merged = merge_documents(existing, data)
        status = merged.get(STATUS_FIELD) or existing[STATUS_FIELD]

        try:
            self.conn.execute(
                """
                UPDATE documents
                SET data = ?, status = ?, updated_at = CURRENT_TIMESTAMP
                WHERE collection = ? AND doc_id = ? AND locale = ?
                """,
                [self._serialize(merged), status, collection, str(doc_id), locale],
            )
        except duckdb.Error as e:
            raise StoreError(
                f"Failed to update document: {e}",
                collection=collection,
                doc_id=str(doc_id),
                locale=locale,
            ) from e

        document = self._fetch_written(collection, doc_id, locale)
        await self._run_after_change(collection, document, locale, "update", context)
        return document

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        *,
        locale: str,
        status: DocumentStatus = DocumentStatus.DRAFT,
        context: WriteContext = WriteContext(),
        doc_id: str | None = None,
    ) -> dict[str, Any]:
        """Insert a new locale instance."""
        doc_id = str(doc_id) if doc_id is not None else str(uuid.uuid4())
        if self._fetch(collection, doc_id, locale) is not None:
            raise StoreError(
                f"Document {doc_id} already exists in {collection} at locale {locale}",
                collection=collection,
                doc_id=doc_id,
                locale=locale,
            )

        data = self._run_before_change(collection, data, locale, "create", context)

        try:
            self.conn.execute(
                """
                INSERT INTO documents (collection, doc_id, locale, status, data)
                VALUES (?, ?, ?, ?, ?)
                """,
                [collection, doc_id, locale, DocumentStatus(status).value, self._serialize(data)],
            )
        except duckdb.Error as e:
            raise StoreError(
                f"Failed to create document: {e}",
                collection=collection,
                doc_id=doc_id,
                locale=locale,
            ) from e

        document = self._fetch_written(collection, doc_id, locale)
        await self._run_after_change(collection, document, locale, "create", context)
        return document

    def list_documents(
        self,
        collection: str | None = None,
        locale: str | None = None,
        limit: int = 100,
    ) -> list[dict[str, Any]]:
        """List stored locale instances (metadata only)."""
        conditions = []
        params: list[Any] = []

        if collection:
            conditions.append("collection = ?")
            params.append(collection)
        if locale:
            conditions.append("locale = ?")
            params.append(locale)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self.conn.execute(
            f"""
            SELECT collection, doc_id, locale, status, updated_at
            FROM documents
            {where_clause}
            ORDER BY collection, doc_id, locale
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()

        return [
            {
                "collection": row[0],
                "doc_id": row[1],
                "locale": row[2],
                "status": row[3],
                "updated_at": row[4],
            }
            for row in rows
        ]

    # ==================== Logging ====================

    def log(
        self,
        level: str,
        stage: str,
        message: str,
        document_id: str | None = None,
        context: dict | None = None,
    ) -> None:
        """Insert a log entry."""
        context_json = json.dumps(context, default=str) if context else None
        self.conn.execute(
            """
            INSERT INTO processing_log
            (id, run_id, document_id, stage, level, message, context)
            VALUES (nextval('processing_log_id_seq'), ?, ?, ?, ?, ?, ?)
            """,
            [self._run_id, document_id, stage, level, message, context_json],
        )

    def get_logs(
        self,
        run_id: str | None = None,
        level: str | None = None,
        stage: str | None = None,
        document_id: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Get log entries, newest first."""
        conditions = []
        params: list[Any] = []

        if run_id:
            conditions.append("run_id = ?")
            params.append(run_id)
        if level:
            conditions.append("level = ?")
            params.append(level.upper())
        if stage:
            conditions.append("stage = ?")
            params.append(stage)
        if document_id:
            conditions.append("document_id = ?")
            params.append(document_id)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self.conn.execute(
            f"""
            SELECT run_id, document_id, stage, level, message, context, created_at
            FROM processing_log
            {where_clause}
            ORDER BY id DESC
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()

        return [
            {
                "run_id": row[0],
                "document_id": row[1],
                "stage": row[2],
                "level": row[3],
                "message": row[4],
                "context": json.loads(row[5]) if row[5] else None,
                "created_at": row[6],
            }
            for row in rows
        ]
