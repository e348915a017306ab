"""
Locale-scoped document stores.
"""

from translate_locales.store.base import (
    SKIP_AUTO_PROCESSING,
    DocumentStatus,
    DocumentStore,
    WriteContext,
)
from translate_locales.store.duckdb_store import DuckDBDocumentStore

__all__ = [
    "SKIP_AUTO_PROCESSING",
    "DocumentStatus",
    "DocumentStore",
    "DuckDBDocumentStore",
    "WriteContext",
]
