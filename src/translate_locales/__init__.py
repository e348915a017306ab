"""
translate-locales: multi-locale field translation for content documents.

This package provides tools for:
- Translating plain text, structured (rich) text and item-array fields
- Reconciling translations with existing locale instances of a document
- DeepL and LLM (OpenRouter) translation gateways with fallback
- A DuckDB document store and CLI for running translations locally
"""

__version__ = "0.1.0"

from translate_locales.config import Settings, load_config
from translate_locales.errors import (
    DocumentNotFoundError,
    StoreError,
    StructuralError,
    TranslateLocalesError,
    TranslationError,
    TranslationErrorKind,
)
from translate_locales.gateway import TranslationGateway, TranslationSettings, create_gateway
from translate_locales.store import DocumentStore, DuckDBDocumentStore, WriteContext
from translate_locales.translation import (
    TranslationPipeline,
    TranslationReport,
    TranslationRequest,
)

__all__ = [
    # Config
    "Settings",
    "load_config",
    # Errors
    "TranslateLocalesError",
    "TranslationError",
    "TranslationErrorKind",
    "StoreError",
    "DocumentNotFoundError",
    "StructuralError",
    # Gateways
    "TranslationGateway",
    "TranslationSettings",
    "create_gateway",
    # Store
    "DocumentStore",
    "DuckDBDocumentStore",
    "WriteContext",
    # Pipeline
    "TranslationPipeline",
    "TranslationReport",
    "TranslationRequest",
]
