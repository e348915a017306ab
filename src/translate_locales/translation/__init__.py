"""
Field translation pipeline for translate-locales.

Provides:
- Dotted-path access into nested documents
- Structured-text traversal that preserves tree shape
- Field-kind dispatch for plain text, structured text and item arrays
- Per-locale reconciliation (merge into existing or synthesize a draft)
"""

from translate_locales.translation.fields import FieldKind, FieldTranslator, classify_field
from translate_locales.translation.paths import get_path, set_path
from translate_locales.translation.pipeline import (
    TranslationPipeline,
    TranslationReport,
    TranslationRequest,
)
from translate_locales.translation.reconciler import LocaleOutcome, LocaleReconciler, LocaleState

__all__ = [
    "FieldKind",
    "FieldTranslator",
    "LocaleOutcome",
    "LocaleReconciler",
    "LocaleState",
    "TranslationPipeline",
    "TranslationReport",
    "TranslationRequest",
    "classify_field",
    "get_path",
    "set_path",
]
