"""
Exception hierarchy for translate-locales.

Failures are contained at the smallest unit that can absorb them (text leaf,
field, locale); these types tell each level what went wrong.
"""

from __future__ import annotations

from enum import Enum


class TranslationErrorKind(str, Enum):
    """Why a translation provider call failed."""

    AUTH = "auth"
    QUOTA = "quota"
    NETWORK = "network"
    UNSUPPORTED_PAIR = "unsupported_pair"
    REJECTED = "rejected"
    EMPTY_RESULT = "empty_result"


class TranslateLocalesError(Exception):
    """Base class for all translate-locales errors."""


class TranslationError(TranslateLocalesError):
    """A translation gateway could not produce a usable translation."""

    def __init__(
        self,
        message: str,
        kind: TranslationErrorKind = TranslationErrorKind.REJECTED,
        provider: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.provider = provider

    def __str__(self) -> str:
        prefix = f"{self.provider}: " if self.provider else ""
        return f"{prefix}{super().__str__()} [{self.kind.value}]"


class StoreError(TranslateLocalesError):
    """A document store read or write failed."""

    def __init__(
        self,
        message: str,
        collection: str | None = None,
        doc_id: str | None = None,
        locale: str | None = None,
    ):
        super().__init__(message)
        self.collection = collection
        self.doc_id = doc_id
        self.locale = locale


class DocumentNotFoundError(StoreError):
    """The requested document does not exist at the requested locale."""


class StructuralError(TranslateLocalesError):
    """A field value does not have the shape its kind promises."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
