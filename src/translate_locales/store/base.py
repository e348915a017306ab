"""
Base classes for document stores.

The pipeline reads and writes locale-scoped documents through this interface.
Stores belong to the surrounding content platform; the DuckDB store in this
package is a self-contained implementation of the same contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class DocumentStatus(str, Enum):
    """Publication status of a stored locale instance."""

    DRAFT = "draft"
    PUBLISHED = "published"


# Fields owned by the store, never copied between locale instances
IDENTITY_FIELDS = frozenset({"id", "createdAt", "updatedAt"})
STATUS_FIELD = "_status"


@dataclass(frozen=True)
class WriteContext:
    """
    Per-write options honoured by the store's own write hooks.

    ``skip_auto_processing`` suppresses every secondary write hook (slug
    generation, automatic translation). The pipeline sets it on all of its
    writes; a store that ignores it makes pipeline writes re-trigger the
    pipeline.
    """

    skip_auto_processing: bool = False


SKIP_AUTO_PROCESSING = WriteContext(skip_auto_processing=True)


class DocumentStore(ABC):
    """
    Abstract base class for locale-scoped document stores.

    Failures are reported as ``StoreError``.
    """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        doc_id: str,
        *,
        locale: str,
        fallback_locale: str | bool = False,
        depth: int = 0,
    ) -> dict[str, Any] | None:
        """
        Fetch one locale instance of a document.

        Args:
            collection: Collection key.
            doc_id: Document identifier, shared by all locale instances.
            locale: Locale to read.
            fallback_locale: Locale to read instead when ``locale`` has no
                instance; False disables fallback.
            depth: Relationship population depth.

        Returns:
            The document, or None if it does not exist.
        """
        ...

    @abstractmethod
    async def update(
        self,
        collection: str,
        doc_id: str,
        data: dict[str, Any],
        *,
        locale: str,
        context: WriteContext = WriteContext(),
    ) -> dict[str, Any]:
        """Merge ``data`` into an existing locale instance and return it."""
        ...

    @abstractmethod
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
        """
        Create a locale instance and return it.

        ``doc_id`` attaches the new instance to an existing logical document;
        a new identifier is generated when it is None.
        """
        ...
