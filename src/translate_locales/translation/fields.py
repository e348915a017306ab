"""
Field translator.

Classifies each translatable field once into a ``FieldKind`` and translates
its value accordingly. Field values of the source document are never mutated;
every translated value is a fresh copy.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

from translate_locales.errors import StructuralError, TranslationError
from translate_locales.gateway.base import TranslationGateway, TranslationSettings
from translate_locales.translation.paths import get_path, set_path
from translate_locales.translation.richtext import clone_tree, is_structured_text, translate_tree

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    """Shape of a field value, decided before dispatch."""

    ABSENT = "absent"
    PLAIN_TEXT = "plain_text"
    STRUCTURED_TEXT = "structured_text"
    ITEM_ARRAY = "item_array"
    UNSUPPORTED = "unsupported"


def classify_field(value: Any) -> FieldKind:
    """Determine the kind of a field value."""
    if value is None:
        return FieldKind.ABSENT
    if isinstance(value, str):
        return FieldKind.PLAIN_TEXT if value.strip() else FieldKind.UNSUPPORTED
    if is_structured_text(value):
        return FieldKind.STRUCTURED_TEXT
    if isinstance(value, list):
        return FieldKind.ITEM_ARRAY
    return FieldKind.UNSUPPORTED


class FieldTranslator:
    """
    Translates field values into one target locale.

    One instance is bound to a (target, source, settings) triple, so it can be
    handed to concurrently running locale units without shared state.
    """

    def __init__(
        self,
        gateway: TranslationGateway,
        target_locale: str,
        source_locale: str,
        settings: TranslationSettings | None = None,
    ):
        self.gateway = gateway
        self.target_locale = target_locale
        self.source_locale = source_locale
        self.settings = settings or TranslationSettings()

    async def translate_text(self, text: str) -> str:
        """Translate one text payload; raises ``TranslationError``."""
        return await self.gateway.translate_text(
            text, self.target_locale, self.source_locale, self.settings
        )

    def _log_context(self, path: str, **extra: Any) -> dict[str, Any]:
        return {"field": path, "locale": self.target_locale, **extra}

    async def translate_value(self, path: str, value: Any) -> tuple[FieldKind, Any]:
        """
        Translate a single field value.

        Returns:
            The field kind and the translated copy. The copy is None for
            ``ABSENT`` and ``UNSUPPORTED`` values, which are not written.
        """
        kind = classify_field(value)

        if kind == FieldKind.PLAIN_TEXT:
            return kind, await self._translate_plain(path, value)
        if kind == FieldKind.STRUCTURED_TEXT:
            return kind, await self._translate_structured(path, value)
        if kind == FieldKind.ITEM_ARRAY:
            return kind, await self._translate_items(path, value)
        return kind, None

    async def _translate_plain(self, path: str, value: str) -> str:
        try:
            return await self.translate_text(value)
        except TranslationError as e:
            logger.warning(
                "Failed to translate field %s to %s, keeping source text: %s",
                path,
                self.target_locale,
                e,
                extra={"stage": "field", "context": self._log_context(path, error=str(e))},
            )
            return value

    async def _translate_structured(self, path: str, value: Mapping[str, Any]) -> Any:
        try:
            return await translate_tree(
                value, self.translate_text, context=self._log_context(path)
            )
        except Exception as e:
            logger.error(
                "Failed to process structured text field %s for %s, keeping source value: %s",
                path,
                self.target_locale,
                e,
                extra={"stage": "field", "context": self._log_context(path, error=str(e))},
            )
            return copy.deepcopy(value)

    async def _translate_items(self, path: str, items: Sequence[Any]) -> list[Any]:
        translated_items: list[Any] = []
        for index, item in enumerate(items):
            if not isinstance(item, Mapping):
                translated_items.append(item)
                continue

            translated_item = dict(item)
            for key, value in item.items():
                if not isinstance(value, str) or not value.strip():
                    continue
                try:
                    translated_item[key] = await self.translate_text(value)
                except TranslationError as e:
                    logger.warning(
                        "Failed to translate array item field %s[%d].%s: %s",
                        path,
                        index,
                        key,
                        e,
                        extra={
                            "stage": "field",
                            "context": self._log_context(path, item=index, key=key, error=str(e)),
                        },
                    )
            translated_items.append(translated_item)
        return translated_items

    async def translate_fields(
        self,
        document: Mapping[str, Any],
        paths: Sequence[str],
    ) -> dict[str, Any]:
        """
        Build the locale payload for the given translatable paths.

        A field whose translation raises unexpectedly is written with its
        source value so that siblings are unaffected.

        Returns:
            Nested payload holding a value for every translated path.
        """
        payload: dict[str, Any] = {}

        for path in paths:
            value = get_path(document, path)
            try:
                kind, translated = await self.translate_value(path, value)
            except Exception as e:
                logger.error(
                    "Translation failed for field %s (%s): %s",
                    path,
                    self.target_locale,
                    e,
                    extra={"stage": "field", "context": self._log_context(path, error=str(e))},
                )
                if value is not None:
                    set_path(payload, path, _copy_value(value))
                continue

            if kind in (FieldKind.ABSENT, FieldKind.UNSUPPORTED):
                if kind == FieldKind.UNSUPPORTED:
                    logger.debug(
                        "Skipping field %s: unsupported value of type %s",
                        path,
                        type(value).__name__,
                        extra={"stage": "field", "context": self._log_context(path)},
                    )
                continue

            set_path(payload, path, translated)

        return payload


def _copy_value(value: Any) -> Any:
    """Copy a field value for writing, preferring the structural clone."""
    try:
        return clone_tree(value)
    except StructuralError:
        return copy.deepcopy(value)
