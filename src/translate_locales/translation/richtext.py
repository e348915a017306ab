"""
Structured-text (rich text) traversal.

A structured-text value is a mapping with a ``root`` node. Nodes are either
text leaves (``{"type": "text", "text": "..."}``) or containers carrying an
ordered ``children`` list. Translation rewrites the ``text`` of leaves only;
the tree shape, node count and every other attribute are preserved.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from translate_locales.errors import StructuralError, TranslationError

logger = logging.getLogger(__name__)

# Async callable translating one text payload into the target locale
TextTranslator = Callable[[str], Awaitable[str]]


def is_structured_text(value: Any) -> bool:
    """Check whether a field value looks like a structured-text document."""
    return isinstance(value, Mapping) and value.get("root") is not None


def is_text_leaf(node: Mapping[str, Any]) -> bool:
    """A text leaf carries a non-blank string payload."""
    text = node.get("text")
    return node.get("type") == "text" and isinstance(text, str) and bool(text.strip())


def clone_tree(value: Any) -> Any:
    """
    Clone the mapping and list structure of a value.

    Anything that is not a mapping, list or tuple (strings, numbers, dates,
    decimals) is treated as an immutable leaf and returned as-is.

    Raises:
        StructuralError: If the value contains a cycle.
    """
    return _clone(value, set(), "")


def _clone(value: Any, active: set[int], location: str) -> Any:
    if not isinstance(value, (Mapping, list, tuple)):
        return value

    marker = id(value)
    if marker in active:
        raise StructuralError(f"Cycle detected at '{location or '<root>'}'", path=location)
    active.add(marker)
    try:
        if isinstance(value, Mapping):
            return {
                key: _clone(item, active, f"{location}.{key}" if location else str(key))
                for key, item in value.items()
            }
        return [_clone(item, active, f"{location}[{i}]") for i, item in enumerate(value)]
    finally:
        active.discard(marker)


def count_nodes(node: Any) -> int:
    """Count the nodes of a tree (the node itself plus all descendants)."""
    if not isinstance(node, Mapping):
        return 0
    children = node.get("children")
    if not isinstance(children, list):
        return 1
    return 1 + sum(count_nodes(child) for child in children)


async def walk_node(
    node: Any,
    translate: TextTranslator,
    *,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Translate the text leaves below ``node`` in place, depth-first.

    A leaf whose translation fails keeps its text; the walk continues with the
    next node. Nodes that are neither text leaves nor containers (including
    values that are not mappings at all) are left as they are.

    Args:
        node: Tree node to process (mutated in place).
        translate: Async callable translating a single text payload.
        context: Extra log context (field path, locale).
    """
    if not isinstance(node, Mapping):
        logger.debug(
            "Leaving non-node value of type %s untouched",
            type(node).__name__,
            extra={"stage": "richtext", "context": context or {}},
        )
        return

    if is_text_leaf(node):
        try:
            node["text"] = await translate(node["text"])
        except TranslationError as e:
            logger.warning(
                "Failed to translate text node %r: %s",
                node["text"][:60],
                e,
                extra={"stage": "richtext", "context": {**(context or {}), "error": str(e)}},
            )
        return

    children = node.get("children")
    if isinstance(children, list):
        for child in children:
            await walk_node(child, translate, context=context)


async def translate_tree(
    value: Mapping[str, Any],
    translate: TextTranslator,
    *,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Return a translated clone of a structured-text value.

    The input is never mutated. A root without a ``children`` list is returned
    as an unmodified clone.
    """
    tree = clone_tree(value)
    children = tree["root"].get("children") if isinstance(tree["root"], Mapping) else None
    if not isinstance(children, list):
        return tree

    for child in children:
        await walk_node(child, translate, context=context)
    return tree
