"""Reduce a provider response to a single text string.

Responses come in two shapes, modelled as a tagged union:

* ``FlatText``     — the response exposes one text field (``output_text``).
* ``ContentItems`` — the response carries a list of content items
  (Anthropic ``content`` blocks, Responses API ``output`` items), each of
  which may hold ``text`` directly or a nested ``content`` list.

Anything else is ``Unrecognized`` and extracts to ``""``. Supporting a new
provider shape means adding one variant and one entry in ``_EXTRACTORS``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Union


@dataclass(frozen=True)
class FlatText:
    text: str


@dataclass(frozen=True)
class ContentItems:
    items: tuple[Any, ...]


@dataclass(frozen=True)
class Unrecognized:
    kind: str


ResponseShape = Union[FlatText, ContentItems, Unrecognized]

#: Block types whose payload is never report text.
_SKIPPED_ITEM_TYPES = frozenset({"thinking", "redacted_thinking"})


def _field(obj: Any, name: str) -> Any:
    """Read *name* from a dict key or an attribute, ``None`` when absent."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


def classify_response(response: Any) -> ResponseShape:
    """Decide which shape *response* has."""
    text = _field(response, "output_text")
    if isinstance(text, str) and text:
        return FlatText(text)
    for name in ("content", "output"):
        items = _field(response, name)
        if isinstance(items, (list, tuple)):
            return ContentItems(tuple(items))
    return Unrecognized(type(response).__name__)


def _item_text(item: Any) -> str:
    if _field(item, "type") in _SKIPPED_ITEM_TYPES:
        return ""
    text = _field(item, "text")
    if isinstance(text, str):
        return text
    nested = _field(item, "content")
    if isinstance(nested, (list, tuple)):
        return "".join(_item_text(child) for child in nested)
    return ""


def _extract_flat(shape: FlatText) -> str:
    return shape.text


def _extract_items(shape: ContentItems) -> str:
    return "".join(_item_text(item) for item in shape.items)


def _extract_nothing(shape: Unrecognized) -> str:
    return ""


_EXTRACTORS: dict[type, Callable[[Any], str]] = {
    FlatText: _extract_flat,
    ContentItems: _extract_items,
    Unrecognized: _extract_nothing,
}


def extract_text(response: Any) -> str:
    """Return all text carried by *response*, or ``""`` if none is found.

    Never raises; an unrecognised shape is treated downstream as an
    unparseable result.
    """
    shape = classify_response(response)
    return _EXTRACTORS[type(shape)](shape)
