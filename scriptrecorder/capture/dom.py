"""Page model: parsed HTML snapshots and the raw events observed on them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator

from bs4 import BeautifulSoup, Tag

# Attribute the in-page listener puts on the event target before serializing
TARGET_MARKER = "data-recorder-target"

EVENT_TYPES = {"click", "input", "change", "keydown", "keyup", "mouseover"}


@dataclass
class DomEvent:
    """A raw pointer/keyboard event captured on a page snapshot."""

    type: str
    target: Tag | None
    cursor: str = ""  # computed CSS cursor of the target
    tab_index: int | None = None  # effective tabIndex, None when unknown
    value: str | None = None  # current value of a form control
    selected_text: str | None = None  # displayed option text of a <select>
    key: str = ""
    url: str = ""


def parse_document(html: str) -> BeautifulSoup:
    return BeautifulSoup(html, "html.parser")


def document_of(element: Tag) -> Tag:
    """Return the root of the tree holding ``element`` (the parsed document)."""
    node = element
    while node.parent is not None:
        node = node.parent
    return node


def ancestors(element: Tag | None) -> Iterator[Tag]:
    """Yield ``element`` and then each enclosing element, innermost first."""
    node = element
    while node is not None and not isinstance(node, BeautifulSoup):
        yield node
        node = node.parent


def is_descendant(element: Tag, container: Tag) -> bool:
    """True when ``container`` is ``element`` or one of its ancestors (by identity)."""
    return any(node is container for node in ancestors(element))


def element_classes(element: Tag) -> list[str]:
    classes = element.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c for c in classes if c]


def element_text(element: Tag) -> str:
    return element.get_text(" ", strip=True)


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def event_from_payload(payload: dict[str, Any]) -> DomEvent:
    """
    Build a DomEvent from a listener payload.

    The payload holds the serialized document in ``html`` with the event
    target carrying the TARGET_MARKER attribute. The marker is removed once
    the target is found so it never leaks into synthesized locators.
    """
    event_type = str(payload.get("type", ""))
    if event_type not in EVENT_TYPES:
        raise ValueError(f"Unsupported event type: {event_type!r}")

    target: Tag | None = None
    html = payload.get("html")
    if html:
        soup = parse_document(html)
        target = soup.select_one(f"[{TARGET_MARKER}]")
        if target is not None:
            del target[TARGET_MARKER]

    return DomEvent(
        type=event_type,
        target=target,
        cursor=str(payload.get("cursor") or ""),
        tab_index=_optional_int(payload.get("tabIndex")),
        value=payload.get("value"),
        selected_text=payload.get("selectedText"),
        key=str(payload.get("key") or ""),
        url=str(payload.get("url") or ""),
    )
