"""Decides which raw DOM events are user-intended actions."""

from __future__ import annotations

import logging

from bs4 import Tag

from scriptrecorder.capture.dom import DomEvent, ancestors, element_classes, element_text
from scriptrecorder.config import RecorderConfig
from scriptrecorder.core.types import ActionKind

logger = logging.getLogger(__name__)

_INTERACTIVE_TAGS = {"a", "button", "input", "select", "textarea", "summary"}

_INTERACTIVE_ROLES = {
    "button", "link", "checkbox", "radio", "switch", "tab", "menuitem", "option",
}

_FORM_CONTROL_TAGS = {"input", "textarea", "select"}

_TOGGLE_TYPES = {"checkbox", "radio"}

_TABLE_ROLES = {"table", "grid"}


def _tab_index(element: Tag, event: DomEvent | None) -> int:
    if event is not None and event.tab_index is not None and event.target is element:
        return event.tab_index
    raw = element.get("tabindex")
    if raw is not None:
        try:
            return int(str(raw).strip())
        except ValueError:
            return -1
    return -1


class InteractionClassifier:
    """Classifies events; never records anything itself."""

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self._config = config or RecorderConfig()

    def classify(self, event: DomEvent) -> ActionKind | None:
        target = event.target
        if target is None:
            return None
        if self.should_ignore(target):
            logger.debug("Ignoring %s on overlay element <%s>", event.type, target.name)
            return None

        if event.type == "click":
            return ActionKind.CLICK if self.is_interactive(target, event) else None

        if event.type in ("input", "change"):
            if target.name == "select":
                return ActionKind.SELECT
            if self._is_toggle(target):
                # The click that toggled it is already recorded
                return None
            if self._is_form_control(target):
                return ActionKind.INPUT

        return None

    def is_interactive(self, element: Tag, event: DomEvent | None = None) -> bool:
        """Intrinsically interactive tag, interactive role, onclick, pointer cursor or focusable."""
        if element.name in _INTERACTIVE_TAGS:
            return True
        role = (element.get("role") or "").strip().lower()
        if role in _INTERACTIVE_ROLES:
            return True
        if element.get("onclick"):
            return True
        if event is not None and event.target is element and event.cursor == "pointer":
            return True
        return _tab_index(element, event) >= 0

    def should_ignore(self, element: Tag) -> bool:
        """True for elements under the overlay's ignore marker."""
        marker = self._config.ignore_class
        return any(marker in element_classes(node) for node in ancestors(element))

    def find_table(self, element: Tag | None) -> Tag | None:
        """Nearest table-like container at or above ``element``, stopping at <body>."""
        for node in ancestors(element):
            if node.name == "body":
                break
            if node.name == "table":
                return node
            if (node.get("role") or "").strip().lower() in _TABLE_ROLES:
                return node
            if self._config.table_class in element_classes(node):
                return node
        return None

    def is_labelable(self, element: Tag) -> bool:
        """Leaf elements with visible text can be given a field label."""
        if self.should_ignore(element):
            return False
        if element.find(True) is not None:
            return False
        return bool(element_text(element))

    @staticmethod
    def _is_toggle(element: Tag) -> bool:
        return element.name == "input" and (element.get("type") or "").lower() in _TOGGLE_TYPES

    @staticmethod
    def _is_form_control(element: Tag) -> bool:
        if element.name in _FORM_CONTROL_TAGS:
            return True
        editable = element.get("contenteditable")
        return editable is not None and str(editable).lower() in ("", "true", "plaintext-only")
