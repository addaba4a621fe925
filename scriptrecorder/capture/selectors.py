"""Selector synthesis: a stable, minimal CSS locator for a page element."""

from __future__ import annotations

import soupsieve
from bs4 import BeautifulSoup, Tag

from scriptrecorder.capture.dom import document_of, element_classes

# Joiner between an ancestor's locator and its child's
CHILD_JOINER = " > "


def _count(root: Tag, selector: str) -> int:
    return len(root.select(selector))


def _same_tag_siblings(element: Tag) -> list[Tag]:
    parent = element.parent
    if parent is None:
        return [element]
    return parent.find_all(element.name, recursive=False)


class SelectorSynthesizer:
    """
    Derives locators most-specific first, escalating on ambiguity:

    1. ``#id`` when the id is unique in the root
    2. ``tag.class1.class2`` when unique
    3. plus ``:nth-of-type(n)`` among same-tag siblings
    4. prefixed with the parent's locator (``parent > child``)

    Uniqueness is best effort: when escalation reaches the root the longest
    discriminating path is returned as is.
    """

    def synthesize(
        self,
        element: Tag | None,
        root: Tag | None = None,
        use_ids: bool = True,
    ) -> str:
        if element is None or isinstance(element, BeautifulSoup):
            return ""
        if root is None:
            root = document_of(element)
        if element is root:
            return ""

        ident = element.get("id")
        if use_ids and ident:
            selector = "#" + soupsieve.escape(ident)
            if _count(root, selector) == 1:
                return selector

        selector = self._tag_and_classes(element)

        if _count(root, selector) != 1:
            siblings = _same_tag_siblings(element)
            if len(siblings) > 1:
                # identity, not equality: bs4 compares tags by markup
                index = next(i for i, s in enumerate(siblings) if s is element) + 1
                selector += f":nth-of-type({index})"

        if _count(root, selector) == 1:
            return selector

        parent_selector = self.synthesize(element.parent, root=root, use_ids=use_ids)
        return f"{parent_selector}{CHILD_JOINER}{selector}" if parent_selector else selector

    def synthesize_within(self, element: Tag, container: Tag, container_locator: str) -> str:
        """
        Locator for an element inside a repeating container, anchored on the
        container's locator.

        Ids are not used: they usually identify one row and would pin the
        locator to the captured row.
        """
        path = self.synthesize(element, root=container, use_ids=False)
        if not path:
            return container_locator
        joiner = CHILD_JOINER if self._path_starts_at_child(element, container, path) else " "
        return f"{container_locator}{joiner}{path}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _tag_and_classes(element: Tag) -> str:
        classes = element_classes(element)
        tag = element.name.lower()
        if not classes:
            return tag
        return tag + "." + ".".join(soupsieve.escape(c) for c in classes)

    @staticmethod
    def _path_starts_at_child(element: Tag, container: Tag, path: str) -> bool:
        """True when the first segment of ``path`` denotes a direct child of ``container``."""
        depth = path.count(CHILD_JOINER)
        node = element
        for _ in range(depth):
            node = node.parent
        return node.parent is container
