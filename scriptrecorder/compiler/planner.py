"""Single left-to-right pass turning an action log into a ScriptPlan."""

from __future__ import annotations

import logging
import re
from typing import Iterable

from scriptrecorder.compiler.types import (
    DEFAULT_ROW_SELECTOR,
    CompiledAction,
    LoopBlock,
    ScriptPlan,
)
from scriptrecorder.core.types import Action, ActionKind

logger = logging.getLogger(__name__)

_SEGMENT_TAG = re.compile(r"^([a-zA-Z][a-zA-Z0-9-]*)")
_POSITION = re.compile(r":nth-of-type\(\d+\)")

_CHILD = ">"
_DESCENDANT = " "

_ROW_TAG = "tr"
_TABLE_ROW_SELECTOR = "tr:has(td)"


def relative_locator(subject: str, locator: str) -> str | None:
    """
    Locator of ``locator`` relative to the loop subject, or None when the
    action is not inside the subject.

    ``subject > x`` and ``subject x`` are contained; ``subject`` itself yields
    an empty relative locator (the row).
    """
    if not subject or not locator.startswith(subject):
        return None
    rest = locator[len(subject):]
    if not rest:
        return ""
    if rest[0] not in " >":
        # e.g. "table.results-2" or "table.results:nth-of-type(2)"
        return None
    return rest.lstrip(" >")


def is_direct_child_path(subject: str, locator: str) -> bool:
    """True when ``locator`` continues ``subject`` with a child combinator."""
    return locator[len(subject):].lstrip().startswith(_CHILD)


def compound_selectors(path: str) -> list[tuple[str, str]]:
    """
    Split a CSS path into ``(combinator, compound)`` pairs.

    The combinator is ``">"`` or ``" "``, and ``""`` for the first compound.
    Escapes, quoted strings and bracketed or parenthesised parts are kept
    whole, so ``a\\>b`` and ``:has(> td)`` stay single compounds.
    """
    compounds: list[tuple[str, str]] = []
    combinator = ""
    buf: list[str] = []
    depth = 0
    quote: str | None = None

    def flush() -> None:
        compounds.append((combinator, "".join(buf)))
        buf.clear()

    i = 0
    while i < len(path):
        ch = path[i]
        if ch == "\\" and i + 1 < len(path):
            buf.append(path[i:i + 2])
            i += 2
            continue
        if quote:
            buf.append(ch)
            if ch == quote:
                quote = None
        elif ch in "\"'":
            quote = ch
            buf.append(ch)
        elif ch in "([":
            depth += 1
            buf.append(ch)
        elif ch in ")]":
            depth -= 1
            buf.append(ch)
        elif depth == 0 and ch.isspace():
            if buf:
                flush()
                combinator = _DESCENDANT
        elif depth == 0 and ch == _CHILD:
            if buf:
                flush()
            combinator = _CHILD
        else:
            buf.append(ch)
        i += 1
    if buf:
        flush()
    return compounds


def _join(compounds: list[tuple[str, str]]) -> str:
    parts: list[str] = []
    for combinator, compound in compounds:
        if parts:
            parts.append(" > " if combinator == _CHILD else " ")
        parts.append(compound)
    return "".join(parts)


def split_row_path(relative: str, direct_child: bool = True) -> tuple[str | None, str]:
    """
    Strip the row-indexing part of a subject-relative locator.

    Returns ``(row_selector, locator_within_row)``; ``row_selector`` is None
    when the path does not say what a row is.

    A ``tr`` compound makes ``tr:has(td)`` the row. Otherwise the outermost
    compound carrying a positional qualifier is the row, and the row
    selector is the path down to it with that qualifier removed, anchored
    on the container with the combinator that was captured
    (``direct_child``). Without any qualifier the first compound is taken.
    """
    compounds = compound_selectors(relative)
    if not compounds:
        return None, ""

    for i in range(len(compounds) - 1, -1, -1):
        match = _SEGMENT_TAG.match(compounds[i][1])
        if match and match.group(1).lower() == _ROW_TAG:
            return _TABLE_ROW_SELECTOR, _join(compounds[i + 1:])

    row_index = next(
        (i for i, (_, compound) in enumerate(compounds) if _POSITION.search(compound)),
        None,
    )
    if row_index is None:
        if len(compounds) == 1:
            return None, compounds[0][1]
        row_index = 0

    combinator, row = compounds[row_index]
    path = compounds[:row_index] + [(combinator, _POSITION.sub("", row))]
    anchor = " > " if direct_child else " "
    return f":scope{anchor}{_join(path)}", _join(compounds[row_index + 1:])


class _OpenLoop:
    """Pass state while a loop boundary is open."""

    def __init__(self, subject: str) -> None:
        self.block = LoopBlock(subject=subject)
        self.row_selector: str | None = None
        self.current_click: int | None = None

    def note_row_selector(self, row_selector: str | None) -> None:
        if row_selector is None:
            return
        if self.row_selector is None:
            self.row_selector = row_selector
        elif row_selector != self.row_selector:
            logger.debug(
                "Loop %s: keeping row selector %r over %r",
                self.block.subject, self.row_selector, row_selector,
            )

    def close(self) -> LoopBlock:
        self.block.row_selector = self.row_selector or DEFAULT_ROW_SELECTOR
        return self.block


class ScriptPlanner:
    """Classifies each action as top-level work or loop-body / post-click work."""

    def plan(self, actions: Iterable[Action], base_url: str = "") -> ScriptPlan:
        plan = ScriptPlan(base_url=base_url)
        loop: _OpenLoop | None = None

        for position, action in enumerate(actions):
            plan.action_count += 1
            kind = action.kind

            if kind == ActionKind.TABLE_LOOP_START:
                if loop is not None:
                    logger.warning(
                        "Action %d: table loop already open on %s; ignoring start on %s",
                        position, loop.block.subject, action.locator,
                    )
                    plan.skipped += 1
                    continue
                loop = _OpenLoop(action.locator)
                continue

            if kind == ActionKind.TABLE_PAGINATION_NEXT:
                if loop is None:
                    logger.warning("Action %d: pagination marker outside a table loop; skipped", position)
                    plan.skipped += 1
                    continue
                loop.block.pagination = action.locator
                continue

            if kind == ActionKind.TABLE_LOOP_END:
                if loop is None:
                    logger.warning("Action %d: table loop end without a start; skipped", position)
                    plan.skipped += 1
                    continue
                plan.steps.append(loop.close())
                loop = None
                continue

            if loop is None:
                plan.steps.append(plan.add(self._node(action)))
                continue

            self._add_to_loop(plan, loop, action)

        if loop is not None:
            logger.warning("Table loop on %s was never closed; closing it at end of log", loop.block.subject)
            plan.steps.append(loop.close())

        return plan

    def _add_to_loop(self, plan: ScriptPlan, loop: _OpenLoop, action: Action) -> None:
        relative = relative_locator(loop.block.subject, action.locator)

        if relative is not None:
            row_selector, within_row = split_row_path(
                relative, direct_child=is_direct_child_path(loop.block.subject, action.locator)
            )
            loop.note_row_selector(row_selector)
            index = plan.add(self._node(action, locator=within_row, relative=True))
            loop.block.body.append(index)
            if action.kind == ActionKind.CLICK:
                loop.current_click = index
            return

        # Outside the subject: happened on the page reached by the last row click
        index = plan.add(self._node(action))
        if loop.current_click is None:
            loop.block.body.append(index)
        else:
            plan.nodes[loop.current_click].post_clicks.append(index)

    @staticmethod
    def _node(action: Action, locator: str | None = None, relative: bool = False) -> CompiledAction:
        return CompiledAction(
            kind=action.kind,
            locator=action.locator if locator is None else locator,
            value=action.value,
            label=action.label,
            relative=relative,
        )
