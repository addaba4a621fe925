"""Table-loop state machine: demarcates a repeating container and its pager."""

from __future__ import annotations

import logging
import time
from typing import Callable

from scriptrecorder.capture.classifier import InteractionClassifier
from scriptrecorder.capture.context import LoopPhase, SessionContext
from scriptrecorder.capture.dom import DomEvent
from scriptrecorder.capture.selectors import SelectorSynthesizer
from scriptrecorder.core.types import Action, ActionKind

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000


class TableLoopStateMachine:
    """
    INACTIVE -> SELECTING -> SELECTING_NEXT_BUTTON -> ACTIVE -> INACTIVE

    Boundary actions are handed to ``emit`` as they happen. Gestures with no
    valid transition in the current phase leave the state unchanged.
    """

    def __init__(
        self,
        emit: Callable[[Action], object],
        classifier: InteractionClassifier | None = None,
        synthesizer: SelectorSynthesizer | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self._emit = emit
        self._classifier = classifier or InteractionClassifier()
        self._synthesizer = synthesizer or SelectorSynthesizer()
        self._clock = clock

    # ------------------------------------------------------------------ toggle control

    def toggle(self, ctx: SessionContext) -> Action | None:
        phase = ctx.loop_phase

        if phase == LoopPhase.INACTIVE:
            ctx.loop_phase = LoopPhase.SELECTING
            return None

        if phase == LoopPhase.SELECTING:
            # Cancelled before a table was chosen: nothing was emitted
            ctx.loop_phase = LoopPhase.INACTIVE
            ctx.highlighted_table = None
            return None

        if phase in (LoopPhase.SELECTING_NEXT_BUTTON, LoopPhase.ACTIVE):
            action = None
            if ctx.loop_subject:
                action = self._boundary(ActionKind.TABLE_LOOP_END, ctx.loop_subject)
            ctx.loop_phase = LoopPhase.INACTIVE
            ctx.loop_subject = None
            return action

        raise AssertionError(f"unhandled loop phase {phase!r}")

    def skip_pagination(self, ctx: SessionContext) -> None:
        """Go straight to ACTIVE without a pagination control."""
        if ctx.loop_phase == LoopPhase.SELECTING_NEXT_BUTTON:
            ctx.loop_phase = LoopPhase.ACTIVE

    # ------------------------------------------------------------------ clicks

    def on_click(self, ctx: SessionContext, event: DomEvent) -> bool:
        """
        Handle a click for the loop workflow.

        Returns True when the click was consumed (it selected a table or a
        pagination control, or marked a table with the modifier held) and must
        not also be recorded as an ordinary click.
        """
        target = event.target
        if target is None:
            return False

        if ctx.modifier_held and ctx.loop_phase == LoopPhase.INACTIVE:
            return self._mark_table(ctx, event)

        if ctx.loop_phase == LoopPhase.SELECTING:
            table = self._classifier.find_table(target)
            if table is None:
                logger.debug("Click outside any table while selecting; ignored")
                return False
            self._open_loop(ctx, self._synthesizer.synthesize(table))
            return True

        if ctx.loop_phase == LoopPhase.SELECTING_NEXT_BUTTON:
            if not self._classifier.is_interactive(target, event):
                return False
            locator = self._synthesizer.synthesize(target)
            if not locator:
                return False
            self._boundary(ActionKind.TABLE_PAGINATION_NEXT, locator)
            ctx.loop_phase = LoopPhase.ACTIVE
            return True

        return False

    # ------------------------------------------------------------------ modifier gesture

    def modifier_down(self, ctx: SessionContext) -> None:
        ctx.modifier_held = True

    def on_hover(self, ctx: SessionContext, event: DomEvent) -> None:
        """Track the table under the pointer while a table can be picked."""
        if ctx.modifier_held or ctx.loop_phase == LoopPhase.SELECTING:
            ctx.highlighted_table = self._classifier.find_table(event.target)
        else:
            ctx.highlighted_table = None

    def modifier_up(self, ctx: SessionContext) -> Action | None:
        """Commit the table marked while the modifier was held, or abandon."""
        ctx.modifier_held = False
        ctx.highlighted_table = None
        marked, ctx.marked_table = ctx.marked_table, None
        if marked is None:
            return None
        if ctx.loop_phase != LoopPhase.INACTIVE:
            logger.warning("Table loop already in progress; ignoring quick table selection")
            return None
        return self._open_loop(ctx, marked)

    # ------------------------------------------------------------------ internals

    def _mark_table(self, ctx: SessionContext, event: DomEvent) -> bool:
        table = self._classifier.find_table(event.target)
        if table is None:
            return False
        ctx.marked_table = self._synthesizer.synthesize(table) or None
        return ctx.marked_table is not None

    def _open_loop(self, ctx: SessionContext, subject: str) -> Action | None:
        if not subject:
            return None
        ctx.loop_subject = subject
        ctx.loop_phase = LoopPhase.SELECTING_NEXT_BUTTON
        ctx.highlighted_table = None
        return self._boundary(ActionKind.TABLE_LOOP_START, subject)

    def _boundary(self, kind: ActionKind, locator: str) -> Action:
        action = Action(kind=kind, locator=locator, timestamp=self._clock())
        logger.info("Table loop: %s %s", kind.value, locator)
        self._emit(action)
        return action
