"""Recording session: turns captured events into the action log."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from bs4 import Tag

from scriptrecorder.capture.classifier import InteractionClassifier
from scriptrecorder.capture.context import LoopPhase, PinnedElement, SessionContext
from scriptrecorder.capture.dom import DomEvent, document_of, element_text, is_descendant
from scriptrecorder.capture.selectors import SelectorSynthesizer
from scriptrecorder.capture.store import BaseActionStore
from scriptrecorder.capture.table_loop import TableLoopStateMachine
from scriptrecorder.config import RecorderConfig
from scriptrecorder.core.action_log import ActionLog
from scriptrecorder.core.types import Action, ActionKind

logger = logging.getLogger(__name__)

_MODIFIER_KEY = "Alt"
_LABEL_KEY = "Control"


def _now_ms() -> float:
    return time.time() * 1000


class RecordingSession:
    """
    Owns the session context, the in-memory action log and the helpers that
    act on them.

    Event handling is synchronous. Each recorded action is also appended to
    the store (when one is given) as a background task; the in-memory log is
    the source of truth while recording and the store catches up.
    """

    def __init__(
        self,
        config: RecorderConfig | None = None,
        store: BaseActionStore | None = None,
        clock: Callable[[], float] = _now_ms,
    ) -> None:
        self.config = config or RecorderConfig()
        self.context = SessionContext()
        self.log = ActionLog()
        self._store = store
        self._clock = clock
        self._pending: set[asyncio.Task] = set()
        self._classifier = InteractionClassifier(self.config)
        self._synthesizer = SelectorSynthesizer()
        self._table_loop = TableLoopStateMachine(
            emit=self._record,
            classifier=self._classifier,
            synthesizer=self._synthesizer,
            clock=clock,
        )

    # ------------------------------------------------------------------
    # Command surface
    # ------------------------------------------------------------------

    @property
    def recording(self) -> bool:
        return self.context.recording

    async def start(self, base_url: str = "") -> None:
        """Begin a session. Waits for the previous session's writes to land first."""
        await self.flush()
        self.context.reset()
        self.log.clear()
        self.context.base_url = base_url
        if self._store is not None:
            await self._store.reset()
            await self._store.set_recording(True)
        self.context.recording = True
        logger.info("Recording started%s", f" at {base_url}" if base_url else "")

    async def stop(self) -> tuple[Action, ...]:
        self.context.recording = False
        await self.flush()
        if self._store is not None:
            await self._store.set_recording(False)
        logger.info("Recording stopped with %d actions", len(self.log))
        return self.log.snapshot()

    def get_actions(self) -> tuple[Action, ...]:
        return self.log.snapshot()

    async def dispatch(self, command: str, **kwargs: Any) -> Any:
        """Run one of the controller commands: ``start``, ``stop`` or ``getActions``."""
        if command == "start":
            return await self.start(**kwargs)
        if command == "stop":
            return await self.stop()
        if command == "getActions":
            return [a.to_dict() for a in self.get_actions()]
        raise ValueError(f"Unknown command: {command!r}")

    async def flush(self) -> None:
        """Wait until every pending store write has been confirmed."""
        while self._pending:
            done = list(self._pending)
            results = await asyncio.gather(*done, return_exceptions=True)
            self._pending.difference_update(done)
            for result in results:
                if isinstance(result, Exception):
                    logger.error("Failed to persist action: %s", result)

    # ------------------------------------------------------------------
    # Overlay controls
    # ------------------------------------------------------------------

    @property
    def loop_phase(self) -> LoopPhase:
        return self.context.loop_phase

    @property
    def toggle_label(self) -> str:
        return self.context.loop_phase.label

    def toggle_table_loop(self) -> Action | None:
        if not self.recording:
            return None
        return self._table_loop.toggle(self.context)

    def skip_pagination(self) -> None:
        if self.recording:
            self._table_loop.skip_pagination(self.context)

    def assign_label(self, name: str) -> Action | None:
        """Record a ``label`` action for the element the label tooltip is fixed on."""
        pinned = self.context.pinned
        name = name.strip()
        if not self.recording or pinned is None or not name:
            return None
        action = self._record(
            Action(
                kind=ActionKind.LABEL,
                locator=pinned.locator,
                value=pinned.text,
                label=name,
                timestamp=self._clock(),
            )
        )
        self.context.label_mode = False
        self.context.pinned = None
        return action

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle_event(self, event: DomEvent) -> Action | None:
        """Classify one captured event and record the resulting action, if any."""
        if not self.recording:
            return None
        if event.url and not self.context.base_url:
            self.context.base_url = event.url

        if event.type == "keydown":
            if event.key == _MODIFIER_KEY:
                self._table_loop.modifier_down(self.context)
            return None

        if event.type == "keyup":
            return self._on_key_up(event)

        if event.type == "mouseover":
            self._on_hover(event)
            return None

        target = event.target
        if target is None or self._classifier.should_ignore(target):
            return None

        if event.type == "click":
            if self._table_loop.on_click(self.context, event):
                return None
            if self._classifier.classify(event) != ActionKind.CLICK:
                return None
            return self._record_on(target, ActionKind.CLICK)

        kind = self._classifier.classify(event)
        if kind == ActionKind.INPUT:
            return self._record_on(target, kind, value=event.value or "", coalesce=True)
        if kind == ActionKind.SELECT:
            value = event.selected_text
            if value is None:
                value = self._selected_option_text(target)
            logger.debug("Select %s: value=%r text=%r", target.name, event.value, value)
            return self._record_on(target, kind, value=value, coalesce=True)
        return None

    def _on_key_up(self, event: DomEvent) -> Action | None:
        if event.key == _MODIFIER_KEY:
            return self._table_loop.modifier_up(self.context)
        if event.key == _LABEL_KEY:
            # First release arms the label tooltip, the second one releases it
            if self.context.label_mode:
                self.context.label_mode = False
                self.context.pinned = None
            else:
                self.context.label_mode = True
        return None

    def _on_hover(self, event: DomEvent) -> None:
        ctx = self.context
        target = event.target
        ctx.highlighted_element = None
        if target is None or self._classifier.should_ignore(target):
            ctx.highlighted_table = None
            return
        self._table_loop.on_hover(ctx, event)
        if ctx.highlighted_table is not None:
            return
        if self._classifier.is_labelable(target):
            ctx.highlighted_element = target
            if ctx.label_mode and ctx.pinned is None:
                ctx.pinned = PinnedElement(self.locate(target), element_text(target))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def locate(self, element: Tag) -> str:
        """
        Locator for ``element``; inside the open loop subject the locator is
        anchored on the subject so it can be made row-relative later.
        """
        subject_locator = self.context.loop_subject
        if subject_locator and self.context.loop_phase.loop_open:
            subject = document_of(element).select_one(subject_locator)
            if subject is not None and is_descendant(element, subject):
                return self._synthesizer.synthesize_within(element, subject, subject_locator)
        return self._synthesizer.synthesize(element)

    def _record_on(
        self,
        element: Tag,
        kind: ActionKind,
        value: str | None = None,
        coalesce: bool = False,
    ) -> Action | None:
        locator = self.locate(element)
        if not locator:
            logger.debug("No locator for <%s>; %s not recorded", element.name, kind.value)
            return None
        return self._record(
            Action(kind=kind, locator=locator, value=value, timestamp=self._clock()),
            coalesce=coalesce,
        )

    def _record(self, action: Action, coalesce: bool = False) -> Action:
        if not self.log and not self.log.base_url:
            self.log.base_url = self.context.base_url
        stored = self.log.append(action, coalesce=coalesce)
        logger.debug("Recorded %s %s", stored.kind.value, stored.locator)
        if self._store is not None:
            self._persist(stored, coalesce)
        return stored

    def _persist(self, action: Action, coalesce: bool) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop; %s not persisted", action.kind.value)
            return
        task = loop.create_task(
            self._store.append(action, coalesce=coalesce, base_url=self.context.base_url)
        )
        self._pending.add(task)

    @staticmethod
    def _selected_option_text(select: Tag) -> str:
        option = select.find("option", selected=True) or select.find("option")
        return element_text(option) if option is not None else ""
