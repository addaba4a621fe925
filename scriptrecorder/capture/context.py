"""Explicit per-session recording state."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from bs4 import Tag


class LoopPhase(str, Enum):
    INACTIVE = "inactive"
    SELECTING = "selecting"
    SELECTING_NEXT_BUTTON = "selecting_next_button"
    ACTIVE = "active"

    @property
    def label(self) -> str:
        """Caption of the table-loop toggle control in this phase."""
        return _PHASE_LABELS[self]

    @property
    def loop_open(self) -> bool:
        """True once a tableLoopStart has been emitted and not yet closed."""
        return self in (LoopPhase.SELECTING_NEXT_BUTTON, LoopPhase.ACTIVE)


_PHASE_LABELS = {
    LoopPhase.INACTIVE: "TableLoop",
    LoopPhase.SELECTING: "Select Table...",
    LoopPhase.SELECTING_NEXT_BUTTON: "Select Next Button...",
    LoopPhase.ACTIVE: "TableLoop (Active)",
}


@dataclass
class PinnedElement:
    """Element the label tooltip is fixed on."""

    locator: str
    text: str


@dataclass
class SessionContext:
    """
    Recording state owned by a RecordingSession and passed by reference to
    the classifier-driven handlers and the table-loop state machine.

    The loop subject is kept as a locator and re-resolved in each snapshot;
    element handles from an earlier snapshot are never reused.
    """

    recording: bool = False
    base_url: str = ""
    loop_phase: LoopPhase = LoopPhase.INACTIVE
    loop_subject: str | None = None
    modifier_held: bool = False
    marked_table: str | None = None
    highlighted_table: Tag | None = None
    highlighted_element: Tag | None = None
    label_mode: bool = False
    pinned: PinnedElement | None = None

    def reset(self) -> None:
        self.recording = False
        self.base_url = ""
        self.loop_phase = LoopPhase.INACTIVE
        self.loop_subject = None
        self.modifier_held = False
        self.marked_table = None
        self.highlighted_table = None
        self.highlighted_element = None
        self.label_mode = False
        self.pinned = None
