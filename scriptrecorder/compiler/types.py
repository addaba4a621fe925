"""Script compiler type definitions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from scriptrecorder.core.types import ActionKind

# Rows of a loop subject when the recorded locators do not reveal them
DEFAULT_ROW_SELECTOR = "tr:has(td), [role='row']"


@dataclass
class CompiledAction:
    kind: ActionKind
    locator: str  # row-relative when ``relative`` is set, absolute otherwise
    value: str | None = None
    label: str | None = None
    relative: bool = False
    post_clicks: list[int] = field(default_factory=list)  # arena indices


@dataclass
class LoopBlock:
    subject: str
    pagination: str | None = None
    row_selector: str = DEFAULT_ROW_SELECTOR
    body: list[int] = field(default_factory=list)  # arena indices


Step = Union[int, LoopBlock]


@dataclass
class ScriptPlan:
    """
    Result of the planning pass.

    ``nodes`` is an arena of CompiledAction; ``steps`` lists top-level work in
    execution order, each either an arena index or a LoopBlock whose body and
    post-click lists refer back into the arena.
    """

    base_url: str = ""
    nodes: list[CompiledAction] = field(default_factory=list)
    steps: list[Step] = field(default_factory=list)
    action_count: int = 0
    skipped: int = 0

    def add(self, node: CompiledAction) -> int:
        self.nodes.append(node)
        return len(self.nodes) - 1

    @property
    def loops(self) -> list[LoopBlock]:
        return [s for s in self.steps if isinstance(s, LoopBlock)]
