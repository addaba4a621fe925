"""Shared types for recorded actions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ActionKind(str, Enum):
    CLICK = "click"
    INPUT = "input"
    SELECT = "select"
    LABEL = "label"
    TABLE_LOOP_START = "tableLoopStart"
    TABLE_LOOP_END = "tableLoopEnd"
    TABLE_PAGINATION_NEXT = "tablePaginationNext"


@dataclass(frozen=True)
class Action:
    """One semantically meaningful recorded interaction."""

    kind: ActionKind
    locator: str
    value: str | None = None
    label: str | None = None  # only set on LABEL actions
    timestamp: float = 0.0  # ordering/debugging only

    def to_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {"kind": self.kind.value, "locator": self.locator}
        if self.value is not None:
            record["value"] = self.value
        if self.label is not None:
            record["label"] = self.label
        record["timestamp"] = self.timestamp
        return record
