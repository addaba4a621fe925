"""Ordered, append-only log of recorded actions and its wire format."""

from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any, Iterable, Iterator

from scriptrecorder.core.types import Action, ActionKind

logger = logging.getLogger(__name__)

# Keys used by logs exported from the browser extension
_LEGACY_KEYS = {"type": "kind", "selector": "locator"}


class ActionLogError(ValueError):
    """Raised for records that do not match the Action Log wire shape."""


def action_from_record(record: dict[str, Any]) -> Action:
    """Build an Action from one wire record ``{kind, locator, value?, label?, timestamp}``."""
    if not isinstance(record, dict):
        raise ActionLogError(f"Action record must be an object, got {type(record).__name__}")

    data = dict(record)
    for legacy, key in _LEGACY_KEYS.items():
        if key not in data and legacy in data:
            data[key] = data.pop(legacy)

    raw_kind = data.get("kind")
    try:
        kind = ActionKind(raw_kind)
    except ValueError:
        raise ActionLogError(f"Unknown action kind: {raw_kind!r}") from None

    locator = data.get("locator")
    if not isinstance(locator, str):
        raise ActionLogError(f"Action {kind.value!r} has no locator")

    value = data.get("value")
    label = data.get("label")
    try:
        timestamp = float(data.get("timestamp") or 0.0)
    except (TypeError, ValueError):
        raise ActionLogError(f"Invalid timestamp: {data.get('timestamp')!r}") from None

    return Action(
        kind=kind,
        locator=locator,
        value=None if value is None else str(value),
        label=None if label is None else str(label),
        timestamp=timestamp,
    )


class ActionLog:
    """
    Ordered sequence of recorded actions.

    Sequence order is the only execution order: nothing reorders entries.
    The log is mutated through append() (which owns the coalescing rule)
    and clear().
    """

    def __init__(self, actions: Iterable[Action] | None = None, base_url: str = "") -> None:
        self.base_url = base_url
        self._actions: list[Action] = []
        for action in actions or ():
            self.append(action)

    def __len__(self) -> int:
        return len(self._actions)

    def __iter__(self) -> Iterator[Action]:
        return iter(self._actions)

    def __getitem__(self, index: int) -> Action:
        return self._actions[index]

    def append(self, action: Action, coalesce: bool = False) -> Action:
        """
        Append an action and return the entry actually stored.

        With ``coalesce=True`` trailing entries of the same kind on the same
        locator are dropped first, so repeated edits collapse into the
        latest value.
        """
        if not action.locator:
            raise ValueError(f"Cannot record {action.kind.value!r} action without a locator")

        if coalesce:
            while self._actions:
                last = self._actions[-1]
                if last.kind != action.kind or last.locator != action.locator:
                    break
                self._actions.pop()
                logger.debug("Coalesced %s on %s", action.kind.value, action.locator)

        if self._actions and action.timestamp < self._actions[-1].timestamp:
            action = dataclasses.replace(action, timestamp=self._actions[-1].timestamp)

        self._actions.append(action)
        return action

    def clear(self) -> None:
        self._actions = []
        self.base_url = ""

    def snapshot(self) -> tuple[Action, ...]:
        """Immutable view of the current log, safe to hand to the compiler."""
        return tuple(self._actions)

    # ------------------------------------------------------------------
    # Wire format
    # ------------------------------------------------------------------

    def to_records(self) -> list[dict[str, Any]]:
        return [a.to_dict() for a in self._actions]

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]], base_url: str = "") -> ActionLog:
        log = cls(base_url=base_url)
        for index, record in enumerate(records):
            try:
                action = action_from_record(record)
            except ActionLogError as exc:
                raise ActionLogError(f"record {index}: {exc}") from None
            if not action.locator:
                raise ActionLogError(f"record {index}: empty locator")
            log.append(action)
        return log

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(
            {"baseUrl": self.base_url, "actions": self.to_records()},
            indent=indent,
            ensure_ascii=False,
        )

    @classmethod
    def from_json(cls, text: str) -> ActionLog:
        """
        Parse a serialized log.

        Accepts either a bare list of records or an object with ``actions``
        and an optional ``baseUrl``.
        """
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ActionLogError(f"Invalid JSON: {exc}") from None

        if isinstance(payload, list):
            return cls.from_records(payload)
        if isinstance(payload, dict) and isinstance(payload.get("actions", []), list):
            return cls.from_records(
                payload.get("actions", []), base_url=str(payload.get("baseUrl") or "")
            )
        raise ActionLogError("Expected a list of actions or an object with an 'actions' list")
