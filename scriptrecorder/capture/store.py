"""Key/value store for the action log and recording flag, with change notification."""

from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable

from scriptrecorder.core.action_log import ActionLog
from scriptrecorder.core.types import Action

logger = logging.getLogger(__name__)

_DEFAULT_STORE_DIR = os.path.join(os.path.expanduser("~"), ".scriptrecorder")

ChangeCallback = Callable[[str, Any, Any], None]


def _empty() -> dict[str, Any]:
    return {"baseUrl": "", "actions": [], "isRecording": False}


class BaseActionStore(ABC):
    """
    Stores three keys: ``actions`` (wire records), ``baseUrl`` and
    ``isRecording``. Subscribers are called with ``(key, old, new)`` for
    every key whose value changes.
    """

    def __init__(self) -> None:
        self._subscribers: list[ChangeCallback] = []
        self._lock: asyncio.Lock | None = None

    @abstractmethod
    def _read(self) -> dict[str, Any]: ...

    @abstractmethod
    def _write(self, data: dict[str, Any]) -> None: ...

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def subscribe(self, callback: ChangeCallback) -> None:
        self._subscribers.append(callback)

    async def load(self) -> dict[str, Any]:
        async with self._get_lock():
            return self._read()

    async def load_log(self) -> ActionLog:
        data = await self.load()
        return ActionLog.from_records(data["actions"], base_url=data["baseUrl"])

    async def append(self, action: Action, coalesce: bool = False, base_url: str = "") -> None:
        """Append one action, applying the same coalescing rule as ActionLog."""
        async with self._get_lock():
            data = self._read()
            log = ActionLog.from_records(data["actions"], base_url=data["baseUrl"])
            if not log and not log.base_url and base_url:
                log.base_url = base_url
            log.append(action, coalesce=coalesce)
            self._commit(data, {"actions": log.to_records(), "baseUrl": log.base_url})

    async def reset(self) -> None:
        async with self._get_lock():
            self._commit(self._read(), {"actions": [], "baseUrl": ""})

    async def set_recording(self, recording: bool) -> None:
        async with self._get_lock():
            self._commit(self._read(), {"isRecording": recording})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    def _commit(self, current: dict[str, Any], changes: dict[str, Any]) -> None:
        updated = {**current, **changes}
        self._write(updated)
        for key, new in changes.items():
            old = current.get(key)
            if old == new:
                continue
            for callback in self._subscribers:
                callback(key, old, new)


class MemoryActionStore(BaseActionStore):
    def __init__(self) -> None:
        super().__init__()
        self._data = _empty()

    def _read(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def _write(self, data: dict[str, Any]) -> None:
        self._data = copy.deepcopy(data)


class JsonActionStore(BaseActionStore):
    """
    Filesystem store.

    Directory layout::

        {store_dir}/
            actions.json   # {"baseUrl": ..., "actions": [...], "isRecording": ...}
    """

    def __init__(self, store_dir: str | None = None) -> None:
        super().__init__()
        self._dir = Path(store_dir or _DEFAULT_STORE_DIR)
        self._dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._dir / "actions.json"

    def _read(self) -> dict[str, Any]:
        data = _empty()
        try:
            with open(self.path, encoding="utf-8") as f:
                data.update(json.load(f))
        except FileNotFoundError:
            pass
        except json.JSONDecodeError:
            logger.warning("Corrupt store file %s; starting empty", self.path)
        return data

    def _write(self, data: dict[str, Any]) -> None:
        tmp = self.path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)
        logger.debug("Wrote %d actions to %s", len(data.get("actions", [])), self.path)
