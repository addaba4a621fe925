"""Unit tests for the action stores."""

from __future__ import annotations

import json
import os
import tempfile

from scriptrecorder.capture.store import JsonActionStore, MemoryActionStore
from scriptrecorder.core.types import Action, ActionKind


def make_input(value, locator="#search", timestamp=1.0) -> Action:
    return Action(kind=ActionKind.INPUT, locator=locator, value=value, timestamp=timestamp)


class TestJsonActionStore:
    def setup_method(self):
        self.store_dir = tempfile.mkdtemp()
        self.store = JsonActionStore(self.store_dir)
        self.changes = []
        self.store.subscribe(lambda key, old, new: self.changes.append((key, old, new)))

    async def test_load_empty_store(self):
        data = await self.store.load()
        assert data == {"baseUrl": "", "actions": [], "isRecording": False}

    async def test_append_writes_file(self):
        await self.store.append(make_input("a"), base_url="https://example.com")
        assert os.path.exists(self.store.path)
        with open(self.store.path, encoding="utf-8") as f:
            data = json.load(f)
        assert data["baseUrl"] == "https://example.com"
        assert data["actions"][0]["locator"] == "#search"

    async def test_append_coalesces_like_the_log(self):
        await self.store.append(make_input("a"), coalesce=True)
        await self.store.append(make_input("ab", timestamp=2.0), coalesce=True)
        log = await self.store.load_log()
        assert len(log) == 1
        assert log[0].value == "ab"

    async def test_base_url_kept_from_first_action(self):
        await self.store.append(make_input("a"), base_url="https://first.test")
        await self.store.append(make_input("b", locator="#other"), base_url="https://second.test")
        data = await self.store.load()
        assert data["baseUrl"] == "https://first.test"

    async def test_subscribers_see_changed_keys(self):
        await self.store.set_recording(True)
        await self.store.append(make_input("a"))
        keys = [key for key, _, _ in self.changes]
        assert keys == ["isRecording", "actions"]
        assert self.changes[0] == ("isRecording", False, True)

    async def test_unchanged_value_is_not_notified(self):
        await self.store.set_recording(False)
        assert self.changes == []

    async def test_reset_clears_actions(self):
        await self.store.append(make_input("a"), base_url="https://example.com")
        await self.store.set_recording(True)
        await self.store.reset()
        data = await self.store.load()
        assert data["actions"] == []
        assert data["baseUrl"] == ""
        assert data["isRecording"] is True

    async def test_reopened_store_sees_persisted_actions(self):
        await self.store.append(make_input("a"))
        reopened = JsonActionStore(self.store_dir)
        log = await reopened.load_log()
        assert [a.locator for a in log] == ["#search"]

    async def test_corrupt_file_starts_empty(self):
        with open(self.store.path, "w", encoding="utf-8") as f:
            f.write("{not json")
        data = await self.store.load()
        assert data["actions"] == []


class TestMemoryActionStore:
    async def test_load_returns_copy(self):
        store = MemoryActionStore()
        await store.append(make_input("a"))
        data = await store.load()
        data["actions"].clear()
        assert len((await store.load())["actions"]) == 1
