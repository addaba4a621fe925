"""Connects a live Playwright page to a RecordingSession."""

from __future__ import annotations

import json
import logging
from typing import Any

from playwright.async_api import Page

from scriptrecorder.capture.dom import TARGET_MARKER, event_from_payload
from scriptrecorder.capture.session import RecordingSession

logger = logging.getLogger(__name__)

_BINDING_NAME = "__scriptRecorderEmit"

# Forwards interaction events with a snapshot of the document. The target is
# marked with TARGET_MARKER while the snapshot is taken. Hover events are only
# forwarded while Alt or Control is involved, which is when a table or a label
# target is being picked.
#
# Shortcuts: F2 toggles the table loop, F3 skips the pagination control, F4
# opens a name box for the field the label gesture pinned. The box carries
# the ignore class so typing into it is not recorded.
_LISTENER_TEMPLATE = """
(() => {
    if (window.__scriptRecorderInstalled) return;
    window.__scriptRecorderInstalled = true;

    const BINDING = "%(binding)s";
    const MARKER = "%(marker)s";
    const IGNORE = %(ignore)s;
    let altHeld = false;
    let labelArmed = false;

    function snapshot(target) {
        if (!(target instanceof Element)) return null;
        target.setAttribute(MARKER, "");
        try {
            return document.documentElement.outerHTML;
        } finally {
            target.removeAttribute(MARKER);
        }
    }

    function send(type, event, extra) {
        const target = event.target;
        const payload = Object.assign({
            type: type,
            url: window.location.href,
            key: event.key || "",
        }, extra || {});
        if (target instanceof Element) {
            payload.html = snapshot(target);
            payload.cursor = getComputedStyle(target).cursor;
            payload.tabIndex = target.tabIndex;
            if ("value" in target) payload.value = String(target.value);
            if (target.tagName === "SELECT" && target.selectedIndex >= 0) {
                payload.selectedText = target.options[target.selectedIndex].text.trim();
            }
        }
        window[BINDING](payload);
    }

    function askLabel() {
        const box = document.createElement("input");
        box.className = IGNORE;
        box.placeholder = "Field label (Enter to save, Esc to cancel)";
        box.style.cssText = "position:fixed;top:8px;right:8px;z-index:2147483647;padding:4px;";
        box.addEventListener("keydown", (e) => {
            if (e.key === "Enter") {
                const name = box.value;
                box.remove();
                window.__scriptRecorderAssignLabel(name).then((saved) => {
                    if (saved) labelArmed = false;
                });
            } else if (e.key === "Escape") {
                box.remove();
            }
        });
        document.body.appendChild(box);
        box.focus();
    }

    const SHORTCUTS = {
        F2: () => window.__scriptRecorderToggleLoop().then((caption) => console.info(caption)),
        F3: () => window.__scriptRecorderSkipPagination().then((caption) => console.info(caption)),
        F4: askLabel,
    };

    document.addEventListener("click", (e) => send("click", e), true);
    document.addEventListener("input", (e) => send("input", e), true);
    document.addEventListener("change", (e) => {
        if (e.target instanceof HTMLSelectElement) send("change", e);
    }, true);
    document.addEventListener("keydown", (e) => {
        if (SHORTCUTS[e.key]) {
            e.preventDefault();
            SHORTCUTS[e.key]();
        } else if (e.key === "Alt") {
            altHeld = true;
            e.preventDefault();
            send("keydown", {target: null, key: e.key});
        }
    }, true);
    document.addEventListener("keyup", (e) => {
        if (e.key === "Alt") {
            altHeld = false;
            send("keyup", {target: null, key: e.key});
        } else if (e.key === "Control") {
            labelArmed = !labelArmed;
            send("keyup", {target: null, key: e.key});
        }
    }, true);
    document.addEventListener("mouseover", (e) => {
        if (altHeld || labelArmed) send("mouseover", e);
    }, true);
})();
"""


class PageBridge:
    """
    Installs the in-page listener and feeds its events to the session.

    Usage:
        bridge = PageBridge(session)
        await bridge.attach(page)
    """

    def __init__(self, session: RecordingSession) -> None:
        self._session = session
        self._pages: list[Page] = []
        self.script = _LISTENER_TEMPLATE % {
            "binding": _BINDING_NAME,
            "marker": TARGET_MARKER,
            "ignore": json.dumps(session.config.ignore_class),
        }

    async def attach(self, page: Page) -> None:
        if page in self._pages:
            return
        await page.expose_binding(_BINDING_NAME, self._on_event)
        # Controls for the overlay's table-loop toggle and label tooltip
        await page.expose_function("__scriptRecorderToggleLoop", self._toggle_loop)
        await page.expose_function("__scriptRecorderSkipPagination", self._skip_pagination)
        await page.expose_function("__scriptRecorderAssignLabel", self._assign_label)
        # Survives navigations; evaluate covers the already-loaded document
        await page.add_init_script(self.script)
        await page.evaluate(self.script)
        self._pages.append(page)
        logger.info("Recorder attached to %s", page.url)

    def _on_event(self, source: Any, payload: dict[str, Any]) -> None:
        try:
            event = event_from_payload(payload)
        except ValueError as exc:
            logger.warning("Dropping malformed event: %s", exc)
            return
        action = self._session.handle_event(event)
        if action is not None:
            logger.info("%s %s", action.kind.value, action.locator)

    def _toggle_loop(self) -> str:
        """Returns the toggle's new caption."""
        self._session.toggle_table_loop()
        return self._session.toggle_label

    def _skip_pagination(self) -> str:
        self._session.skip_pagination()
        return self._session.toggle_label

    def _assign_label(self, name: str) -> bool:
        return self._session.assign_label(str(name)) is not None
