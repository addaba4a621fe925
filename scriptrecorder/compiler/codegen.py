"""Renders a ScriptPlan as a standalone Playwright Python script."""

from __future__ import annotations

from scriptrecorder.compiler.types import CompiledAction, LoopBlock, ScriptPlan
from scriptrecorder.config import RecorderConfig
from scriptrecorder.core.types import ActionKind

_INDENT = "    "

_HELPERS_SOURCE = '''\
async def find_element(scope, selector, timeout=WAIT_TIMEOUT):
    """Wait (bounded) for the first element matching selector under scope."""
    loc = scope.locator(selector).first
    await loc.wait_for(state="attached", timeout=timeout)
    return loc


async def wait_for_page(page, selector, timeout=WAIT_TIMEOUT):
    """Block until the page shows selector again after a navigation."""
    await page.wait_for_load_state("domcontentloaded")
    await page.locator(selector).first.wait_for(state="attached", timeout=timeout)


async def run_step(name, step, page, data):
    """Run one top-level step, retrying before giving up."""
    for attempt in range(1, MAX_RETRIES + 1):
        try:
            await step(page, data)
            return
        except Exception as exc:
            logger.warning("%s failed (attempt %d/%d): %s", name, attempt, MAX_RETRIES, exc)
            if attempt == MAX_RETRIES:
                raise
'''

_ROW_HELPER_SOURCE = '''\
async def current_row(page, subject, rows_selector, index):
    """Re-resolve the row at index from a freshly fetched row list."""
    container = await find_element(page, subject)
    row = container.locator(rows_selector).nth(index)
    await row.wait_for(state="attached", timeout=WAIT_TIMEOUT)
    return row


async def return_to_list(page, subject, list_url, max_steps=5):
    """Go back to the row list, however many pages the row's actions moved on."""
    for _ in range(max_steps):
        if page.url == list_url:
            break
        await page.go_back()
    if page.url != list_url:
        await page.goto(list_url)
    await wait_for_page(page, subject)
'''

_PAGINATION_HELPER_SOURCE = '''\
async def pagination_available(page, selector):
    """True when the pagination control exists, is enabled and not marked exhausted."""
    button = page.locator(selector)
    if await button.count() == 0:
        return False
    button = button.first
    if not await button.is_visible() or not await button.is_enabled():
        return False
    if (await button.get_attribute("aria-disabled") or "").lower() == "true":
        return False
    classes = (await button.get_attribute("class") or "").split()
    return not any(c in ("disabled", "is-disabled", "inactive") for c in classes)


async def first_row_handle(page, subject, rows_selector):
    rows = (await find_element(page, subject)).locator(rows_selector)
    if await rows.count() == 0:
        return None
    return await rows.first.element_handle()


async def wait_for_next_page(page, subject, old_row):
    """Wait until the rows shown before the pagination click are gone."""
    if old_row is not None:
        try:
            await page.wait_for_function("row => !row.isConnected", arg=old_row, timeout=WAIT_TIMEOUT)
        except Exception as exc:
            # A full navigation destroys the handle's context: the rows are gone
            logger.debug("pagination wait ended: %s", exc)
    await wait_for_page(page, subject)
'''


def quote(text: str) -> str:
    """Render ``text`` as a double-quoted Python string literal."""
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def _comment(text: str) -> str:
    return " ".join(text.split())


def _indent(lines: list[str], depth: int) -> list[str]:
    prefix = _INDENT * depth
    return [prefix + line if line else line for line in lines]


def _action_lines(node: CompiledAction, scope: str, sink: str) -> list[str]:
    """Locate-and-act statements for one compiled action."""
    if node.relative and not node.locator:
        lines = ["el = row"]
    else:
        lines = [f"el = await find_element({scope}, {quote(node.locator)})"]

    kind = node.kind
    if kind == ActionKind.CLICK:
        lines.append("await el.click()")
    elif kind == ActionKind.INPUT:
        lines.append(f"await el.fill({quote(node.value or '')})")
    elif kind == ActionKind.SELECT:
        lines.append(f"await el.select_option(label={quote(node.value or '')})")
    else:
        key = node.label or node.locator
        lines.append(f"{sink}[{quote(key)}] = (await el.inner_text()).strip()")
    return lines


class ScriptGenerator:
    """Emits bootstrap, step functions, run_workflow() and a __main__ block."""

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self._config = config or RecorderConfig()

    def render(self, plan: ScriptPlan) -> str:
        loops = plan.loops
        parts: list[str] = []

        # 1. Docstring
        parts.append(
            '"""\n'
            "Recorded browser workflow.\n\n"
            f"actions: {plan.action_count}\n"
            f"steps: {len(plan.steps)}\n"
            f"table loops: {len(loops)}\n"
            '"""'
        )

        # 2. Imports
        parts.append(
            "from __future__ import annotations\n\n"
            "import argparse\n"
            "import asyncio\n"
            "import json\n"
            "import logging\n\n"
            "from playwright.async_api import async_playwright"
        )

        # 3. Configuration
        parts.append(
            f"BASE_URL = {quote(plan.base_url)}\n"
            f"HEADLESS = {bool(self._config.headless)!r}\n"
            f"WAIT_TIMEOUT = {int(self._config.wait_timeout_ms)}\n"
            f"MAX_RETRIES = {int(self._config.max_retries)}\n"
            f"MAX_PAGES = {int(self._config.max_pages)}\n\n"
            'logger = logging.getLogger("recorded_workflow")'
        )

        # 4. Helpers
        helpers = [_HELPERS_SOURCE.rstrip("\n")]
        if loops:
            helpers.append(_ROW_HELPER_SOURCE.rstrip("\n"))
        if any(loop.pagination for loop in loops):
            helpers.append(_PAGINATION_HELPER_SOURCE.rstrip("\n"))
        parts.append("\n\n\n".join(helpers))

        # 5. Step functions
        for index, step in enumerate(plan.steps):
            if isinstance(step, LoopBlock):
                parts.append(self._loop_function(index, step, plan))
            else:
                parts.append(self._step_function(index, plan.nodes[step]))

        # 6. run_workflow
        parts.append(self._run_workflow(plan))

        # 7. __main__ block
        parts.append(
            'if __name__ == "__main__":\n'
            '    parser = argparse.ArgumentParser(description="Replay a recorded browser workflow.")\n'
            '    parser.add_argument("--base-url", default=BASE_URL)\n'
            '    parser.add_argument("--headless", action="store_true", default=HEADLESS)\n'
            '    parser.add_argument("--verbose", action="store_true")\n'
            "    args = parser.parse_args()\n"
            "    logging.basicConfig(\n"
            "        level=logging.DEBUG if args.verbose else logging.INFO,\n"
            '        format="%(asctime)s %(levelname)s %(message)s",\n'
            "    )\n"
            "    result = asyncio.run(run_workflow(base_url=args.base_url, headless=args.headless))\n"
            "    print(json.dumps(result, indent=2, ensure_ascii=False))"
        )

        return "\n\n\n".join(parts) + "\n"

    # ------------------------------------------------------------------
    # Step functions
    # ------------------------------------------------------------------

    @staticmethod
    def _step_function(index: int, node: CompiledAction) -> str:
        lines = [f"async def step_{index}(page, data):"]
        lines.append(f"{_INDENT}# {node.kind.value}: {_comment(node.locator)}")
        lines.extend(_indent(_action_lines(node, "page", 'data["fields"]'), 1))
        return "\n".join(lines)

    def _loop_function(self, index: int, loop: LoopBlock, plan: ScriptPlan) -> str:
        lines = [
            f"async def step_{index}(page, data):",
            f"    # table loop over {_comment(loop.subject)}",
            f"    subject = {quote(loop.subject)}",
            f"    rows_selector = {quote(loop.row_selector)}",
            "    records = []",
            '    data["tables"].append(records)',
        ]

        row_pass = self._row_pass(loop, plan)

        if loop.pagination:
            lines.append(f"    next_selector = {quote(loop.pagination)}")
            lines.append("    for page_number in range(1, MAX_PAGES + 1):")
            lines.extend(_indent(row_pass, 2))
            lines.extend([
                "        if not await pagination_available(page, next_selector):",
                "            break",
                "        old_row = await first_row_handle(page, subject, rows_selector)",
                "        await (await find_element(page, next_selector)).click()",
                "        await wait_for_next_page(page, subject, old_row)",
            ])
        else:
            lines.append("    page_number = 1")
            lines.extend(_indent(row_pass, 1))

        return "\n".join(lines)

    def _row_pass(self, loop: LoopBlock, plan: ScriptPlan) -> list[str]:
        """Enumerate the current rows and run the loop body on each."""
        body: list[str] = [
            "row = await current_row(page, subject, rows_selector, index)",
            "record = {}",
        ]
        for node_index in loop.body:
            node = plan.nodes[node_index]
            scope = "row" if node.relative else "page"
            body.extend(_action_lines(node, scope, "record"))
            if node.kind == ActionKind.CLICK and node.post_clicks:
                body.append('await page.wait_for_load_state("domcontentloaded")')
                for post_index in node.post_clicks:
                    body.extend(_action_lines(plan.nodes[post_index], "page", "record"))
                body.extend([
                    "await return_to_list(page, subject, list_url)",
                    "row = await current_row(page, subject, rows_selector, index)",
                ])
        body.extend(["records.append(record)", "break"])

        return [
            "await wait_for_page(page, subject)",
            "list_url = page.url",
            "row_count = await (await find_element(page, subject)).locator(rows_selector).count()",
            "for index in range(row_count):",
            "    for attempt in range(1, MAX_RETRIES + 1):",
            "        try:",
            *_indent(body, 3),
            "        except Exception as exc:",
            "            logger.warning(",
            '                "row %d on page %d failed (attempt %d/%d): %s",',
            "                index + 1, page_number, attempt, MAX_RETRIES, exc,",
            "            )",
            "            await return_to_list(page, subject, list_url)",
            "    else:",
            '        logger.error("Skipping row %d on page %d", index + 1, page_number)',
        ]

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    @staticmethod
    def _run_workflow(plan: ScriptPlan) -> str:
        lines = [
            "async def run_workflow(page=None, base_url=BASE_URL, headless=HEADLESS):",
            '    """Run the recorded workflow. If page is None, creates its own browser."""',
            '    data = {"fields": {}, "tables": []}',
            "    _own_browser = page is None",
            "    _playwright = None",
            "    _browser = None",
            "    try:",
            "        if _own_browser:",
            "            _playwright = await async_playwright().start()",
            "            _browser = await _playwright.chromium.launch(headless=headless)",
            "            page = await _browser.new_page()",
            "        if base_url:",
            "            await page.goto(base_url)",
        ]
        for index, step in enumerate(plan.steps):
            if isinstance(step, LoopBlock):
                lines.append(f"        await step_{index}(page, data)")
            else:
                lines.append(f'        await run_step("step_{index}", step_{index}, page, data)')
        lines.extend([
            "    finally:",
            "        if _own_browser and _browser:",
            "            await _browser.close()",
            "        if _own_browser and _playwright:",
            "            await _playwright.stop()",
            "    return data",
        ])
        return "\n".join(lines)
