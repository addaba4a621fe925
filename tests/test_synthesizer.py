"""Unit tests for ScriptSynthesizer (pure, no browser required)."""

from __future__ import annotations

import ast

from scriptrecorder.compiler.codegen import quote
from scriptrecorder.compiler.synthesizer import ScriptSynthesizer
from scriptrecorder.config import RecorderConfig
from scriptrecorder.core.action_log import ActionLog
from scriptrecorder.core.types import Action, ActionKind

ROW_LINK = "table.results > tbody > tr:nth-of-type(1) > td:nth-of-type(3) > a.details"
ROW_NAME = "table.results tr:nth-of-type(1) > td.name:nth-of-type(1)"


def act(kind, locator, value=None, label=None, timestamp=0.0) -> Action:
    return Action(kind=kind, locator=locator, value=value, label=label, timestamp=timestamp)


def simple_log() -> ActionLog:
    return ActionLog(
        [
            act(ActionKind.INPUT, "#search", value="cats"),
            act(ActionKind.SELECT, "#sort", value="Age"),
            act(ActionKind.CLICK, "#login"),
        ],
        base_url="https://example.com/list",
    )


def loop_log(pagination: bool = False, drill_in: bool = False) -> ActionLog:
    actions = [act(ActionKind.TABLE_LOOP_START, "table.results")]
    if pagination:
        actions.append(act(ActionKind.TABLE_PAGINATION_NEXT, "a.next"))
    actions.append(act(ActionKind.LABEL, ROW_NAME, value="Alice", label="Name"))
    if drill_in:
        actions.append(act(ActionKind.CLICK, ROW_LINK))
        actions.append(act(ActionKind.LABEL, ".detail-title", value="Alice A.", label="Title"))
    actions.append(act(ActionKind.TABLE_LOOP_END, "table.results"))
    return ActionLog(actions, base_url="https://example.com/list")


def function_names(source: str) -> set[str]:
    tree = ast.parse(source)
    return {
        node.name
        for node in ast.walk(tree)
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef))
    }


class TestScriptSynthesizer:
    def setup_method(self):
        self.synth = ScriptSynthesizer()

    # ------------------------------------------------------------------ structure

    def test_output_is_valid_python(self):
        ast.parse(self.synth.compile(simple_log()))

    def test_bootstrap_and_teardown_present(self):
        src = self.synth.compile(simple_log())
        assert "from playwright.async_api import async_playwright" in src
        assert "await _browser.close()" in src
        assert "await _playwright.stop()" in src
        assert 'if __name__ == "__main__":' in src
        assert {"find_element", "wait_for_page", "run_step", "run_workflow"} <= function_names(src)

    def test_each_action_located_then_acted_on(self):
        src = self.synth.compile(simple_log())
        assert src.count('find_element(page, "#login")') == 1
        assert src.count("await el.click()") == 1
        assert 'await el.fill("cats")' in src
        assert 'await el.select_option(label="Age")' in src

    def test_every_step_acts_on_its_element(self):
        log = ActionLog([*simple_log(), act(ActionKind.LABEL, ".title", value="T", label="Title")])
        tree = ast.parse(self.synth.compile(log))
        steps = [
            node for node in ast.walk(tree)
            if isinstance(node, ast.AsyncFunctionDef) and node.name.startswith("step_")
        ]
        assert len(steps) == 4
        for step in steps:
            assert len(step.body) == 2
            assert not any(isinstance(stmt, ast.Pass) for stmt in step.body)

    def test_steps_run_in_recorded_order(self):
        src = self.synth.compile(simple_log())
        assert src.index('run_step("step_0"') < src.index('run_step("step_1"') < src.index('run_step("step_2"')
        assert {"step_0", "step_1", "step_2"} <= function_names(src)

    def test_base_url_from_log(self):
        src = self.synth.compile(simple_log())
        assert 'BASE_URL = "https://example.com/list"' in src

    def test_base_url_override(self):
        src = self.synth.compile(simple_log(), base_url="https://staging.example.com")
        assert 'BASE_URL = "https://staging.example.com"' in src

    def test_config_values_are_emitted(self):
        config = RecorderConfig(wait_timeout_ms=2500, max_pages=7, max_retries=5, headless=True)
        src = ScriptSynthesizer(config).compile(simple_log())
        assert "WAIT_TIMEOUT = 2500" in src
        assert "MAX_PAGES = 7" in src
        assert "MAX_RETRIES = 5" in src
        assert "HEADLESS = True" in src

    def test_deterministic(self):
        log = loop_log(pagination=True, drill_in=True)
        assert self.synth.compile(log) == self.synth.compile(log)

    def test_timestamps_do_not_affect_output(self):
        early = ActionLog([act(ActionKind.CLICK, "#login", timestamp=1.0)])
        late = ActionLog([act(ActionKind.CLICK, "#login", timestamp=99999.0)])
        assert self.synth.compile(early) == self.synth.compile(late)

    def test_empty_log_is_valid(self):
        src = self.synth.compile(ActionLog())
        ast.parse(src)
        assert "run_workflow" in function_names(src)
        assert "step_0" not in src

    def test_accepts_plain_action_sequence(self):
        src = self.synth.compile(list(simple_log()))
        assert 'BASE_URL = ""' in src

    # ------------------------------------------------------------------ escaping

    def test_quotes_and_backslashes_are_escaped(self):
        log = ActionLog([
            act(ActionKind.INPUT, 'input[name="q"]', value='say "hi" \\ bye\nnow'),
        ])
        src = self.synth.compile(log)
        ast.parse(src)
        assert quote('input[name="q"]') in src
        assert quote('say "hi" \\ bye\nnow') in src

    def test_quote_round_trips_through_python_literal(self):
        text = 'a "b" \\c\td\r\n'
        assert ast.literal_eval(quote(text)) == text

    def test_newline_in_locator_does_not_break_comment(self):
        log = ActionLog([act(ActionKind.CLICK, "div.a\n.b")])
        ast.parse(self.synth.compile(log))

    # ------------------------------------------------------------------ table loops

    def test_loop_without_pagination(self):
        src = self.synth.compile(loop_log())
        ast.parse(src)
        assert "pagination_available" not in src
        assert "wait_for_next_page" not in src
        assert "current_row" in function_names(src)
        assert 'rows_selector = "tr:has(td)"' in src
        assert 'el = await find_element(row, "td.name:nth-of-type(1)")' in src
        assert 'record["Name"] = (await el.inner_text()).strip()' in src
        assert "page_number = 1" in src

    def test_loop_with_pagination(self):
        src = self.synth.compile(loop_log(pagination=True))
        ast.parse(src)
        assert "pagination_available" in function_names(src)
        assert 'next_selector = "a.next"' in src
        assert "for page_number in range(1, MAX_PAGES + 1):" in src
        assert "old_row = await first_row_handle(page, subject, rows_selector)" in src
        assert "await wait_for_next_page(page, subject, old_row)" in src
        assert {"first_row_handle", "wait_for_next_page"} <= function_names(src)

    def test_loop_is_not_wrapped_in_run_step(self):
        src = self.synth.compile(loop_log())
        assert "await step_0(page, data)" in src
        assert 'run_step("step_0"' not in src

    def test_drill_in_actions_run_before_going_back(self):
        src = self.synth.compile(loop_log(drill_in=True))
        ast.parse(src)
        click_at = src.index('find_element(row, "td:nth-of-type(3) > a.details")')
        detail_at = src.index('find_element(page, ".detail-title")')
        back_at = src.index("await return_to_list(page, subject, list_url)", click_at)
        assert click_at < detail_at < back_at
        assert 'record["Title"]' in src

    def test_drill_in_with_further_navigation_returns_to_list(self):
        log = ActionLog([
            act(ActionKind.TABLE_LOOP_START, "table.results"),
            act(ActionKind.CLICK, ROW_LINK),
            act(ActionKind.CLICK, "a.more"),
            act(ActionKind.LABEL, ".extra", value="x", label="Extra"),
            act(ActionKind.TABLE_LOOP_END, "table.results"),
        ])
        src = self.synth.compile(log)
        ast.parse(src)
        more_at = src.index('find_element(page, "a.more")')
        extra_at = src.index('find_element(page, ".extra")')
        back_at = src.index("await return_to_list(page, subject, list_url)", more_at)
        assert more_at < extra_at < back_at
        # The only history step is inside the helper, which bounds it by the list url
        assert src.count("await page.go_back()") == 1
        helper = src[src.index("async def return_to_list"):src.index("async def step_0")]
        assert "if page.url == list_url:" in helper
        assert "await page.goto(list_url)" in helper

    def test_rows_are_retried_and_skipped(self):
        src = self.synth.compile(loop_log())
        assert "for attempt in range(1, MAX_RETRIES + 1):" in src
        assert "await return_to_list(page, subject, list_url)" in src
        assert 'logger.error("Skipping row %d on page %d"' in src

    def test_compact_child_locator_is_contained(self):
        log = ActionLog([
            act(ActionKind.TABLE_LOOP_START, "table.results"),
            act(ActionKind.LABEL, "table.results>td.name", value="Alice", label="Name"),
            act(ActionKind.TABLE_LOOP_END, "table.results"),
        ])
        src = self.synth.compile(log)
        assert 'find_element(row, "td.name")' in src
        assert "rows_selector = \"tr:has(td), [role='row']\"" in src
        assert "pagination_available" not in src

    def test_orphan_end_compiles(self):
        log = ActionLog([
            act(ActionKind.TABLE_LOOP_END, "table.results"),
            act(ActionKind.CLICK, "#login"),
        ])
        src = self.synth.compile(log)
        ast.parse(src)
        assert src.count("await el.click()") == 1
        assert "current_row" not in src

    def test_plan_exposes_loops(self):
        plan = self.synth.plan(loop_log(pagination=True))
        assert len(plan.loops) == 1
        assert plan.loops[0].pagination == "a.next"
        assert plan.base_url == "https://example.com/list"
