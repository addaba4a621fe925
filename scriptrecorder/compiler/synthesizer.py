"""Script synthesizer: action log -> standalone Playwright script."""

from __future__ import annotations

import logging
from typing import Iterable

from scriptrecorder.compiler.codegen import ScriptGenerator
from scriptrecorder.compiler.planner import ScriptPlanner
from scriptrecorder.compiler.types import ScriptPlan
from scriptrecorder.config import RecorderConfig
from scriptrecorder.core.action_log import ActionLog
from scriptrecorder.core.types import Action

logger = logging.getLogger(__name__)


class ScriptSynthesizer:
    """
    Compiles a finished action log into script source.

    Pure and deterministic: no I/O, no timestamps or generated ids in the
    output, so compiling the same log twice gives identical text.
    """

    def __init__(self, config: RecorderConfig | None = None) -> None:
        self._planner = ScriptPlanner()
        self._generator = ScriptGenerator(config)

    def plan(self, log: ActionLog | Iterable[Action], base_url: str | None = None) -> ScriptPlan:
        actions = log.snapshot() if isinstance(log, ActionLog) else tuple(log)
        if base_url is None:
            base_url = log.base_url if isinstance(log, ActionLog) else ""
        return self._planner.plan(actions, base_url=base_url)

    def compile(self, log: ActionLog | Iterable[Action], base_url: str | None = None) -> str:
        """
        Compile ``log`` into a script.

        ``base_url`` overrides the URL recorded with the log.
        """
        plan = self.plan(log, base_url=base_url)
        if plan.skipped:
            logger.warning("Skipped %d out-of-order boundary action(s)", plan.skipped)
        logger.debug(
            "Compiled %d actions into %d steps (%d table loops)",
            plan.action_count, len(plan.steps), len(plan.loops),
        )
        return self._generator.render(plan)
