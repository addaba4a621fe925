"""Script compiler public API."""

from scriptrecorder.compiler.codegen import ScriptGenerator, quote
from scriptrecorder.compiler.planner import ScriptPlanner, relative_locator, split_row_path
from scriptrecorder.compiler.synthesizer import ScriptSynthesizer
from scriptrecorder.compiler.types import (
    DEFAULT_ROW_SELECTOR,
    CompiledAction,
    LoopBlock,
    ScriptPlan,
)

__all__ = [
    "DEFAULT_ROW_SELECTOR",
    "CompiledAction",
    "LoopBlock",
    "ScriptGenerator",
    "ScriptPlan",
    "ScriptPlanner",
    "ScriptSynthesizer",
    "quote",
    "relative_locator",
    "split_row_path",
]
