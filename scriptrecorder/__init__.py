from scriptrecorder.capture.classifier import InteractionClassifier
from scriptrecorder.capture.context import LoopPhase, SessionContext
from scriptrecorder.capture.dom import DomEvent
from scriptrecorder.capture.selectors import SelectorSynthesizer
from scriptrecorder.capture.session import RecordingSession
from scriptrecorder.capture.table_loop import TableLoopStateMachine
from scriptrecorder.compiler.synthesizer import ScriptSynthesizer
from scriptrecorder.config import RecorderConfig, load_config_from_env
from scriptrecorder.core.action_log import ActionLog, ActionLogError
from scriptrecorder.core.types import Action, ActionKind

__all__ = [
    "Action",
    "ActionKind",
    "ActionLog",
    "ActionLogError",
    "DomEvent",
    "InteractionClassifier",
    "LoopPhase",
    "RecorderConfig",
    "RecordingSession",
    "ScriptSynthesizer",
    "SelectorSynthesizer",
    "SessionContext",
    "TableLoopStateMachine",
    "load_config_from_env",
]
