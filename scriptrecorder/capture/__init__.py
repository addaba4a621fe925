"""Recording-time components: classification, selectors, table loops, session."""

from scriptrecorder.capture.bridge import PageBridge
from scriptrecorder.capture.classifier import InteractionClassifier
from scriptrecorder.capture.context import LoopPhase, PinnedElement, SessionContext
from scriptrecorder.capture.dom import DomEvent, event_from_payload, parse_document
from scriptrecorder.capture.selectors import SelectorSynthesizer
from scriptrecorder.capture.session import RecordingSession
from scriptrecorder.capture.store import BaseActionStore, JsonActionStore, MemoryActionStore
from scriptrecorder.capture.table_loop import TableLoopStateMachine

__all__ = [
    "BaseActionStore",
    "DomEvent",
    "InteractionClassifier",
    "JsonActionStore",
    "LoopPhase",
    "MemoryActionStore",
    "PageBridge",
    "PinnedElement",
    "RecordingSession",
    "SelectorSynthesizer",
    "SessionContext",
    "TableLoopStateMachine",
    "event_from_payload",
    "parse_document",
]
