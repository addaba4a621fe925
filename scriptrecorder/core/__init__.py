from scriptrecorder.core.action_log import ActionLog, ActionLogError, action_from_record
from scriptrecorder.core.types import Action, ActionKind

__all__ = ["Action", "ActionKind", "ActionLog", "ActionLogError", "action_from_record"]
