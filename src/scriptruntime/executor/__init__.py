"""Script execution: context, node handlers and the orchestrating executor."""

from .context import ExecutionContext, LoopFrame, NodeOutput
from .executor import ExecutionResult, ScriptExecutor
from .notifications import Notification, NotificationLevel, NotificationStream
from .registry import HOST_HANDLERS, get_host_handler

__all__ = [
    "ExecutionContext",
    "ExecutionResult",
    "HOST_HANDLERS",
    "LoopFrame",
    "NodeOutput",
    "Notification",
    "NotificationLevel",
    "NotificationStream",
    "ScriptExecutor",
    "get_host_handler",
]
