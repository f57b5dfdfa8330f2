"""Output node adapters (log, notify).

Both append to the invocation's log buffer (returned in the execution result) and
emit on the `scriptruntime.script` logger. `notify` also publishes to the
notification stream when the host provided one.
"""

from __future__ import annotations

from typing import Dict

from ...core.value import Value
from ...logging import SCRIPT_LOGGER_NAME, get_logger
from ...script.models import ScriptNode
from ..context import ExecutionContext, NodeOutput
from ..notifications import Notification, NotificationLevel

script_logger = get_logger(SCRIPT_LOGGER_NAME)


def log(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    message = ctx.display(inputs["message"]) if "message" in inputs else "(empty)"
    script_logger.info(message, script_id=ctx.script.id, node_id=node.id)
    ctx.add_log(message)
    return NodeOutput.flow("exec")


def notify(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    title = ctx.display(inputs["title"]) if "title" in inputs else "Notification"
    message = ctx.display(inputs["message"]) if "message" in inputs else ""
    level = NotificationLevel.parse(node.config_str("level"))

    emit = {
        NotificationLevel.WARNING: script_logger.warning,
        NotificationLevel.ERROR: script_logger.error,
    }.get(level, script_logger.info)
    emit(message, title=title, script_id=ctx.script.id, node_id=node.id, notification=True)

    ctx.add_log(f"[{level.value.upper()}] {title}: {message}")
    if ctx.notifications is not None:
        ctx.notifications.publish(
            Notification(
                title=title,
                message=message,
                level=level,
                script_id=ctx.script.id,
                node_id=node.id,
            )
        )
    return NodeOutput.flow("exec")
