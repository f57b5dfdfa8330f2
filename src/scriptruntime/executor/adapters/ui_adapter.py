"""UI node adapters: read and write the shared component-value store."""

from __future__ import annotations

from typing import Dict

from ...core.errors import InvalidConfig
from ...core.value import Value
from ...script.models import ScriptNode
from ..context import ExecutionContext, NodeOutput


def _component_id(node: ScriptNode) -> str:
    component_id = node.config_str("componentId")
    if not component_id:
        raise InvalidConfig("componentId required")
    return component_id


async def ui_get_value(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    component_id = _component_id(node)
    value = await ctx.get_ui_value(component_id)
    return NodeOutput(values={"value": value, "componentId": Value.string(component_id)})


async def ui_set_value(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    component_id = _component_id(node)
    await ctx.set_ui_value(component_id, inputs.get("value", Value.null()))
    return NodeOutput.flow("exec")
