"""Variable node adapters (declare / set / get).

These nodes read and write the invocation's variable bindings. Bindings are
seeded from the script's persistent state and written back only when the
invocation succeeds, so a write here is durable only after a clean finish.

Nodes refer to declared variables by id (`variableId`) so renaming a variable
does not break the graph; the id is used as the name when no declaration
matches.
"""

from __future__ import annotations

from typing import Dict

from ...core.errors import InvalidConfig
from ...core.value import Value
from ...script.models import ScriptNode
from ..context import ExecutionContext, NodeOutput


def _variable_id(node: ScriptNode) -> str:
    var_id = node.config_str("variableId")
    if not var_id:
        raise InvalidConfig("variableId required")
    return var_id


def declare_variable(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Bind `variableName` to `initialValue`, else the `inlineValue` literal, else Null."""
    name = node.config_str("variableName")
    if not name:
        raise InvalidConfig("variableName required")

    if "initialValue" in inputs:
        value = inputs["initialValue"]
    else:
        inline = node.config_str("inlineValue")
        value = Value.string(inline) if inline else Value.null()

    ctx.declare_variable(name, value)
    return NodeOutput.flow("exec", {"value": value})


def set_variable(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    name = ctx.resolve_variable_name(_variable_id(node))
    value = inputs.get("value", Value.null())
    ctx.set_variable(name, value)
    return NodeOutput.flow("exec", {"value": value})


def get_variable(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    name = ctx.resolve_variable_name(_variable_id(node))
    return NodeOutput.single("value", ctx.get_variable(name))
