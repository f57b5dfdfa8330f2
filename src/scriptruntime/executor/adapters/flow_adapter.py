"""Flow-control node adapters (if, switch, delay, break, continue).

These pick which Flow output the executor follows next. Loop nodes are not here:
they drive repeated body execution and are run by the executor itself.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List

from ...core.errors import BreakSignal, ContinueSignal, InvalidOperation
from ...core.value import Value
from ...script.models import ScriptNode
from ..context import ExecutionContext, NodeOutput


def if_branch(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    condition = inputs["condition"].is_truthy() if "condition" in inputs else False
    return NodeOutput.flow("true" if condition else "false")


def _case_values(node: ScriptNode) -> List[str]:
    raw = node.config.get("caseValues")
    if not isinstance(raw, list):
        return []
    return [c if isinstance(c, str) else Value.from_json(c).to_display() for c in raw]


def switch_branch(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    """Follow `case{i}` for the first case string equal to the value's display form, else `default`."""
    text = ctx.display(inputs.get("value", Value.null()))
    for i, case in enumerate(_case_values(node)):
        if case == text:
            return NodeOutput.flow(f"case{i}")
    return NodeOutput.flow("default")


async def delay(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    ms = inputs["ms"].as_int() if "ms" in inputs else None
    if ms is None:
        ms = node.config_int("ms")
    if ms is None:
        ms = ctx.config.delay_default_ms
    # Cancellation of the invocation interrupts the sleep.
    await asyncio.sleep(max(0, ms) / 1000.0)
    return NodeOutput.flow("exec")


def break_loop(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    if not ctx.in_loop:
        raise InvalidOperation("break outside of loop")
    raise BreakSignal()


def continue_loop(node: ScriptNode, inputs: Dict[str, Value], ctx: ExecutionContext) -> NodeOutput:
    if not ctx.in_loop:
        raise InvalidOperation("continue outside of loop")
    raise ContinueSignal()
