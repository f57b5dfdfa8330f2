"""Flat `node_type -> handler` registry for Host nodes.

Adding a Host node kind is one entry here plus its handler. Event nodes and loop
nodes have no entry: events are primed by the executor and loops are driven by
it. Handlers may be plain functions or coroutines.
"""

from __future__ import annotations

from typing import Dict, Optional

from .adapters import flow_adapter, output_adapter, ui_adapter, variable_adapter
from .builtins import BUILTIN_HANDLERS, Handler

HOST_HANDLERS: Dict[str, Handler] = {
    **BUILTIN_HANDLERS,
    # Variables
    "declare_variable": variable_adapter.declare_variable,
    "set_variable": variable_adapter.set_variable,
    "get_variable": variable_adapter.get_variable,
    # UI
    "ui_get_value": ui_adapter.ui_get_value,
    "ui_set_value": ui_adapter.ui_set_value,
    # Output
    "log": output_adapter.log,
    "notify": output_adapter.notify,
    # Flow control
    "if": flow_adapter.if_branch,
    "switch": flow_adapter.switch_branch,
    "delay": flow_adapter.delay,
    "break": flow_adapter.break_loop,
    "continue": flow_adapter.continue_loop,
}


def get_host_handler(node_type: str) -> Optional[Handler]:
    return HOST_HANDLERS.get(node_type)
