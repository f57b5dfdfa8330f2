"""Script graph model, loader and node classification."""

from .classify import HOST_NODE_TYPES, TARGET_NODE_TYPES, NodePlacement, classify_node, is_host_node
from .models import (
    EVENT_NODE_TYPES,
    LOOP_NODE_TYPES,
    Connection,
    Port,
    PortDirection,
    PortKind,
    Script,
    ScriptNode,
    ScriptVariable,
    is_event_type,
    is_loop_type,
    load_script_json,
    validate_script,
)

__all__ = [
    "Connection",
    "EVENT_NODE_TYPES",
    "HOST_NODE_TYPES",
    "LOOP_NODE_TYPES",
    "NodePlacement",
    "Port",
    "PortDirection",
    "PortKind",
    "Script",
    "ScriptNode",
    "ScriptVariable",
    "TARGET_NODE_TYPES",
    "classify_node",
    "is_event_type",
    "is_host_node",
    "is_loop_type",
    "load_script_json",
    "validate_script",
]
