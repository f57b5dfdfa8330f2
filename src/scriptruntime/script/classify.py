"""Node placement: which side of the bridge evaluates a node type.

Host nodes run inside the engine; Target nodes are shipped to the remote process
through the RPC bridge. Unknown node types are Target so the remote side reports
an explicit "unknown node" error instead of the host silently producing nothing.
"""

from __future__ import annotations

from enum import Enum
from typing import FrozenSet


class NodePlacement(str, Enum):
    HOST = "host"
    TARGET = "target"


HOST_NODE_TYPES: FrozenSet[str] = frozenset(
    {
        # Events (entry points)
        "event_ui",
        "event_attach",
        "event_detach",
        "event_hotkey",
        "event_interval",
        "event_hook",
        "event_memory_watch",
        # Constants
        "const_string",
        "const_number",
        "const_boolean",
        "const_pointer",
        # Flow control
        "if",
        "switch",
        "for_each",
        "for_range",
        "loop",
        "break",
        "continue",
        "delay",
        # Variables
        "declare_variable",
        "set_variable",
        "get_variable",
        # Sequences / maps
        "array_create",
        "array_get",
        "array_set",
        "array_push",
        "array_length",
        "array_find",
        "object_get",
        "object_set",
        "object_keys",
        # Math / logic / strings
        "math",
        "compare",
        "logic",
        "string_format",
        "string_concat",
        "to_string",
        "parse_int",
        "parse_float",
        "to_pointer",
        # User functions
        "function_define",
        "function_call",
        "function_return",
        # Output
        "log",
        "notify",
        # UI
        "ui_get_value",
        "ui_set_value",
        "ui_get_props",
        # Process control (handled by the embedding shell)
        "process_attach",
        "process_detach",
        "process_spawn",
        "process_is_attached",
    }
)

# Listed for documentation and tests; anything not in HOST_NODE_TYPES is Target.
TARGET_NODE_TYPES: FrozenSet[str] = frozenset(
    {
        "memory_scan",
        "memory_read",
        "memory_write",
        "memory_freeze",
        "memory_alloc",
        "memory_protect",
        "pointer_add",
        "pointer_read",
        "pointer_write",
        "get_module",
        "find_symbol",
        "get_base_address",
        "enumerate_modules",
        "enumerate_exports",
        "call_native",
        "native_callback",
        "interceptor_attach",
        "interceptor_replace",
        "interceptor_detach",
        "read_arg",
        "write_arg",
        "read_retval",
        "replace_retval",
    }
)


def classify_node(node_type: str) -> NodePlacement:
    if node_type in HOST_NODE_TYPES:
        return NodePlacement.HOST
    return NodePlacement.TARGET


def is_host_node(node_type: str) -> bool:
    return classify_node(node_type) is NodePlacement.HOST
