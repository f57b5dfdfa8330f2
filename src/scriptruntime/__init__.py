"""
scriptruntime

Event-driven interpreter for visual scripts: graphs of typed nodes joined by
flow and value connections. Host nodes run in-process; Target nodes are
dispatched to a remote agent over a pluggable RPC caller.
"""

from .core import (
    BreakSignal,
    ContinueSignal,
    ControlFlowSignal,
    ConversionError,
    CycleDetected,
    DivisionByZero,
    EngineConfig,
    ExecutorError,
    IndexOutOfBounds,
    InvalidConfig,
    InvalidOperation,
    LoopLimitExceeded,
    NodeNotFound,
    NotAttached,
    PortNotFound,
    ReturnSignal,
    RpcError,
    RpcTimeout,
    UIComponentNotFound,
    Value,
    ValueKind,
    ValueTypeError,
    VariableNotFound,
)
from .executor import (
    ExecutionContext,
    ExecutionResult,
    NodeOutput,
    Notification,
    NotificationLevel,
    NotificationStream,
    ScriptExecutor,
)
from .logging import configure_logging, get_logger
from .rpc import HttpRpcCaller, NoOpRpcCaller, RpcBridge, RpcCaller
from .script import (
    Connection,
    NodePlacement,
    Port,
    PortDirection,
    PortKind,
    Script,
    ScriptNode,
    ScriptVariable,
    classify_node,
    load_script_json,
    validate_script,
)
from .storage import (
    InMemoryScriptStateStore,
    InMemoryUIValueStore,
    JsonFileScriptStateStore,
    ScriptStateStore,
    UIValueStore,
)

__version__ = "0.1.0"

__all__ = [
    # Values and configuration
    "Value",
    "ValueKind",
    "EngineConfig",
    # Script model
    "Script",
    "ScriptNode",
    "ScriptVariable",
    "Port",
    "PortKind",
    "PortDirection",
    "Connection",
    "NodePlacement",
    "classify_node",
    "load_script_json",
    "validate_script",
    # Execution
    "ScriptExecutor",
    "ExecutionResult",
    "ExecutionContext",
    "NodeOutput",
    "Notification",
    "NotificationLevel",
    "NotificationStream",
    # RPC
    "RpcBridge",
    "RpcCaller",
    "NoOpRpcCaller",
    "HttpRpcCaller",
    # Storage
    "ScriptStateStore",
    "UIValueStore",
    "InMemoryScriptStateStore",
    "InMemoryUIValueStore",
    "JsonFileScriptStateStore",
    # Logging
    "configure_logging",
    "get_logger",
    # Errors
    "ExecutorError",
    "ControlFlowSignal",
    "BreakSignal",
    "ContinueSignal",
    "ReturnSignal",
    "NodeNotFound",
    "PortNotFound",
    "VariableNotFound",
    "UIComponentNotFound",
    "ValueTypeError",
    "ConversionError",
    "DivisionByZero",
    "IndexOutOfBounds",
    "InvalidOperation",
    "InvalidConfig",
    "LoopLimitExceeded",
    "CycleDetected",
    "NotAttached",
    "RpcError",
    "RpcTimeout",
]
