"""Core value, error and configuration types."""

from .config import EngineConfig
from .errors import (
    BreakSignal,
    ContinueSignal,
    ControlFlowSignal,
    ConversionError,
    CycleDetected,
    DivisionByZero,
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
    ValueTypeError,
    VariableNotFound,
)
from .value import Value, ValueKind, compare_values, zero_value_for

__all__ = [
    "EngineConfig",
    "Value",
    "ValueKind",
    "compare_values",
    "zero_value_for",
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
