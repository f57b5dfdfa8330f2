"""scriptruntime.core.errors

Error taxonomy for script execution.

Every error renders with its taxonomy identifier first (e.g.
`"DivisionByZero: division by zero"`, `"RpcTimeout(50): RPC timeout after 50ms"`)
so hosts can match on the identifier without importing the classes.

Control-flow signals (`BreakSignal`, `ContinueSignal`, `ReturnSignal`) share the
hierarchy so they travel through the same `raise` path as real failures, but
they are caught by their enclosing construct and never reach the host.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .value import Value


class ExecutorError(Exception):
    """Base class for every engine error."""

    kind = "ExecutorError"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message

    @property
    def identifier(self) -> str:
        return self.kind

    @property
    def is_control_flow(self) -> bool:
        return False

    @property
    def is_recoverable(self) -> bool:
        return False

    def __str__(self) -> str:
        if self.message:
            return f"{self.identifier}: {self.message}"
        return self.identifier


class NodeNotFound(ExecutorError):
    kind = "NodeNotFound"

    def __init__(self, node_id: str):
        super().__init__(f"node not found: {node_id}")
        self.node_id = node_id


class PortNotFound(ExecutorError):
    kind = "PortNotFound"

    def __init__(self, node_id: str, port_id: str):
        super().__init__(f"port not found: {node_id}.{port_id}")
        self.node_id = node_id
        self.port_id = port_id


class VariableNotFound(ExecutorError):
    kind = "VariableNotFound"

    def __init__(self, name: str):
        super().__init__(f"variable not found: {name}")
        self.name = name

    @property
    def is_recoverable(self) -> bool:
        return True


class UIComponentNotFound(ExecutorError):
    kind = "UIComponentNotFound"

    def __init__(self, component_id: str):
        super().__init__(f"UI component not found: {component_id}")
        self.component_id = component_id


class ValueTypeError(ExecutorError):
    """Runtime type mismatch (taxonomy identifier: `TypeError`)."""

    kind = "TypeError"

    def __init__(self, expected: str, actual: str):
        super().__init__(f"expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual

    @property
    def is_recoverable(self) -> bool:
        return True


class ConversionError(ExecutorError):
    kind = "ConversionError"

    def __init__(self, from_type: str, to_type: str):
        super().__init__(f"cannot convert {from_type} to {to_type}")
        self.from_type = from_type
        self.to_type = to_type


class DivisionByZero(ExecutorError):
    kind = "DivisionByZero"

    def __init__(self) -> None:
        super().__init__("division by zero")


class IndexOutOfBounds(ExecutorError):
    kind = "IndexOutOfBounds"

    def __init__(self, index: int, length: int):
        super().__init__(f"index {index} out of bounds (length: {length})")
        self.index = index
        self.length = length

    @property
    def is_recoverable(self) -> bool:
        return True


class InvalidOperation(ExecutorError):
    kind = "InvalidOperation"


class InvalidConfig(ExecutorError):
    kind = "InvalidConfig"


class LoopLimitExceeded(ExecutorError):
    kind = "LoopLimitExceeded"

    def __init__(self, limit: int):
        super().__init__(f"loop iteration limit exceeded: {limit}")
        self.limit = limit

    @property
    def identifier(self) -> str:
        return f"{self.kind}({self.limit})"


class CycleDetected(ExecutorError):
    kind = "CycleDetected"

    def __init__(self, node_id: str):
        super().__init__(f"execution cycle detected at node {node_id}")
        self.node_id = node_id

    @property
    def identifier(self) -> str:
        return f"{self.kind}({self.node_id})"


class NotAttached(ExecutorError):
    kind = "NotAttached"

    def __init__(self) -> None:
        super().__init__("not attached to any process")


class RpcError(ExecutorError):
    kind = "RpcError"

    @property
    def identifier(self) -> str:
        return f"{self.kind}({self.message})"

    def __str__(self) -> str:
        return self.identifier


class RpcTimeout(ExecutorError):
    kind = "RpcTimeout"

    def __init__(self, timeout_ms: int):
        super().__init__(f"RPC timeout after {timeout_ms}ms")
        self.timeout_ms = timeout_ms

    @property
    def identifier(self) -> str:
        return f"{self.kind}({self.timeout_ms})"


class Internal(ExecutorError):
    kind = "Internal"


class ControlFlowSignal(ExecutorError):
    """Raised by flow-control nodes; handled by the enclosing loop or function frame."""

    @property
    def is_control_flow(self) -> bool:
        return True


class BreakSignal(ControlFlowSignal):
    kind = "BreakSignal"


class ContinueSignal(ControlFlowSignal):
    kind = "ContinueSignal"


class ReturnSignal(ControlFlowSignal):
    kind = "ReturnSignal"

    def __init__(self, value: Optional["Value"] = None):
        super().__init__()
        self.value = value


def describe_error(error: BaseException) -> str:
    """Render any exception the way results report it."""
    if isinstance(error, ExecutorError):
        return str(error)
    name = type(error).__name__
    text = str(error)
    return str(Internal(f"{name}: {text}" if text else name))


__all__ = [
    "ExecutorError",
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
    "Internal",
    "ControlFlowSignal",
    "BreakSignal",
    "ContinueSignal",
    "ReturnSignal",
    "describe_error",
]
