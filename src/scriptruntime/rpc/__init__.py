"""Target node execution over RPC."""

from .bridge import NoOpRpcCaller, RpcBridge, RpcCaller
from .http_caller import HttpRpcCaller, RpcCallError
from .models import JsonRpcError, JsonRpcRequest, JsonRpcResponse, TargetNodeRequest, TargetNodeResponse

__all__ = [
    "RpcBridge",
    "RpcCaller",
    "NoOpRpcCaller",
    "HttpRpcCaller",
    "RpcCallError",
    "TargetNodeRequest",
    "TargetNodeResponse",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "JsonRpcError",
]
