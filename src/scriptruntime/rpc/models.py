"""scriptruntime.rpc.models

Wire models for Target node dispatch and for the JSON-RPC 2.0 envelope used by
`HttpRpcCaller`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class TargetNodeRequest(BaseModel):
    """The single argument passed to the remote node-dispatch method."""

    id: int
    node_type: str
    config: Dict[str, Any] = Field(default_factory=dict)
    inputs: Dict[str, Any] = Field(default_factory=dict)


class TargetNodeResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    success: bool
    outputs: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class JsonRpcError(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: int = 0
    message: str = ""
    data: Any = None


class JsonRpcRequest(BaseModel):
    jsonrpc: str = "2.0"
    id: Union[int, str]
    method: str
    params: List[Any] = Field(default_factory=list)


class JsonRpcResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jsonrpc: str = "2.0"
    id: Optional[Union[int, str]] = None
    result: Any = None
    error: Optional[JsonRpcError] = None
