"""scriptruntime.rpc.bridge

Target node execution over a pluggable `RpcCaller`.

The bridge holds only the bound session id, the caller, the timeout and a
monotonic request counter. Each Target node becomes one call of the configured
method with a single `TargetNodeRequest` argument; the response outputs are
decoded back into Values.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, runtime_checkable

from pydantic import ValidationError

from ..core.config import DEFAULT_RPC_METHOD, DEFAULT_RPC_TIMEOUT_MS
from ..core.errors import ExecutorError, NotAttached, RpcError, RpcTimeout
from ..core.value import Value
from ..logging import get_logger
from ..script.models import ScriptNode
from .models import TargetNodeRequest, TargetNodeResponse

logger = get_logger(__name__)


@runtime_checkable
class RpcCaller(Protocol):
    """Remote call capability: `call(method, args)` returns the JSON result or raises."""

    async def call(self, method: str, args: List[Any]) -> Any: ...


class NoOpRpcCaller:
    """Caller used when nothing is connected; every call fails."""

    async def call(self, method: str, args: List[Any]) -> Any:
        raise RuntimeError(f"RPC call to '{method}' failed: no session connected")


class RpcBridge:
    def __init__(
        self,
        *,
        timeout_ms: int = DEFAULT_RPC_TIMEOUT_MS,
        method: str = DEFAULT_RPC_METHOD,
        caller: Optional[RpcCaller] = None,
    ):
        self._timeout_ms = int(timeout_ms)
        self._method = method
        self._caller = caller
        self._session_id: Optional[str] = None
        self._request_counter = 0
        self._lock = asyncio.Lock()

    # Session / caller

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    @property
    def caller(self) -> Optional[RpcCaller]:
        return self._caller

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    @property
    def method(self) -> str:
        return self._method

    def set_session(self, session_id: str) -> None:
        self._session_id = session_id

    def clear_session(self) -> None:
        # Dropping the session also drops the caller bound to it.
        self._session_id = None
        self._caller = None

    def set_rpc_caller(self, caller: RpcCaller) -> None:
        self._caller = caller

    def clear_rpc_caller(self) -> None:
        self._caller = None

    def set_timeout(self, timeout_ms: int) -> None:
        self._timeout_ms = int(timeout_ms)

    def is_connected(self) -> bool:
        return self._session_id is not None

    async def _next_request_id(self) -> int:
        async with self._lock:
            self._request_counter += 1
            return self._request_counter

    # Execution

    async def execute_target_node(self, node: ScriptNode, inputs: Dict[str, Value]) -> Dict[str, Value]:
        """Run one Target node remotely and return its decoded value outputs."""
        if self._session_id is None:
            raise NotAttached()

        request_id = await self._next_request_id()
        caller = self._caller
        if caller is None:
            raise RpcError("No RPC caller configured")

        request = TargetNodeRequest(
            id=request_id,
            node_type=node.node_type,
            config=dict(node.config),
            inputs={name: value.to_json() for name, value in inputs.items()},
        )
        logger.debug("rpc_call", request_id=request_id, node_type=node.node_type, node_id=node.id)

        raw = await self._call(caller, request)

        try:
            response = TargetNodeResponse.model_validate(raw)
        except ValidationError as e:
            raise RpcError(f"failed to parse response: {e}") from e

        if not response.success:
            raise RpcError(response.error or "Unknown RPC error")

        return {name: Value.from_json(v) for name, v in (response.outputs or {}).items()}

    async def _call(self, caller: RpcCaller, request: TargetNodeRequest) -> Any:
        pending = caller.call(self._method, [request.model_dump()])
        try:
            if self._timeout_ms > 0:
                return await asyncio.wait_for(pending, timeout=self._timeout_ms / 1000.0)
            return await pending
        except asyncio.TimeoutError:
            logger.warning(
                "rpc_timeout",
                request_id=request.id,
                node_type=request.node_type,
                timeout_ms=self._timeout_ms,
            )
            raise RpcTimeout(self._timeout_ms) from None
        except ExecutorError:
            raise
        except Exception as e:
            raise RpcError(str(e)) from e

    async def execute_batch(
        self, items: Sequence[Tuple[ScriptNode, Dict[str, Value]]]
    ) -> List[Dict[str, Value]]:
        """Execute several Target nodes one after another; the first failure aborts."""
        results: List[Dict[str, Value]] = []
        for node, inputs in items:
            results.append(await self.execute_target_node(node, inputs))
        return results
