"""scriptruntime.rpc.http_caller

An `RpcCaller` that posts JSON-RPC 2.0 requests to an HTTP endpoint.

Useful when the remote agent sits behind an HTTP gateway. The caller raises on
transport failures and on a JSON-RPC `error`; the bridge turns both into
`RpcError`.
"""

from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

import httpx

from .models import JsonRpcRequest, JsonRpcResponse


class RpcCallError(RuntimeError):
    """A JSON-RPC call completed but the server reported an error."""

    def __init__(self, message: str, *, code: int = 0, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class HttpRpcCaller:
    def __init__(
        self,
        url: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 30.0,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._url = url
        self._timeout_s = timeout_s
        self._headers = dict(headers or {})
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._ids = itertools.count(1)

    @property
    def url(self) -> str:
        return self._url

    async def call(self, method: str, args: List[Any]) -> Any:
        request = JsonRpcRequest(id=next(self._ids), method=method, params=list(args))
        resp = await self._client.post(
            self._url,
            json=request.model_dump(),
            headers=self._headers,
            timeout=self._timeout_s,
        )
        resp.raise_for_status()

        response = JsonRpcResponse.model_validate(resp.json())
        if response.error is not None:
            raise RpcCallError(response.error.message or "JSON-RPC error", code=response.error.code, data=response.error.data)
        return response.result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpRpcCaller":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.aclose()
