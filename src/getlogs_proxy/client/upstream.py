# getlogs_proxy/client/upstream.py
import itertools
import logging
from typing import Any, Optional

import httpx

from getlogs_proxy.config.default import DEFAULT_UPSTREAM_TIMEOUT
from getlogs_proxy.errors import INTERNAL_ERROR, INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, JSONRPCError


class UpstreamClient:
    """
    JSON-RPC client for the node the proxy forwards to.

    Upstream error objects are raised as JSONRPCError so their code,
    message and data reach the caller untouched. HTTP-level failures
    surface as httpx exceptions.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_UPSTREAM_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.logger = logging.getLogger("getlogs_proxy.upstream")
        self._ids = itertools.count(1)

    async def send(self, method: str, params: Any = None) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": [] if params is None else params,
            "id": next(self._ids),
        }
        self.logger.debug(f"-> {method} (id={payload['id']})")
        resp = await self.client.post(self.url, json=payload)
        resp.raise_for_status()
        data = resp.json()

        if not isinstance(data, dict):
            raise INTERNAL_ERROR(data)

        err = data.get("error")
        if err is not None:
            if not isinstance(err, dict):
                raise JSONRPCError(INTERNAL_ERROR_CODE, INTERNAL_ERROR_MESSAGE, err)
            code = err.get("code")
            message = err.get("message")
            raise JSONRPCError(
                code=code if isinstance(code, int) and not isinstance(code, bool) else INTERNAL_ERROR_CODE,
                message=message if isinstance(message, str) else INTERNAL_ERROR_MESSAGE,
                data=err.get("data"),
            )
        return data.get("result")

    async def current_block_height(self) -> int:
        result = await self.send("eth_blockNumber", [])
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise INTERNAL_ERROR({"method": "eth_blockNumber", "result": result})

    async def aclose(self):
        await self.client.aclose()
