# getlogs_proxy/server/dispatcher.py
import logging
from typing import Any, Optional

from getlogs_proxy.logs.chunker import GET_LOGS, LogRangeChunker, Upstream


class RPCDispatcher:
    """Routes ``eth_getLogs`` to the range chunker and forwards everything else upstream."""

    def __init__(self, upstream: Upstream, get_logs: LogRangeChunker):
        self.upstream = upstream
        self.get_logs = get_logs
        self.logger = logging.getLogger("getlogs_proxy.dispatcher")

    async def dispatch(self, method: str, params: Optional[Any] = None) -> Any:
        if params is None:
            params = []

        if method == GET_LOGS:
            return await self.get_logs.handle(params)

        self.logger.debug(f"Forwarding {method} upstream")
        return await self.upstream.send(method, params)
