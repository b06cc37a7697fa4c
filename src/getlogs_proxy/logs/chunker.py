# getlogs_proxy/logs/chunker.py
from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Mapping
from typing import Any, Protocol

from getlogs_proxy.config.default import DEFAULT_CHUNK_SIZE
from getlogs_proxy.errors import INTERNAL_ERROR_CODE, INVALID_PARAMS, JSONRPCError
from getlogs_proxy.logs.block_tags import BlockTagResolver, NumericBlock

logger = logging.getLogger("getlogs_proxy.chunker")

GET_LOGS = "eth_getLogs"


class Upstream(Protocol):
    async def send(self, method: str, params: Any = None) -> Any: ...

    async def current_block_height(self) -> int: ...


def iter_block_windows(from_block: int, to_block: int, chunk_size: int) -> Iterator[tuple[int, int]]:
    """
    Yield inclusive ``(start, end)`` windows covering ``[from_block, to_block]``.

    Windows are ascending, contiguous and at most ``chunk_size`` blocks
    long. The last one is clamped to ``to_block``.
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")

    current = from_block
    while current <= to_block:
        end = min(current + chunk_size - 1, to_block)
        yield current, end
        current = end + 1


class LogRangeChunker:
    """Serves ``eth_getLogs`` by splitting wide block ranges into sequential upstream queries."""

    def __init__(self, upstream: Upstream, chunk_size: int = DEFAULT_CHUNK_SIZE, resolver: BlockTagResolver | None = None):
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.upstream = upstream
        self.chunk_size = chunk_size
        self.resolver = resolver or BlockTagResolver(upstream)

    async def handle(self, params: Any) -> list:
        if not isinstance(params, list):
            raise INVALID_PARAMS({"reason": "eth_getLogs params must be an array"})

        log_filter = params[0] if params else None
        if log_filter is None:
            log_filter = {}
        if not isinstance(log_filter, Mapping):
            raise INVALID_PARAMS({"reason": "eth_getLogs filter must be an object"})

        if log_filter.get("blockHash"):
            # blockHash and a block range are mutually exclusive
            logger.debug("blockHash filter, forwarding without chunking")
            return await self.upstream.send(GET_LOGS, [log_filter])

        start = await self.resolver.resolve(log_filter.get("fromBlock"))
        end = await self.resolver.resolve(log_filter.get("toBlock"))

        if not (isinstance(start, NumericBlock) and isinstance(end, NumericBlock)):
            logger.debug(f"Unresolved block range ({start}, {end}), forwarding as-is")
            return await self.upstream.send(GET_LOGS, [log_filter])

        if end.value < start.value:
            raise JSONRPCError(-32602, "Invalid params: toBlock must be >= fromBlock")

        return await self._fetch_windows(log_filter, start.value, end.value)

    async def _fetch_windows(self, log_filter: Mapping, from_block: int, to_block: int) -> list:
        results: list = []
        started_at = time.perf_counter()
        chunk_index = 0

        for window_start, window_end in iter_block_windows(from_block, to_block, self.chunk_size):
            chunk_filter = {
                **log_filter,
                "fromBlock": hex(window_start),
                "toBlock": hex(window_end),
            }

            chunk_started_at = time.perf_counter()
            logger.info(f"[eth_getLogs] chunk {chunk_index} -> from {chunk_filter['fromBlock']} to {chunk_filter['toBlock']}")
            chunk_result = await self.upstream.send(GET_LOGS, [chunk_filter])

            if not isinstance(chunk_result, list):
                raise JSONRPCError(
                    INTERNAL_ERROR_CODE,
                    "Internal error: unexpected upstream response for eth_getLogs chunk",
                    chunk_result,
                )

            results.extend(chunk_result)
            logger.info(
                f"[eth_getLogs] chunk {chunk_index} complete "
                f"({len(chunk_result)} logs, {time.perf_counter() - chunk_started_at:.2f}s)"
            )
            chunk_index += 1

        logger.info(
            f"[eth_getLogs] finished {chunk_index} chunks "
            f"({len(results)} logs total, {time.perf_counter() - started_at:.2f}s)"
        )
        return results
