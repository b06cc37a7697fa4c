# getlogs_proxy/logs/block_tags.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Protocol, Union

HEX_QUANTITY = re.compile(r"0x[0-9a-f]+", re.IGNORECASE)
HEAD_TAGS = frozenset({"latest", "pending", "safe", "finalized"})


class BlockHeightSource(Protocol):
    async def current_block_height(self) -> int: ...


@dataclass(frozen=True)
class NumericBlock:
    value: int


@dataclass(frozen=True)
class SymbolicBlock:
    """A block tag that could not be turned into a number."""

    tag: str


ResolvedBlockTag = Union[NumericBlock, SymbolicBlock]


class BlockTagResolver:
    def __init__(self, upstream: BlockHeightSource):
        self.upstream = upstream

    async def resolve(self, tag: Any) -> ResolvedBlockTag:
        """
        Map a ``fromBlock``/``toBlock`` value to a block number.

        ``None`` and ``"earliest"`` are block 0, head tags ask the upstream
        for its current height, hex quantities are decoded. Anything else
        comes back as SymbolicBlock.
        """
        if tag is None:
            return NumericBlock(0)

        # block numbers are unsigned; a negative one is left for the upstream to reject
        if isinstance(tag, int) and not isinstance(tag, bool) and tag >= 0:
            return NumericBlock(tag)

        if isinstance(tag, str):
            normalized = tag.lower()

            if normalized == "earliest":
                return NumericBlock(0)

            if normalized in HEAD_TAGS:
                height = await self.upstream.current_block_height()
                return NumericBlock(int(height))

            if HEX_QUANTITY.fullmatch(tag):
                return NumericBlock(int(tag, 16))

        return SymbolicBlock(str(tag))
