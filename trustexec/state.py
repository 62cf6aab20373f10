"""In-memory store of recent execution blocks."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable

from .types import Block, BlockTag, Tag, Transaction


@dataclass(frozen=True)
class _TxLocation:
    block: int
    index: int


class State:
    """Keeps the most recent ``history_length`` blocks plus the finalized block."""

    def __init__(self, history_length: int):
        self.history_length = history_length
        self._blocks: dict[int, Block] = {}
        self._finalized_block: Block | None = None
        self._hashes: dict[bytes, int] = {}
        self._txs: dict[bytes, _TxLocation] = {}

    async def run(self, block_queue: asyncio.Queue, finalized_queue: asyncio.Queue) -> None:
        """Consume new and finalized blocks from the queues until cancelled.

        ``None`` items are ignored.
        """
        await asyncio.gather(
            self._consume(block_queue, self.push_block),
            self._consume(finalized_queue, self.push_finalized_block),
        )

    @staticmethod
    async def _consume(
        queue: asyncio.Queue, handler: Callable[[Block], Awaitable[None]]
    ) -> None:
        while True:
            block = await queue.get()
            try:
                if block is not None:
                    await handler(block)
            finally:
                queue.task_done()

    async def push_block(self, block: Block) -> None:
        self._insert(block)

    async def push_finalized_block(self, block: Block) -> None:
        self._finalized_block = block
        old_block = self._blocks.get(block.number)
        if old_block is None:
            self._insert(block)
        elif old_block.hash != block.hash:
            self._remove(old_block.number)
            self._insert(block)

    def _insert(self, block: Block) -> None:
        self._hashes[block.hash] = block.number
        for index, tx_hash in enumerate(block.transaction_hashes()):
            self._txs[tx_hash] = _TxLocation(block.number, index)
        self._blocks[block.number] = block
        while len(self._blocks) > self.history_length:
            self._remove(min(self._blocks))

    def _remove(self, number: int) -> None:
        block = self._blocks.pop(number, None)
        if block is None:
            return
        self._hashes.pop(block.hash, None)
        for tx_hash in block.transaction_hashes():
            self._txs.pop(tx_hash, None)

    @staticmethod
    def _full_transaction(block: Block, index: int) -> Transaction | None:
        if not block.has_full_transactions:
            raise ValueError(f"block {block.number} holds only transaction hashes")
        if 0 <= index < len(block.transactions):
            return block.transactions[index]
        return None

    async def get_block(self, tag: BlockTag) -> Block | None:
        if tag is Tag.LATEST:
            return self._blocks[max(self._blocks)] if self._blocks else None
        if tag is Tag.FINALIZED:
            return self._finalized_block
        return self._blocks.get(tag)

    async def get_block_by_hash(self, block_hash: bytes) -> Block | None:
        number = self._hashes.get(bytes(block_hash))
        return None if number is None else self._blocks.get(number)

    async def get_transaction(self, tx_hash: bytes) -> Transaction | None:
        location = self._txs.get(bytes(tx_hash))
        if location is None:
            return None
        block = self._blocks.get(location.block)
        if block is None:
            return None
        return self._full_transaction(block, location.index)

    async def get_transaction_by_block_and_index(
        self, block_hash: bytes, index: int
    ) -> Transaction | None:
        block = await self.get_block_by_hash(block_hash)
        if block is None:
            return None
        return self._full_transaction(block, index)

    async def get_state_root(self, tag: BlockTag) -> bytes | None:
        block = await self.get_block(tag)
        return None if block is None else block.state_root

    async def get_receipts_root(self, tag: BlockTag) -> bytes | None:
        block = await self.get_block(tag)
        return None if block is None else block.receipts_root

    async def get_base_fee(self, tag: BlockTag) -> int | None:
        block = await self.get_block(tag)
        return None if block is None else block.base_fee_per_gas

    async def get_coinbase(self, tag: BlockTag) -> bytes | None:
        block = await self.get_block(tag)
        return None if block is None else block.miner

    async def latest_block_number(self) -> int | None:
        return max(self._blocks) if self._blocks else None

    async def oldest_block_number(self) -> int | None:
        return min(self._blocks) if self._blocks else None