"""Execution client that checks untrusted RPC data against known blocks."""

from __future__ import annotations

import asyncio
import dataclasses

from . import rlp
from .errors import (
    BlockNotFoundError,
    CodeHashMismatch,
    ExecutionError,
    IncorrectRpcNetwork,
    InvalidAccountProof,
    InvalidStorageProof,
    MissingLog,
    NoReceiptForTransaction,
    ReceiptRootMismatch,
    TooManyLogsToProve,
)
from .proof import encode_account, verify_proof
from .rpc import ExecutionRpc
from .state import State
from .trie import ordered_trie_root
from .types import Account, Block, BlockTag, Filter, Log, Tag, Transaction, TransactionReceipt

# Log fetching is capped so that proving them does not block for too long.
MAX_SUPPORTED_LOGS_NUMBER = 5

KECCAK_EMPTY = rlp.keccak256(b"")


def _hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def _describe(tag: BlockTag) -> str:
    return tag.value if isinstance(tag, Tag) else str(tag)


def encode_receipt(receipt: TransactionReceipt) -> bytes:
    """Return the consensus encoding of a receipt, as stored in the receipts trie."""
    if receipt.status is None:
        raise ValueError("receipt has no status")
    if receipt.transaction_type is None:
        raise ValueError("receipt has no transaction type")
    legacy = rlp.encode(
        [
            receipt.status,
            receipt.cumulative_gas_used,
            receipt.logs_bloom,
            [[log.address, list(log.topics), log.data] for log in receipt.logs],
        ]
    )
    if receipt.transaction_type == 0:
        return legacy
    return bytes([receipt.transaction_type & 0xFF]) + legacy


class ExecutionClient:
    """Serves execution data, verifying RPC answers against tracked block roots."""

    def __init__(self, rpc: ExecutionRpc, state: State):
        self.rpc = rpc
        self._state = state

    async def check_rpc(self, chain_id: int) -> None:
        if await self.rpc.chain_id() != chain_id:
            raise IncorrectRpcNetwork()

    async def get_account(self, address: bytes, slots, tag: BlockTag) -> Account:
        address = bytes(address)
        slots = list(slots or [])
        block = await self._state.get_block(tag)
        if block is None:
            raise BlockNotFoundError(_describe(tag))

        proof = await self.rpc.get_proof(address, slots, block.number)

        if not verify_proof(
            proof.account_proof,
            block.state_root,
            rlp.keccak256(address),
            encode_account(proof),
        ):
            raise InvalidAccountProof(address)

        slot_map: dict[bytes, int] = {}
        for storage_proof in proof.storage_proof:
            if not verify_proof(
                storage_proof.proof,
                proof.storage_hash,
                rlp.keccak256(storage_proof.key),
                rlp.encode(storage_proof.value),
            ):
                raise InvalidStorageProof(address, storage_proof.key)
            slot_map[storage_proof.key] = storage_proof.value

        if proof.code_hash == KECCAK_EMPTY:
            code = b""
        else:
            code = await self.rpc.get_code(address, block.number)
            code_hash = rlp.keccak256(code)
            if code_hash != proof.code_hash:
                raise CodeHashMismatch(address, _hex(code_hash), _hex(proof.code_hash))

        return Account(
            balance=proof.balance,
            nonce=proof.nonce,
            code=code,
            code_hash=proof.code_hash,
            storage_hash=proof.storage_hash,
            slots=slot_map,
        )

    async def send_raw_transaction(self, data: bytes) -> bytes:
        return await self.rpc.send_raw_transaction(data)

    @staticmethod
    def _shaped(block: Block, full_tx: bool) -> Block:
        if full_tx:
            return dataclasses.replace(block, transactions=list(block.transactions))
        return block.with_hashes_only()

    async def get_block(self, tag: BlockTag, full_tx: bool) -> Block:
        block = await self._state.get_block(tag)
        if block is None:
            raise BlockNotFoundError(_describe(tag))
        return self._shaped(block, full_tx)

    async def get_block_by_hash(self, block_hash: bytes, full_tx: bool) -> Block:
        block = await self._state.get_block_by_hash(block_hash)
        if block is None:
            raise BlockNotFoundError(_hex(block_hash))
        return self._shaped(block, full_tx)

    async def get_transaction_by_block_hash_and_index(
        self, block_hash: bytes, index: int
    ) -> Transaction | None:
        return await self._state.get_transaction_by_block_and_index(block_hash, index)

    async def get_transaction_receipt(self, tx_hash: bytes) -> TransactionReceipt | None:
        receipt = await self.rpc.get_transaction_receipt(tx_hash)
        if receipt is None:
            return None
        if receipt.block_number is None:
            raise ExecutionError(f"receipt for tx {_hex(tx_hash)} has no block number")

        block = await self._state.get_block(receipt.block_number)
        if block is None:
            return None

        tx_hashes = block.transaction_hashes()
        receipts = await asyncio.gather(
            *(self.rpc.get_transaction_receipt(hash_) for hash_ in tx_hashes)
        )
        for hash_, block_receipt in zip(tx_hashes, receipts):
            if block_receipt is None:
                raise NoReceiptForTransaction(_hex(hash_))

        expected_root = ordered_trie_root(encode_receipt(r) for r in receipts)
        if expected_root != block.receipts_root or receipt not in receipts:
            raise ReceiptRootMismatch(_hex(tx_hash))

        return receipt

    async def get_transaction(self, tx_hash: bytes) -> Transaction | None:
        return await self._state.get_transaction(tx_hash)

    async def _bounded_filter(self, log_filter: Filter) -> Filter:
        """Keep filters from reaching past the newest block that is tracked."""
        if log_filter.to_block is not None or log_filter.block_hash is not None:
            return log_filter
        latest = await self._state.latest_block_number()
        if latest is None:
            raise BlockNotFoundError(Tag.LATEST.value)
        from_block = latest if log_filter.from_block is None else log_filter.from_block
        return dataclasses.replace(log_filter, to_block=latest, from_block=from_block)

    async def get_logs(self, log_filter: Filter) -> list[Log]:
        bounded = await self._bounded_filter(log_filter)
        logs = await self.rpc.get_logs(bounded)
        if len(logs) > MAX_SUPPORTED_LOGS_NUMBER:
            raise TooManyLogsToProve(len(logs), MAX_SUPPORTED_LOGS_NUMBER)
        await self._verify_logs(logs)
        return logs

    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        logs = await self.rpc.get_filter_changes(filter_id)
        if len(logs) > MAX_SUPPORTED_LOGS_NUMBER:
            raise TooManyLogsToProve(len(logs), MAX_SUPPORTED_LOGS_NUMBER)
        await self._verify_logs(logs)
        return logs

    async def uninstall_filter(self, filter_id: int) -> bool:
        return await self.rpc.uninstall_filter(filter_id)

    async def get_new_filter(self, log_filter: Filter) -> int:
        bounded = await self._bounded_filter(log_filter)
        return await self.rpc.get_new_filter(bounded)

    async def get_new_block_filter(self) -> int:
        return await self.rpc.get_new_block_filter()

    async def get_new_pending_transaction_filter(self) -> int:
        return await self.rpc.get_new_pending_transaction_filter()

    async def _verify_logs(self, logs: list[Log]) -> None:
        for log in logs:
            if log.transaction_hash is None:
                raise ExecutionError("tx hash not found in log")
            tx_hash = log.transaction_hash
            receipt = await self.get_transaction_receipt(tx_hash)
            if receipt is None:
                raise NoReceiptForTransaction(_hex(tx_hash))
            receipt_logs = [receipt_log.rlp_bytes() for receipt_log in receipt.logs]
            if log.rlp_bytes() not in receipt_logs:
                raise MissingLog(_hex(tx_hash), log.log_index)