"""Execution RPC interface and a file-backed implementation."""

from __future__ import annotations

import abc
import json
from pathlib import Path
from typing import Any

from .errors import RpcError
from .types import (
    AccessListItem,
    BlockTag,
    CallOpts,
    FeeHistory,
    Filter,
    Log,
    ProofResponse,
    Transaction,
    TransactionReceipt,
)


class ExecutionRpc(abc.ABC):
    """An untrusted source of execution-layer data."""

    @abc.abstractmethod
    async def get_proof(self, address: bytes, slots: list[bytes], block: int) -> ProofResponse:
        ...

    @abc.abstractmethod
    async def create_access_list(self, opts: CallOpts, block: BlockTag) -> list[AccessListItem]:
        ...

    @abc.abstractmethod
    async def get_code(self, address: bytes, block: int) -> bytes:
        ...

    @abc.abstractmethod
    async def send_raw_transaction(self, data: bytes) -> bytes:
        ...

    @abc.abstractmethod
    async def get_transaction_receipt(self, tx_hash: bytes) -> TransactionReceipt | None:
        ...

    @abc.abstractmethod
    async def get_transaction(self, tx_hash: bytes) -> Transaction | None:
        ...

    @abc.abstractmethod
    async def get_logs(self, log_filter: Filter) -> list[Log]:
        ...

    @abc.abstractmethod
    async def get_filter_changes(self, filter_id: int) -> list[Log]:
        ...

    @abc.abstractmethod
    async def uninstall_filter(self, filter_id: int) -> bool:
        ...

    @abc.abstractmethod
    async def get_new_filter(self, log_filter: Filter) -> int:
        ...

    @abc.abstractmethod
    async def get_new_block_filter(self) -> int:
        ...

    @abc.abstractmethod
    async def get_new_pending_transaction_filter(self) -> int:
        ...

    @abc.abstractmethod
    async def chain_id(self) -> int:
        ...

    @abc.abstractmethod
    async def get_fee_history(
        self, block_count: int, last_block: int, reward_percentiles: list[float]
    ) -> FeeHistory:
        ...


class MockRpc(ExecutionRpc):
    """Serves canned responses from JSON files in a directory."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _read_json(self, name: str) -> Any:
        return json.loads((self.path / name).read_text())

    @staticmethod
    def _unsupported(method: str):
        return RpcError(method, "unsupported by the mock endpoint")

    async def get_proof(self, address, slots, block) -> ProofResponse:
        return ProofResponse.from_json(self._read_json("proof.json"))

    async def create_access_list(self, opts, block) -> list[AccessListItem]:
        raise self._unsupported("create_access_list")

    async def get_code(self, address, block) -> bytes:
        text = (self.path / "code.json").read_text()[:-1]
        if text.startswith(("0x", "0X")):
            text = text[2:]
        return bytes.fromhex(text)

    async def send_raw_transaction(self, data) -> bytes:
        raise self._unsupported("send_raw_transaction")

    async def get_transaction_receipt(self, tx_hash) -> TransactionReceipt | None:
        data = self._read_json("receipt.json")
        return None if data is None else TransactionReceipt.from_json(data)

    async def get_transaction(self, tx_hash) -> Transaction | None:
        data = self._read_json("transaction.json")
        return None if data is None else Transaction.from_json(data)

    async def get_logs(self, log_filter) -> list[Log]:
        return [Log.from_json(item) for item in self._read_json("logs.json")]

    async def get_filter_changes(self, filter_id) -> list[Log]:
        return [Log.from_json(item) for item in self._read_json("logs.json")]

    async def uninstall_filter(self, filter_id) -> bool:
        raise self._unsupported("uninstall_filter")

    async def get_new_filter(self, log_filter) -> int:
        raise self._unsupported("get_new_filter")

    async def get_new_block_filter(self) -> int:
        raise self._unsupported("get_new_block_filter")

    async def get_new_pending_transaction_filter(self) -> int:
        raise self._unsupported("get_new_pending_transaction_filter")

    async def chain_id(self) -> int:
        raise self._unsupported("chain_id")

    async def get_fee_history(self, block_count, last_block, reward_percentiles) -> FeeHistory:
        return FeeHistory.from_json(self._read_json("fee_history.json"))