"""Data types shared by the execution layer."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Union

from . import rlp

ZERO_HASH = b"\x00" * 32
ZERO_ADDRESS = b"\x00" * 20


class Tag(enum.Enum):
    LATEST = "latest"
    FINALIZED = "finalized"


BlockTag = Union[Tag, int]


def parse_block_tag(value: Any) -> BlockTag:
    """Parse "latest", "finalized", an integer or a hex/decimal number string."""
    if isinstance(value, Tag):
        return value
    if isinstance(value, bool):
        raise ValueError(f"invalid block tag: {value!r}")
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"invalid block tag: {value!r}")
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        for tag in Tag:
            if lowered == tag.value:
                return tag
        try:
            number = int(lowered, 16) if lowered.startswith("0x") else int(lowered)
        except ValueError:
            raise ValueError(f"invalid block tag: {value!r}") from None
        if number < 0:
            raise ValueError(f"invalid block tag: {value!r}")
        return number
    raise ValueError(f"invalid block tag: {value!r}")


def tag_to_json(tag: BlockTag) -> str:
    return tag.value if isinstance(tag, Tag) else hex(tag)


def _bytes(value: str | None, default: bytes = b"") -> bytes:
    if value is None:
        return default
    text = value[2:] if value.startswith(("0x", "0X")) else value
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(text)


def _int(value: Any, default: int | None = 0) -> int | None:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith(("0x", "0X")) else int(value)


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


@dataclass
class Account:
    balance: int = 0
    nonce: int = 0
    code_hash: bytes = ZERO_HASH
    code: bytes = b""
    storage_hash: bytes = ZERO_HASH
    slots: dict[bytes, int] = field(default_factory=dict)


@dataclass
class CallOpts:
    from_: bytes | None = None
    to: bytes | None = None
    gas: int | None = None
    gas_price: int | None = None
    value: int | None = None
    data: bytes | None = None

    @classmethod
    def from_json(cls, data: dict) -> CallOpts:
        def maybe_bytes(key):
            return _bytes(data[key]) if data.get(key) is not None else None

        return cls(
            from_=maybe_bytes("from"),
            to=maybe_bytes("to"),
            gas=_int(data.get("gas"), None),
            gas_price=_int(data.get("gasPrice"), None),
            value=_int(data.get("value"), None),
            data=maybe_bytes("data"),
        )

    def to_json(self) -> dict:
        out: dict[str, str] = {}
        for key, value in (("from", self.from_), ("to", self.to), ("data", self.data)):
            if value is not None:
                out[key] = _hex(value)
        for key, value in (("gas", self.gas), ("gasPrice", self.gas_price), ("value", self.value)):
            if value is not None:
                out[key] = hex(value)
        return out

    def __repr__(self) -> str:
        return (
            f"CallOpts(from={self.from_!r}, to={self.to!r}, value={self.value!r}, "
            f"data={(self.data or b'').hex()!r})"
        )


@dataclass
class Transaction:
    hash: bytes
    tx_type: int = 0
    raw: bytes | None = None
    fields: dict = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: bytes) -> Transaction:
        """Build a transaction from its signed network encoding."""
        raw = bytes(raw)
        if not raw:
            raise ValueError("empty transaction")
        if raw[0] <= 0x7F:
            tx_type, body = raw[0], rlp.decode(raw[1:])
        else:
            tx_type, body = 0, rlp.decode(raw)
        if not isinstance(body, list):
            raise ValueError("transaction payload is not a list")
        return cls(hash=rlp.keccak256(raw), tx_type=tx_type, raw=raw)

    @classmethod
    def from_json(cls, data: dict) -> Transaction:
        return cls(
            hash=_bytes(data["hash"]),
            tx_type=_int(data.get("type"), 0),
            fields=dict(data),
        )


@dataclass
class Block:
    number: int = 0
    hash: bytes = ZERO_HASH
    parent_hash: bytes = ZERO_HASH
    state_root: bytes = ZERO_HASH
    receipts_root: bytes = ZERO_HASH
    miner: bytes = ZERO_ADDRESS
    timestamp: int = 0
    difficulty: int = 0
    base_fee_per_gas: int = 0
    gas_limit: int = 0
    gas_used: int = 0
    transactions: list = field(default_factory=list)

    def transaction_hashes(self) -> list[bytes]:
        return [tx.hash if isinstance(tx, Transaction) else tx for tx in self.transactions]

    def with_hashes_only(self) -> Block:
        return replace(self, transactions=self.transaction_hashes())

    @property
    def has_full_transactions(self) -> bool:
        return all(isinstance(tx, Transaction) for tx in self.transactions)


@dataclass
class Log:
    address: bytes = ZERO_ADDRESS
    topics: list[bytes] = field(default_factory=list)
    data: bytes = b""
    block_hash: bytes | None = None
    block_number: int | None = None
    transaction_hash: bytes | None = None
    transaction_index: int | None = None
    log_index: int | None = None
    removed: bool | None = None

    @classmethod
    def from_json(cls, data: dict) -> Log:
        def maybe_bytes(key):
            return _bytes(data[key]) if data.get(key) is not None else None

        return cls(
            address=_bytes(data.get("address"), ZERO_ADDRESS),
            topics=[_bytes(t) for t in data.get("topics", [])],
            data=_bytes(data.get("data")),
            block_hash=maybe_bytes("blockHash"),
            block_number=_int(data.get("blockNumber"), None),
            transaction_hash=maybe_bytes("transactionHash"),
            transaction_index=_int(data.get("transactionIndex"), None),
            log_index=_int(data.get("logIndex"), None),
            removed=data.get("removed"),
        )

    def rlp_bytes(self) -> bytes:
        return rlp.encode([self.address, list(self.topics), self.data])


@dataclass
class TransactionReceipt:
    transaction_hash: bytes
    block_hash: bytes | None = None
    block_number: int | None = None
    transaction_index: int = 0
    status: int | None = None
    cumulative_gas_used: int = 0
    gas_used: int | None = None
    logs_bloom: bytes = b"\x00" * 256
    logs: list[Log] = field(default_factory=list)
    transaction_type: int | None = None
    contract_address: bytes | None = None

    @classmethod
    def from_json(cls, data: dict) -> TransactionReceipt:
        contract = data.get("contractAddress")
        return cls(
            transaction_hash=_bytes(data["transactionHash"]),
            block_hash=_bytes(data["blockHash"]) if data.get("blockHash") else None,
            block_number=_int(data.get("blockNumber"), None),
            transaction_index=_int(data.get("transactionIndex"), 0),
            status=_int(data.get("status"), None),
            cumulative_gas_used=_int(data.get("cumulativeGasUsed"), 0),
            gas_used=_int(data.get("gasUsed"), None),
            logs_bloom=_bytes(data.get("logsBloom"), b"\x00" * 256),
            logs=[Log.from_json(item) for item in data.get("logs", [])],
            transaction_type=_int(data.get("type"), None),
            contract_address=_bytes(contract) if contract else None,
        )


@dataclass
class StorageProof:
    key: bytes
    value: int
    proof: list[bytes] = field(default_factory=list)


@dataclass
class ProofResponse:
    address: bytes
    balance: int
    code_hash: bytes
    nonce: int
    storage_hash: bytes
    account_proof: list[bytes] = field(default_factory=list)
    storage_proof: list[StorageProof] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> ProofResponse:
        return cls(
            address=_bytes(data["address"]),
            balance=_int(data["balance"]),
            code_hash=_bytes(data["codeHash"]),
            nonce=_int(data["nonce"]),
            storage_hash=_bytes(data["storageHash"]),
            account_proof=[_bytes(node) for node in data.get("accountProof", [])],
            storage_proof=[
                StorageProof(
                    key=_bytes(item["key"]).rjust(32, b"\x00"),
                    value=_int(item["value"]),
                    proof=[_bytes(node) for node in item.get("proof", [])],
                )
                for item in data.get("storageProof", [])
            ],
        )


@dataclass
class AccessListItem:
    address: bytes
    storage_keys: list[bytes] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> AccessListItem:
        return cls(
            address=_bytes(data["address"]),
            storage_keys=[_bytes(key) for key in data.get("storageKeys", [])],
        )


@dataclass
class Filter:
    from_block: BlockTag | None = None
    to_block: BlockTag | None = None
    block_hash: bytes | None = None
    address: bytes | list[bytes] | None = None
    topics: list = field(default_factory=list)

    def to_json(self) -> dict:
        out: dict[str, Any] = {}
        if self.block_hash is not None:
            out["blockHash"] = _hex(self.block_hash)
        else:
            if self.from_block is not None:
                out["fromBlock"] = tag_to_json(self.from_block)
            if self.to_block is not None:
                out["toBlock"] = tag_to_json(self.to_block)
        if isinstance(self.address, (bytes, bytearray)):
            out["address"] = _hex(self.address)
        elif self.address is not None:
            out["address"] = [_hex(a) for a in self.address]
        if self.topics:
            def topic(value):
                if value is None:
                    return None
                if isinstance(value, (bytes, bytearray)):
                    return _hex(value)
                return [_hex(v) for v in value]

            out["topics"] = [topic(t) for t in self.topics]
        return out


@dataclass
class FeeHistory:
    base_fee_per_gas: list[int] = field(default_factory=list)
    gas_used_ratio: list[float] = field(default_factory=list)
    oldest_block: int = 0
    reward: list[list[int]] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: dict) -> FeeHistory:
        return cls(
            base_fee_per_gas=[_int(v) for v in data.get("baseFeePerGas", [])],
            gas_used_ratio=[float(v) for v in data.get("gasUsedRatio", [])],
            oldest_block=_int(data.get("oldestBlock"), 0),
            reward=[[_int(v) for v in row] for row in data.get("reward", [])],
        )