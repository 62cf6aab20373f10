"""Errors raised by the execution layer."""

from __future__ import annotations

PARALLEL_QUERY_BATCH_SIZE = 20


def _hex(value: bytes) -> str:
    return "0x" + bytes(value).hex()


class ExecutionError(Exception):
    """Base class of execution errors."""


class InvalidAccountProof(ExecutionError):
    def __init__(self, address: bytes):
        self.address = address
        super().__init__(f"invalid account proof for address: {_hex(address)}")


class InvalidStorageProof(ExecutionError):
    def __init__(self, address: bytes, slot: bytes):
        self.address = address
        self.slot = slot
        super().__init__(
            f"invalid storage proof for address: {_hex(address)}, slot: {_hex(slot)}"
        )


class CodeHashMismatch(ExecutionError):
    def __init__(self, address: bytes, found: str, expected: str):
        self.address = address
        self.found = found
        self.expected = expected
        super().__init__(
            f"code hash mismatch for address: {_hex(address)}, "
            f"found: {found}, expected: {expected}"
        )


class ReceiptRootMismatch(ExecutionError):
    def __init__(self, tx: str):
        self.tx = tx
        super().__init__(f"receipt root mismatch for tx: {tx}")


class MissingTransaction(ExecutionError):
    def __init__(self, tx: str):
        self.tx = tx
        super().__init__(f"missing transaction for tx: {tx}")


class NoReceiptForTransaction(ExecutionError):
    def __init__(self, tx: str):
        self.tx = tx
        super().__init__(f"could not prove receipt for tx: {tx}")


class MissingLog(ExecutionError):
    def __init__(self, tx: str, index: int):
        self.tx = tx
        self.index = index
        super().__init__(f"missing log for transaction: {tx}, index: {index}")


class TooManyLogsToProve(ExecutionError):
    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(f"too many logs to prove: {count}, current limit is: {limit}")


class IncorrectRpcNetwork(ExecutionError):
    def __init__(self):
        super().__init__("execution rpc is for the incorect network")


class InvalidBaseGasFee(ExecutionError):
    def __init__(self, helios: int, rpc: int, block: int):
        self.helios, self.rpc, self.block = helios, rpc, block
        super().__init__(
            f"Invalid base gas fee helios {helios} vs rpc endpoint {rpc} at block {block}"
        )


class InvalidGasUsedRatio(ExecutionError):
    def __init__(self, helios: float, rpc: float, block: int):
        self.helios, self.rpc, self.block = helios, rpc, block
        super().__init__(
            f"Invalid gas used ratio of helios {helios} vs rpc endpoint {rpc} at block {block}"
        )


class BlockNotFoundError(ExecutionError):
    def __init__(self, block):
        self.block = block
        super().__init__(f"Block {block} not found")


class EmptyExecutionPayload(ExecutionError):
    def __init__(self):
        super().__init__("Helios Execution Payload is empty")


class InvalidBlockRange(ExecutionError):
    def __init__(self, requested: int, oldest: int):
        self.requested = requested
        self.oldest = oldest
        super().__init__(
            f"User query for block {requested} but helios oldest block is {oldest}"
        )


class RpcError(Exception):
    """A failed call to a remote RPC method."""

    def __init__(self, method: str, error: object):
        self.method = method
        self.error = error
        super().__init__(f"{method} rpc error: {error}")


class EvmError(Exception):
    """A failed EVM call."""

    def __init__(self, message: str):
        super().__init__(f"evm error: {message!r}")


class Revert(EvmError):
    """Execution reverted, optionally with return data."""

    def __init__(self, data: bytes | None = None):
        self.data = data
        Exception.__init__(self, f"execution reverted: {data!r}")

    @property
    def reason(self) -> str | None:
        return decode_revert_reason(self.data) if self.data is not None else None


def decode_revert_reason(data: bytes) -> str | None:
    """Decode an ABI-encoded revert string, skipping the 4-byte selector."""
    data = bytes(data)
    if len(data) < 4:
        return None
    body = data[4:]
    if len(body) < 32:
        return None
    offset = int.from_bytes(body[:32], "big")
    if offset + 32 > len(body):
        return None
    length = int.from_bytes(body[offset:offset + 32], "big")
    start = offset + 32
    if start + length > len(body):
        return None
    try:
        return body[start:start + length].decode("utf-8")
    except UnicodeDecodeError:
        return None