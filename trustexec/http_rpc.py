"""Execution RPC backed by a JSON-RPC endpoint over HTTP."""

from __future__ import annotations

import asyncio
import itertools
from typing import Any

import httpx

from .errors import RpcError
from .rpc import ExecutionRpc
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
    tag_to_json,
)

_MAX_RETRIES = 100
_INITIAL_BACKOFF = 0.05
_MAX_BACKOFF = 3.2
_ACCESS_LIST_GAS = 100_000_000
_ZERO_ADDRESS = b"\x00" * 20
_RATE_LIMIT_CODE = 429


def _hex(data: bytes) -> str:
    return "0x" + bytes(data).hex()


def _parse_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16) if value.startswith(("0x", "0X")) else int(value)


def _parse_bytes(value: str) -> bytes:
    text = value[2:] if value.startswith(("0x", "0X")) else value
    if len(text) % 2:
        text = "0" + text
    return bytes.fromhex(text)


def _backoff(attempt: int) -> float:
    return min(_INITIAL_BACKOFF * 2 ** attempt, _MAX_BACKOFF)


class HttpRpc(ExecutionRpc):
    """Talks JSON-RPC to an execution node, retrying when rate limited."""

    def __init__(self, url: str):
        try:
            parsed = httpx.URL(url)
        except httpx.InvalidURL as exc:
            raise ValueError(f"invalid rpc url: {url!r}") from exc
        if parsed.scheme not in ("http", "https") or not parsed.host:
            raise ValueError(f"invalid rpc url: {url!r}")
        self.url = url
        self._client = httpx.AsyncClient(timeout=30.0)
        self._ids = itertools.count(1)

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> HttpRpc:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _request(self, name: str, method: str, params: list) -> Any:
        for attempt in range(_MAX_RETRIES + 1):
            payload = {
                "jsonrpc": "2.0",
                "id": next(self._ids),
                "method": method,
                "params": params,
            }
            try:
                response = await self._client.post(self.url, json=payload)
            except httpx.HTTPError as exc:
                raise RpcError(name, exc) from exc

            if response.status_code == _RATE_LIMIT_CODE and attempt < _MAX_RETRIES:
                await asyncio.sleep(_backoff(attempt))
                continue

            try:
                response.raise_for_status()
                body = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                raise RpcError(name, exc) from exc
            if not isinstance(body, dict):
                raise RpcError(name, f"malformed response: {body!r}")

            error = body.get("error")
            if error is not None:
                code = error.get("code") if isinstance(error, dict) else None
                if code == _RATE_LIMIT_CODE and attempt < _MAX_RETRIES:
                    await asyncio.sleep(_backoff(attempt))
                    continue
                message = error.get("message") if isinstance(error, dict) else error
                raise RpcError(name, f"{code}: {message}")
            return body.get("result")
        raise RpcError(name, "rate limited")

    async def _require(self, name: str, method: str, params: list) -> Any:
        result = await self._request(name, method, params)
        if result is None:
            raise RpcError(name, "empty result")
        return result

    async def get_proof(self, address, slots, block) -> ProofResponse:
        result = await self._require(
            "get_proof",
            "eth_getProof",
            [_hex(address), [_hex(slot) for slot in slots], hex(block)],
        )
        return ProofResponse.from_json(result)

    async def create_access_list(self, opts: CallOpts, block: BlockTag) -> list[AccessListItem]:
        tx: dict[str, str] = {
            "type": "0x2",
            "to": _hex(opts.to if opts.to is not None else _ZERO_ADDRESS),
            "gas": hex(opts.gas if opts.gas is not None else _ACCESS_LIST_GAS),
            "maxFeePerGas": "0x0",
            "maxPriorityFeePerGas": "0x0",
        }
        if opts.from_ is not None:
            tx["from"] = _hex(opts.from_)
        if opts.value is not None:
            tx["value"] = hex(opts.value)
        if opts.data is not None:
            tx["data"] = _hex(opts.data)
        result = await self._require(
            "create_access_list", "eth_createAccessList", [tx, tag_to_json(block)]
        )
        return [AccessListItem.from_json(item) for item in result.get("accessList", [])]

    async def get_code(self, address, block) -> bytes:
        result = await self._require("get_code", "eth_getCode", [_hex(address), hex(block)])
        return _parse_bytes(result)

    async def send_raw_transaction(self, data) -> bytes:
        result = await self._require(
            "send_raw_transaction", "eth_sendRawTransaction", [_hex(data)]
        )
        return _parse_bytes(result)

    async def get_transaction_receipt(self, tx_hash) -> TransactionReceipt | None:
        result = await self._request(
            "get_transaction_receipt", "eth_getTransactionReceipt", [_hex(tx_hash)]
        )
        return None if result is None else TransactionReceipt.from_json(result)

    async def get_transaction(self, tx_hash) -> Transaction | None:
        result = await self._request(
            "get_transaction", "eth_getTransactionByHash", [_hex(tx_hash)]
        )
        return None if result is None else Transaction.from_json(result)

    async def get_logs(self, log_filter: Filter) -> list[Log]:
        result = await self._require("get_logs", "eth_getLogs", [log_filter.to_json()])
        return [Log.from_json(item) for item in result]

    async def get_filter_changes(self, filter_id) -> list[Log]:
        result = await self._require(
            "get_filter_changes", "eth_getFilterChanges", [hex(filter_id)]
        )
        return [Log.from_json(item) for item in result]

    async def uninstall_filter(self, filter_id) -> bool:
        result = await self._require(
            "uninstall_filter", "eth_uninstallFilter", [hex(filter_id)]
        )
        return bool(result)

    async def get_new_filter(self, log_filter: Filter) -> int:
        result = await self._require(
            "get_new_filter", "eth_newFilter", [log_filter.to_json()]
        )
        return _parse_int(result)

    async def get_new_block_filter(self) -> int:
        result = await self._require("get_new_block_filter", "eth_newBlockFilter", [])
        return _parse_int(result)

    async def get_new_pending_transaction_filter(self) -> int:
        result = await self._require(
            "get_new_pending_transactions", "eth_newPendingTransactionFilter", []
        )
        return _parse_int(result)

    async def chain_id(self) -> int:
        result = await self._require("chain_id", "eth_chainId", [])
        return _parse_int(result)

    async def get_fee_history(self, block_count, last_block, reward_percentiles) -> FeeHistory:
        result = await self._require(
            "fee_history",
            "eth_feeHistory",
            [hex(block_count), hex(last_block), list(reward_percentiles)],
        )
        return FeeHistory.from_json(result)