import json

import pytest

from trustexec.errors import RpcError
from trustexec.rpc import ExecutionRpc, MockRpc
from trustexec.types import CallOpts, Filter, Tag

ADDRESS = "0x" + "14" * 20
TX_HASH = "0x" + "2d" * 32


def _write(directory, name, payload):
    (directory / name).write_text(json.dumps(payload))


def _log_json(index):
    return {
        "address": ADDRESS,
        "topics": ["0x" + "ab" * 32],
        "data": "0x0102",
        "transactionHash": TX_HASH,
        "logIndex": hex(index),
    }


def test_execution_rpc_is_abstract():
    with pytest.raises(TypeError):
        ExecutionRpc()


@pytest.mark.asyncio
async def test_get_proof_reads_file(tmp_path):
    _write(
        tmp_path,
        "proof.json",
        {
            "address": ADDRESS,
            "balance": "0x48c27395000",
            "codeHash": "0x" + "c5" * 32,
            "nonce": "0x3",
            "storageHash": "0x" + "56" * 32,
            "accountProof": ["0xf8"],
            "storageProof": [{"key": "0x1", "value": "0x2", "proof": []}],
        },
    )
    proof = await MockRpc(tmp_path).get_proof(bytes.fromhex("14" * 20), [], 1)
    assert proof.balance == 0x48C27395000
    assert proof.nonce == 3
    assert proof.address == bytes.fromhex("14" * 20)
    assert proof.account_proof == [b"\xf8"]
    assert proof.storage_proof[0].key == b"\x00" * 31 + b"\x01"
    assert proof.storage_proof[0].value == 2


@pytest.mark.asyncio
async def test_get_code_drops_trailing_character(tmp_path):
    (tmp_path / "code.json").write_text("0x6001600055\n")
    code = await MockRpc(str(tmp_path)).get_code(b"\x00" * 20, 1)
    assert code == bytes.fromhex("6001600055")


@pytest.mark.asyncio
async def test_receipt_null_is_none(tmp_path):
    (tmp_path / "receipt.json").write_text("null")
    assert await MockRpc(tmp_path).get_transaction_receipt(b"\x00" * 32) is None


@pytest.mark.asyncio
async def test_receipt_is_parsed(tmp_path):
    _write(
        tmp_path,
        "receipt.json",
        {
            "transactionHash": TX_HASH,
            "blockHash": "0x" + "66" * 32,
            "blockNumber": "0x72e9b5",
            "status": "0x1",
            "cumulativeGasUsed": "0x10",
            "logs": [_log_json(0)],
            "type": "0x2",
        },
    )
    receipt = await MockRpc(tmp_path).get_transaction_receipt(b"\x00" * 32)
    assert receipt.transaction_hash == bytes.fromhex("2d" * 32)
    assert receipt.block_number == 0x72E9B5
    assert receipt.transaction_type == 2
    assert len(receipt.logs) == 1
    assert receipt.logs[0].data == b"\x01\x02"


@pytest.mark.asyncio
async def test_transaction_is_parsed(tmp_path):
    _write(tmp_path, "transaction.json", {"hash": TX_HASH, "type": "0x2"})
    tx = await MockRpc(tmp_path).get_transaction(b"\x00" * 32)
    assert tx.hash == bytes.fromhex("2d" * 32)
    assert tx.tx_type == 2


@pytest.mark.asyncio
async def test_transaction_null_is_none(tmp_path):
    (tmp_path / "transaction.json").write_text("null")
    assert await MockRpc(tmp_path).get_transaction(b"\x00" * 32) is None


@pytest.mark.asyncio
async def test_logs_and_filter_changes_read_same_file(tmp_path):
    _write(tmp_path, "logs.json", [_log_json(0), _log_json(1)])
    rpc = MockRpc(tmp_path)
    logs = await rpc.get_logs(Filter())
    changes = await rpc.get_filter_changes(7)
    assert [log.log_index for log in logs] == [0, 1]
    assert logs == changes
    assert logs[0].transaction_hash == bytes.fromhex("2d" * 32)


@pytest.mark.asyncio
async def test_fee_history_is_parsed(tmp_path):
    _write(
        tmp_path,
        "fee_history.json",
        {
            "baseFeePerGas": ["0x10", "0x20"],
            "gasUsedRatio": [0.5],
            "oldestBlock": "0x5",
            "reward": [["0x1", "0x2"]],
        },
    )
    history = await MockRpc(tmp_path).get_fee_history(1, 5, [10.0, 90.0])
    assert history.base_fee_per_gas == [0x10, 0x20]
    assert history.gas_used_ratio == [0.5]
    assert history.oldest_block == 5
    assert history.reward == [[1, 2]]


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        await MockRpc(tmp_path).get_proof(b"\x00" * 20, [], 1)


@pytest.mark.asyncio
async def test_create_access_list_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).create_access_list(CallOpts(), Tag.LATEST)
    assert info.value.method == "create_access_list"


@pytest.mark.asyncio
async def test_send_raw_transaction_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).send_raw_transaction(b"\x01")
    assert info.value.method == "send_raw_transaction"


@pytest.mark.asyncio
async def test_uninstall_filter_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).uninstall_filter(1)
    assert info.value.method == "uninstall_filter"


@pytest.mark.asyncio
async def test_get_new_filter_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).get_new_filter(Filter())
    assert info.value.method == "get_new_filter"


@pytest.mark.asyncio
async def test_get_new_block_filter_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).get_new_block_filter()
    assert info.value.method == "get_new_block_filter"


@pytest.mark.asyncio
async def test_get_new_pending_transaction_filter_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).get_new_pending_transaction_filter()
    assert info.value.method == "get_new_pending_transaction_filter"


@pytest.mark.asyncio
async def test_chain_id_unsupported(tmp_path):
    with pytest.raises(RpcError) as info:
        await MockRpc(tmp_path).chain_id()
    assert info.value.method == "chain_id"