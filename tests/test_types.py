import pytest

from trustexec import rlp
from trustexec.types import (
    AccessListItem,
    Block,
    CallOpts,
    FeeHistory,
    Filter,
    Log,
    ProofResponse,
    Tag,
    Transaction,
    TransactionReceipt,
    parse_block_tag,
)

RAW_TX = bytes.fromhex(
    "02f8b20583623355849502f900849502f91082ea6094326c977e6efc84e512bb9c30f76e30c160ed06fb80b844a9059cbb0000000000000000000000007daccf9b3c1ae2fa5c55f1c978aeef700bc83be0000000000000000000000000000000000000000000000001158e460913d00000c080a0e1445466b058b6f883c0222f1b1f3e2ad9bee7b5f688813d86e3fa8f93aa868ca0786d6e7f3aefa8fe73857c65c32e4884d8ba38d0ecfb947fbffb82e8ee80c167"
)
TX_HASH = "2dac1b27ab58b493f902dda8b63979a112398d747f1761c0891777c0983e591f"


def test_transaction_from_raw_hash():
    tx = Transaction.from_raw(RAW_TX)
    assert tx.hash.hex() == TX_HASH
    assert tx.tx_type == 2


@pytest.mark.parametrize(
    "value,expected",
    [("latest", Tag.LATEST), ("finalized", Tag.FINALIZED), ("0x10", 16), (7, 7), ("12", 12)],
)
def test_parse_block_tag(value, expected):
    assert parse_block_tag(value) == expected


@pytest.mark.parametrize("value", ["pending", -1, None, True])
def test_parse_block_tag_invalid(value):
    with pytest.raises(ValueError):
        parse_block_tag(value)


def test_call_opts_round_trip():
    opts = CallOpts(from_=b"\x01" * 20, to=b"\x02" * 20, gas=100, value=5, data=b"\xab")
    assert CallOpts.from_json(opts.to_json()) == opts


def test_block_with_hashes_only():
    tx = Transaction.from_raw(RAW_TX)
    block = Block(number=3, transactions=[tx])
    stripped = block.with_hashes_only()
    assert stripped.transactions == [tx.hash]
    assert stripped.transaction_hashes() == block.transaction_hashes()
    assert block.transactions == [tx]


def test_log_rlp_bytes_decodes_to_fields():
    log = Log(address=b"\x03" * 20, topics=[b"\x04" * 32], data=b"xyz")
    assert rlp.decode(log.rlp_bytes()) == [b"\x03" * 20, [b"\x04" * 32], b"xyz"]


def test_receipt_from_json():
    receipt = TransactionReceipt.from_json(
        {
            "transactionHash": "0x" + TX_HASH,
            "blockNumber": "0x10",
            "status": "0x1",
            "cumulativeGasUsed": "0x5",
            "logs": [{"address": "0x" + "11" * 20, "topics": [], "data": "0x", "logIndex": "0x0"}],
            "type": "0x2",
        }
    )
    assert receipt.transaction_hash.hex() == TX_HASH
    assert receipt.block_number == 16
    assert receipt.logs[0].address == b"\x11" * 20
    assert receipt.transaction_type == 2


def test_proof_response_from_json():
    proof = ProofResponse.from_json(
        {
            "address": "0x" + "22" * 20,
            "balance": "0x48c27395000",
            "codeHash": "0x" + "00" * 32,
            "nonce": "0x1",
            "storageHash": "0x" + "00" * 32,
            "accountProof": ["0xc0"],
            "storageProof": [{"key": "0x1", "value": "0x2", "proof": []}],
        }
    )
    assert proof.balance == int("48c27395000", 16)
    assert proof.account_proof == [b"\xc0"]
    assert proof.storage_proof[0].key == b"\x00" * 31 + b"\x01"


def test_access_list_item():
    item = AccessListItem.from_json({"address": "0x" + "33" * 20, "storageKeys": ["0x" + "44" * 32]})
    assert item.address == b"\x33" * 20
    assert item.storage_keys == [b"\x44" * 32]


def test_filter_to_json():
    flt = Filter(from_block=5, to_block=Tag.LATEST, address=b"\x55" * 20)
    assert flt.to_json() == {"fromBlock": "0x5", "toBlock": "latest", "address": "0x" + "55" * 20}


def test_fee_history():
    history = FeeHistory.from_json(
        {"baseFeePerGas": ["0x1"], "gasUsedRatio": [0.5], "oldestBlock": "0x9", "reward": [["0x2"]]}
    )
    assert history.base_fee_per_gas == [1]
    assert history.oldest_block == 9
    assert history.reward == [[2]]