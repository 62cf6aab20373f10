from trustexec import proof, rlp
from trustexec.types import ProofResponse


def test_shared_prefix_length_from_source():
    path = bytes([0x12, 0x13, 0x14, 0x6F, 0x6C, 0x64, 0x21])
    assert proof.shared_prefix_length(path, 6, bytes([0x6F, 0x6C, 0x63, 0x21])) == 5
    assert proof.shared_prefix_length(path, 5, bytes([0x14, 0x6F, 0x6C, 0x64, 0x11])) == 7


def test_get_nibble():
    assert proof.get_nibble(bytes([0xAB]), 0) == 0xA
    assert proof.get_nibble(bytes([0xAB]), 1) == 0xB


def test_skip_length():
    assert proof.skip_length(b"") == 0
    assert proof.skip_length(b"\x20") == 2
    assert proof.skip_length(b"\x3a") == 1
    assert proof.skip_length(b"\x50") == 0


def test_paths_match():
    assert proof.paths_match(b"\x1a\xbc", 1, b"\xab\xc0", 0) is False
    assert proof.paths_match(b"\x1a\xbc", 1, b"\x0a\xbc", 1) is True


def test_is_empty_value():
    assert proof.is_empty_value(b"\x80")
    assert not proof.is_empty_value(b"\x01")


def _leaf_proof(path: bytes, value: bytes):
    leaf = rlp.encode([b"\x20" + path, value])
    return [leaf], rlp.keccak256(leaf)


def test_verify_single_leaf_inclusion():
    path = rlp.keccak256(b"key")
    nodes, root = _leaf_proof(path, b"value")
    assert proof.verify_proof(nodes, root, path, b"value") is True


def test_verify_wrong_value_fails():
    path = rlp.keccak256(b"key")
    nodes, root = _leaf_proof(path, b"value")
    assert proof.verify_proof(nodes, root, path, b"other") is False


def test_verify_wrong_root_fails():
    path = rlp.keccak256(b"key")
    nodes, _ = _leaf_proof(path, b"value")
    assert proof.verify_proof(nodes, b"\x00" * 32, path, b"value") is False


def test_verify_exclusion_for_other_path():
    path = rlp.keccak256(b"key")
    nodes, root = _leaf_proof(path, b"value")
    other = rlp.keccak256(b"missing")
    assert proof.verify_proof(nodes, root, other, b"\x80") is True
    assert proof.verify_proof(nodes, root, other, b"value") is False


def test_encode_account_round_trip():
    response = ProofResponse(
        address=b"\x01" * 20,
        balance=500,
        code_hash=b"\x02" * 32,
        nonce=10,
        storage_hash=b"\x03" * 32,
    )
    decoded = rlp.decode(proof.encode_account(response))
    assert int.from_bytes(decoded[0], "big") == 10
    assert int.from_bytes(decoded[1], "big") == 500
    assert decoded[2:] == [b"\x03" * 32, b"\x02" * 32]