"""Merkle-Patricia proof verification."""

from __future__ import annotations

from . import rlp
from .types import ProofResponse

_EMPTY_STORAGE_HASH = bytes.fromhex(
    "56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421"
)
_EMPTY_CODE_HASH = bytes.fromhex(
    "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
)
_EMPTY_ACCOUNT = rlp.encode([b"", b"", _EMPTY_STORAGE_HASH, _EMPTY_CODE_HASH])


def get_nibble(path: bytes, offset: int) -> int:
    byte = path[offset // 2]
    return byte >> 4 if offset % 2 == 0 else byte & 0xF


def skip_length(node: bytes) -> int:
    if not node:
        return 0
    return {0: 2, 1: 1, 2: 2, 3: 1}.get(get_nibble(node, 0), 0)


def paths_match(p1: bytes, s1: int, p2: bytes, s2: int) -> bool:
    len1 = len(p1) * 2 - s1
    len2 = len(p2) * 2 - s2
    if len1 != len2:
        return False
    return all(get_nibble(p1, s1 + i) == get_nibble(p2, s2 + i) for i in range(len1))


def shared_prefix_length(path: bytes, path_offset: int, node_path: bytes) -> int:
    skip = skip_length(node_path)
    length = min(len(node_path) * 2 - skip, len(path) * 2 - path_offset)
    prefix = 0
    for i in range(length):
        if get_nibble(path, i + path_offset) != get_nibble(node_path, i + skip):
            break
        prefix += 1
    return prefix


def is_empty_value(value: bytes) -> bool:
    return bytes(value) == b"\x80" or bytes(value) == _EMPTY_ACCOUNT


def verify_proof(proof: list[bytes], root: bytes, path: bytes, value: bytes) -> bool:
    """Check that ``proof`` shows ``path`` maps to ``value`` (or is absent) under ``root``."""
    expected_hash = bytes(root)
    path_offset = 0
    last = len(proof) - 1

    for i, node in enumerate(proof):
        if expected_hash != rlp.keccak256(node):
            return False
        try:
            node_list = rlp.decode_list(node)
        except ValueError:
            return False

        if len(node_list) == 17:
            nibble = get_nibble(path, path_offset)
            if i == last:
                if not node_list[nibble] and is_empty_value(value):
                    return True
            else:
                expected_hash = node_list[nibble]
                path_offset += 1
        elif len(node_list) == 2:
            node_path = node_list[0]
            if i == last:
                matches = paths_match(node_path, skip_length(node_path), path, path_offset)
                if not matches and is_empty_value(value):
                    return True
                if node_list[1] == bytes(value):
                    return matches
            else:
                prefix = shared_prefix_length(path, path_offset, node_path)
                if prefix < len(node_path) * 2 - skip_length(node_path):
                    return False
                path_offset += prefix
                expected_hash = node_list[1]
        else:
            return False

    return False


def encode_account(proof: ProofResponse) -> bytes:
    return rlp.encode([proof.nonce, proof.balance, proof.storage_hash, proof.code_hash])