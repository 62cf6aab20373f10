"""Root hash of a Merkle-Patricia trie keyed by item index."""

from __future__ import annotations

from typing import Iterable, Sequence

from . import rlp

_Pair = tuple[Sequence[int], bytes]


def _nibbles(key: bytes) -> list[int]:
    return [part for byte in key for part in (byte >> 4, byte & 0xF)]


def _hex_prefix(nibbles: Sequence[int], leaf: bool) -> bytes:
    flag = 2 if leaf else 0
    if len(nibbles) % 2:
        packed = [flag + 1, *nibbles]
    else:
        packed = [flag, 0, *nibbles]
    return bytes(packed[i] << 4 | packed[i + 1] for i in range(0, len(packed), 2))


def _reference(node: rlp.Item) -> rlp.Item:
    encoded = rlp.encode(node)
    return node if len(encoded) < 32 else rlp.keccak256(encoded)


def _common_prefix(pairs: list[_Pair], depth: int) -> int:
    first = pairs[0][0]
    length = len(first) - depth
    for key, _ in pairs[1:]:
        length = min(length, len(key) - depth)
        for offset in range(length):
            if key[depth + offset] != first[depth + offset]:
                length = offset
                break
    return length


def _build(pairs: list[_Pair], depth: int) -> rlp.Item:
    if not pairs:
        return b""
    if len(pairs) == 1:
        key, value = pairs[0]
        return [_hex_prefix(key[depth:], leaf=True), value]

    prefix = _common_prefix(pairs, depth)
    if prefix:
        shared = pairs[0][0][depth:depth + prefix]
        child = _build(pairs, depth + prefix)
        return [_hex_prefix(shared, leaf=False), _reference(child)]

    branch: list[rlp.Item] = [b""] * 17
    for nibble in range(16):
        group = [pair for pair in pairs if len(pair[0]) > depth and pair[0][depth] == nibble]
        if group:
            branch[nibble] = _reference(_build(group, depth + 1))
    for key, value in pairs:
        if len(key) == depth:
            branch[16] = value
    return branch


def ordered_trie_root(items: Iterable[bytes]) -> bytes:
    """Return the trie root where the i-th item is stored under the key rlp(i)."""
    pairs = [(_nibbles(rlp.encode(index)), bytes(item)) for index, item in enumerate(items)]
    return rlp.keccak256(rlp.encode(_build(pairs, 0)))