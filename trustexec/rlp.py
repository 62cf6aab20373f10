"""Recursive length prefix encoding and the keccak-256 hash."""

from __future__ import annotations

from typing import Union

from Crypto.Hash import keccak

Item = Union[bytes, int, list]


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _int_to_bytes(value: int) -> bytes:
    if value < 0:
        raise ValueError("cannot encode a negative integer")
    return value.to_bytes((value.bit_length() + 7) // 8, "big") if value else b""


def _length_prefix(length: int, short_base: int) -> bytes:
    if length < 56:
        return bytes([short_base + length])
    encoded_length = _int_to_bytes(length)
    return bytes([short_base + 55 + len(encoded_length)]) + encoded_length


def encode(item: Item) -> bytes:
    """Encode bytes, a non-negative integer, or a (nested) list of them."""
    if isinstance(item, bool):
        item = int(item)
    if isinstance(item, int):
        item = _int_to_bytes(item)
    if isinstance(item, (bytes, bytearray)):
        data = bytes(item)
        if len(data) == 1 and data[0] < 0x80:
            return data
        return _length_prefix(len(data), 0x80) + data
    if isinstance(item, (list, tuple)):
        payload = b"".join(encode(element) for element in item)
        return _length_prefix(len(payload), 0xC0) + payload
    raise TypeError(f"cannot encode value of type {type(item).__name__}")


def _read_item(data: bytes, start: int) -> tuple[bool, int, int]:
    """Return (is_list, payload_start, payload_end) of the item at ``start``."""
    if start >= len(data):
        raise ValueError("unexpected end of data")
    prefix = data[start]
    if prefix < 0x80:
        return False, start, start + 1
    if prefix < 0xB8:
        begin, length, is_list = start + 1, prefix - 0x80, False
    elif prefix < 0xC0:
        size = prefix - 0xB7
        begin = start + 1 + size
        length, is_list = int.from_bytes(data[start + 1:begin], "big"), False
    elif prefix < 0xF8:
        begin, length, is_list = start + 1, prefix - 0xC0, True
    else:
        size = prefix - 0xF7
        begin = start + 1 + size
        length, is_list = int.from_bytes(data[start + 1:begin], "big"), True
    end = begin + length
    if end > len(data):
        raise ValueError("item length exceeds data")
    return is_list, begin, end


def _decode_at(data: bytes, start: int) -> tuple[Item, int]:
    is_list, begin, end = _read_item(data, start)
    if not is_list:
        return data[begin:end], end
    items = []
    position = begin
    while position < end:
        element, position = _decode_at(data, position)
        items.append(element)
    if position != end:
        raise ValueError("malformed list payload")
    return items, end


def decode(data: bytes) -> Item:
    """Decode a single encoded item into bytes or nested lists of bytes."""
    data = bytes(data)
    item, end = _decode_at(data, 0)
    if end != len(data):
        raise ValueError("trailing bytes after item")
    return item


def decode_list(data: bytes) -> list[bytes]:
    """Decode a list whose elements are returned as bytes.

    A nested list element is returned as its raw encoding.
    """
    data = bytes(data)
    is_list, begin, end = _read_item(data, 0)
    if not is_list:
        raise ValueError("expected a list")
    if end != len(data):
        raise ValueError("trailing bytes after list")
    elements = []
    position = begin
    while position < end:
        element_is_list, element_begin, element_end = _read_item(data, position)
        if element_is_list:
            elements.append(data[position:element_end])
        else:
            elements.append(data[element_begin:element_end])
        position = element_end
    return elements