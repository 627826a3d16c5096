"""HTSP binary message encoding, decoding and inspection."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple, Union

_HEADER_LEN = 4
_FIELD_HEADER_LEN = 6
_LABELS = ("", "MAP", "S64", "STR", "BIN", "LIST", "DBL")


class FieldType(enum.IntEnum):
    """Type codes of HTSP message fields."""

    NULL = 0
    MAP = 1
    S64 = 2
    STR = 3
    BIN = 4
    LIST = 5
    DBL = 6


class MessageError(ValueError):
    """Raised when a message cannot be encoded or decoded."""


@dataclass(frozen=True)
class Field:
    """One field of an HTSP message: its type, name and raw data."""

    type: FieldType
    name: str
    data: bytes


def _encode_s64(value: int) -> bytes:
    # Zero encodes as an empty field; negative values use all eight bytes.
    value &= 0xFFFFFFFFFFFFFFFF
    out = bytearray()
    while value > 0:
        out.append(value & 0xFF)
        value >>= 8
    return bytes(out)


def _encode_value(ftype: FieldType, value: object) -> bytes:
    if ftype is FieldType.STR:
        if not isinstance(value, str):
            raise MessageError("STR field needs a str value")
        return value.encode("utf-8")
    if ftype is FieldType.S64:
        if not isinstance(value, int) or isinstance(value, bool):
            raise MessageError("S64 field needs an int value")
        return _encode_s64(value)
    if ftype is FieldType.BIN:
        if not isinstance(value, (bytes, bytearray, memoryview)):
            raise MessageError("BIN field needs a bytes value")
        return bytes(value)
    raise MessageError(f"unsupported field type in message creation ({int(ftype)})")


def encode_message(fields: Iterable[Tuple[Union[FieldType, int], str, object]]) -> bytes:
    """Encode (type, name, value) triples as a length-prefixed HTSP message."""
    body = bytearray()
    for ftype, name, value in fields:
        try:
            ftype = FieldType(ftype)
        except ValueError as exc:
            raise MessageError(f"unsupported field type in message creation ({ftype})") from exc
        name_bytes = name.encode("utf-8")
        if len(name_bytes) > 0xFF:
            raise MessageError(f"field name too long: {name!r}")
        data = _encode_value(ftype, value)
        body.append(int(ftype))
        body.append(len(name_bytes))
        body += len(data).to_bytes(4, "big")
        body += name_bytes
        body += data
    return len(body).to_bytes(4, "big") + bytes(body)


def _iter_raw(data: bytes) -> Iterator[Tuple[FieldType, bytes, bytes]]:
    view = memoryview(data)
    pos = 0
    end = len(view)
    while pos < end:
        if end - pos < _FIELD_HEADER_LEN:
            raise MessageError("truncated field header")
        code = view[pos]
        ftype = FieldType(code) if code <= FieldType.DBL else FieldType.NULL
        namelen = view[pos + 1]
        datalen = int.from_bytes(view[pos + 2:pos + 6], "big")
        pos += _FIELD_HEADER_LEN
        if pos + namelen + datalen > end:
            raise MessageError("truncated field data")
        name = bytes(view[pos:pos + namelen])
        pos += namelen
        value = bytes(view[pos:pos + datalen])
        pos += datalen
        yield ftype, name, value


def iter_fields(data: bytes) -> Iterator[Field]:
    """Yield the fields of a message body (the bytes after the length header)."""
    for ftype, name, value in _iter_raw(data):
        yield Field(ftype, name.decode("utf-8", errors="replace"), value)


def _to_signed(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def dump_fields(data: bytes) -> str:
    """Render a message body as readable text, recursing into lists and maps."""
    parts = []
    for field in iter_fields(data):
        parts.append(
            f"type={int(field.type)}, datalen={len(field.data)} "
            f"{_LABELS[field.type]}: {field.name}="
        )
        if field.type is FieldType.STR:
            parts.append('"' + field.data.decode("utf-8", errors="replace") + '"')
        elif field.type is FieldType.BIN:
            parts.append('""')
        elif field.type is FieldType.S64:
            number = _to_signed(int.from_bytes(field.data, "little"), 64)
            hex_bytes = "".join(f" 0x{b:02x}" for b in field.data)
            parts.append(f"{number} [{hex_bytes} ]")
        elif field.type in (FieldType.LIST, FieldType.MAP):
            parts.append("\n")
            parts.append(dump_fields(field.data))
        parts.append("\n")
    return "".join(parts)


@dataclass
class HtspMessage:
    """A complete HTSP message, including its four-byte length header."""

    data: bytes
    server: int = 0

    def __post_init__(self) -> None:
        self.data = bytes(self.data)
        if len(self.data) < _HEADER_LEN:
            raise MessageError("message shorter than its length header")

    def _find(self, name: str, ftype: FieldType) -> Optional[bytes]:
        wanted = name.encode("utf-8")
        for found_type, found_name, value in _iter_raw(self.data[_HEADER_LEN:]):
            if found_type is ftype and found_name == wanted:
                return value
        return None

    def _get_number(self, name: str) -> Optional[int]:
        raw = self._find(name, FieldType.S64)
        if raw is None:
            return None
        return int.from_bytes(raw, "little")

    def get_string(self, name: str) -> Optional[str]:
        """Return the named STR field, or None if absent."""
        raw = self._find(name, FieldType.STR)
        return None if raw is None else raw.decode("utf-8", errors="replace")

    def get_int(self, name: str) -> Optional[int]:
        """Return the named S64 field as a signed 32-bit value, or None."""
        value = self._get_number(name)
        return None if value is None else _to_signed(value, 32)

    def get_uint(self, name: str) -> Optional[int]:
        """Return the named S64 field as an unsigned 32-bit value, or None."""
        value = self._get_number(name)
        return None if value is None else value & 0xFFFFFFFF

    def get_int64(self, name: str) -> Optional[int]:
        """Return the named S64 field as a signed 64-bit value, or None."""
        value = self._get_number(name)
        return None if value is None else _to_signed(value, 64)

    def get_bin(self, name: str) -> Optional[bytes]:
        """Return the data of the named BIN field, or None."""
        return self._find(name, FieldType.BIN)

    def get_list(self, name: str) -> Optional[bytes]:
        """Return the encoded entries of the named LIST field, or None."""
        return self._find(name, FieldType.LIST)

    def dump(self) -> str:
        """Render the message's fields as readable text."""
        return dump_fields(self.data[_HEADER_LEN:])