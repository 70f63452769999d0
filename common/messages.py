"""
common.messages

Datagram codec for the aggregation protocol.

Two wire formats are understood:

plain   (compatible with existing nodes)
    b"<int>"          bare ASCII decimal, surrounding whitespace allowed
    0                 FLUSH
    -1                TERMINATE
    anything else     CONTRIBUTE(value)

tagged  (one ASCII tag byte + payload)
    b"C<int>"         CONTRIBUTE(value), 0 and -1 are ordinary values here
    b"F"              FLUSH
    b"T"              TERMINATE
    b"A<int>"         average broadcast (coordinator -> network)

Inside the process every datagram becomes one of Contribute / Flush /
Terminate so the coordinator never compares raw integers against the
control values itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from common.config import (
    BUFFER_SIZE,
    FLUSH,
    INT_MAX,
    INT_MIN,
    TERMINATE,
    WIRE_PLAIN,
    WIRE_TAGGED,
)

TAG_CONTRIBUTE = "C"
TAG_FLUSH = "F"
TAG_TERMINATE = "T"
TAG_AVERAGE = "A"

_INT_RE = re.compile(r"[+-]?[0-9]+")


class DecodeError(ValueError):
    """Payload is not a valid signal for the configured wire format."""


@dataclass(frozen=True)
class Contribute:
    value: int


@dataclass(frozen=True)
class Flush:
    pass


@dataclass(frozen=True)
class Terminate:
    pass


Signal = Union[Contribute, Flush, Terminate]


def parse_int(text: str) -> int:
    """Strict signed 32-bit decimal parse (no underscores, no non-ASCII digits)."""
    if not _INT_RE.fullmatch(text):
        raise DecodeError(f"not an integer: {text!r}")
    value = int(text)
    if not INT_MIN <= value <= INT_MAX:
        raise DecodeError(f"out of range: {text}")
    return value


def _text(data: bytes) -> str:
    if len(data) > BUFFER_SIZE:
        raise DecodeError(f"payload too large ({len(data)} bytes)")
    try:
        return data.decode("utf-8").strip()
    except UnicodeDecodeError as e:
        raise DecodeError("payload is not UTF-8") from e


class Codec:
    def __init__(self, wire_format: str = WIRE_PLAIN):
        if wire_format not in (WIRE_PLAIN, WIRE_TAGGED):
            raise ValueError(f"unknown wire format: {wire_format}")
        self.wire_format = wire_format

    @property
    def tagged(self) -> bool:
        return self.wire_format == WIRE_TAGGED

    # ---------- decoding ----------

    def decode(self, data: bytes) -> Signal:
        text = _text(data)
        if self.tagged:
            return self._decode_tagged(text)
        return self._decode_plain(text)

    def _decode_plain(self, text: str) -> Signal:
        value = parse_int(text)
        if value == FLUSH:
            return Flush()
        if value == TERMINATE:
            return Terminate()
        return Contribute(value)

    def _decode_tagged(self, text: str) -> Signal:
        if not text:
            raise DecodeError("empty payload")
        tag, body = text[0], text[1:]
        if tag == TAG_FLUSH and not body:
            return Flush()
        if tag == TAG_TERMINATE and not body:
            return Terminate()
        if tag == TAG_CONTRIBUTE:
            return Contribute(parse_int(body))
        raise DecodeError(f"unknown frame: {text!r}")

    # ---------- encoding ----------

    def encode_value(self, value: int) -> bytes:
        if self.tagged:
            return _checked(f"{TAG_CONTRIBUTE}{int(value)}")
        return _checked(str(int(value)))

    def encode_average(self, avg: int) -> bytes:
        if self.tagged:
            return _checked(f"{TAG_AVERAGE}{int(avg)}")
        return _checked(str(int(avg)))

    def encode_terminate(self) -> bytes:
        return _checked(TAG_TERMINATE if self.tagged else str(TERMINATE))


def _checked(text: str) -> bytes:
    data = text.encode("ascii")
    if len(data) > BUFFER_SIZE:
        raise ValueError(f"payload exceeds {BUFFER_SIZE} bytes")
    return data
