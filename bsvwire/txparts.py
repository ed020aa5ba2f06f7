"""Transaction building blocks: outpoints, inputs, outputs and hashing helpers."""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from typing import BinaryIO

from .protocol import (
    MessageError,
    max_message_payload,
    read_exact,
    read_var_int,
    var_int_serialize_size,
    write_var_bytes,
)

HASH_SIZE = 32
MAX_HASH_STRING_SIZE = HASH_SIZE * 2

TX_VERSION = 1
MAX_TX_IN_SEQUENCE_NUM = 0xFFFFFFFF
MAX_PREV_OUT_INDEX = 0xFFFFFFFF
SEQUENCE_LOCK_TIME_DISABLED = 1 << 31
SEQUENCE_LOCK_TIME_IS_SECONDS = 1 << 22
SEQUENCE_LOCK_TIME_MASK = 0x0000FFFF
SEQUENCE_LOCK_TIME_GRANULARITY = 9

# Outpoint hash + index (4) + script length varint (1) + sequence (4).
MIN_TX_IN_PAYLOAD = 9 + HASH_SIZE
# Value (8) + script length varint (1).
MIN_TX_OUT_PAYLOAD = 9
# Version (4) + input count (1) + output count (1) + lock time (4).
MIN_TX_PAYLOAD = 10


def double_sha256(data: bytes) -> bytes:
    """SHA-256 applied twice to ``data``."""
    return hashlib.sha256(hashlib.sha256(bytes(data)).digest()).digest()


def hash_to_str(digest: bytes) -> str:
    """Hex form of a hash in the byte-reversed order used for display."""
    return bytes(digest)[::-1].hex()


def hash_from_str(text: str) -> bytes:
    """Parse a displayed hash; short strings are zero-padded on the left."""
    if len(text) > MAX_HASH_STRING_SIZE:
        raise ValueError(f"max hash string length is {MAX_HASH_STRING_SIZE} bytes")
    if len(text) % 2:
        text = "0" + text
    decoded = bytes.fromhex(text)
    return (bytes(HASH_SIZE - len(decoded)) + decoded)[::-1]


def max_tx_in_per_message() -> int:
    """Most inputs a transaction fitting in one message could have."""
    return max_message_payload() // MIN_TX_IN_PAYLOAD + 1


def max_tx_out_per_message() -> int:
    """Most outputs a transaction fitting in one message could have."""
    return max_message_payload() // MIN_TX_OUT_PAYLOAD + 1


def read_script(reader: BinaryIO, max_allowed: int, field_name: str) -> bytes:
    """Read a length-prefixed script, refusing lengths above ``max_allowed``."""
    count = read_var_int(reader)
    if count > max_allowed:
        raise MessageError(
            "read_script",
            f"{field_name} is larger than the max allowed size "
            f"[count {count}, max {max_allowed}]",
        )
    return read_exact(reader, count)


@dataclass(frozen=True)
class OutPoint:
    """Reference to an output of an earlier transaction."""

    hash: bytes = bytes(HASH_SIZE)
    index: int = 0

    def __post_init__(self) -> None:
        digest = bytes(self.hash)
        if len(digest) != HASH_SIZE:
            raise ValueError(f"hash must be {HASH_SIZE} bytes, got {len(digest)}")
        object.__setattr__(self, "hash", digest)

    def __str__(self) -> str:
        return f"{hash_to_str(self.hash)}:{self.index}"

    @classmethod
    def decode(cls, reader: BinaryIO) -> "OutPoint":
        """Read an outpoint from its wire form."""
        digest = read_exact(reader, HASH_SIZE)
        (index,) = struct.unpack("<I", read_exact(reader, 4))
        return cls(hash=digest, index=index)

    def encode(self, writer: BinaryIO) -> None:
        """Write the outpoint in its wire form."""
        writer.write(self.hash)
        writer.write(struct.pack("<I", self.index))


@dataclass
class TxIn:
    """A transaction input."""

    previous_out_point: OutPoint = field(default_factory=OutPoint)
    signature_script: bytes = b""
    sequence: int = MAX_TX_IN_SEQUENCE_NUM

    def __post_init__(self) -> None:
        self.signature_script = bytes(self.signature_script)

    def serialize_size(self) -> int:
        """Number of bytes the encoded input takes."""
        script_len = len(self.signature_script)
        return 40 + var_int_serialize_size(script_len) + script_len

    @classmethod
    def decode(cls, reader: BinaryIO) -> "TxIn":
        """Read an input from its wire form."""
        out_point = OutPoint.decode(reader)
        script = read_script(
            reader, max_tx_in_per_message(), "transaction input signature script"
        )
        (sequence,) = struct.unpack("<I", read_exact(reader, 4))
        return cls(previous_out_point=out_point, signature_script=script, sequence=sequence)

    def encode(self, writer: BinaryIO) -> None:
        """Write the input in its wire form."""
        self.previous_out_point.encode(writer)
        write_var_bytes(writer, self.signature_script)
        writer.write(struct.pack("<I", self.sequence))


@dataclass
class TxOut:
    """A transaction output."""

    value: int = 0
    pk_script: bytes = b""

    def __post_init__(self) -> None:
        self.pk_script = bytes(self.pk_script)

    def serialize_size(self) -> int:
        """Number of bytes the encoded output takes."""
        script_len = len(self.pk_script)
        return 8 + var_int_serialize_size(script_len) + script_len

    @classmethod
    def decode(cls, reader: BinaryIO) -> "TxOut":
        """Read an output from its wire form."""
        (value,) = struct.unpack("<q", read_exact(reader, 8))
        script = read_script(
            reader, max_message_payload(), "transaction output public key script"
        )
        return cls(value=value, pk_script=script)

    def encode(self, writer: BinaryIO) -> None:
        """Write the output in its wire form."""
        write_tx_out(writer, self)


def write_tx_out(writer: BinaryIO, tx_out: TxOut) -> None:
    """Write ``tx_out`` in its wire form."""
    writer.write(struct.pack("<Q", tx_out.value & 0xFFFFFFFFFFFFFFFF))
    write_var_bytes(writer, tx_out.pk_script)