"""Protocol constants, service flags, network identifiers and primitive encodings."""

from __future__ import annotations

import enum
import struct
from typing import BinaryIO

PROTOCOL_VERSION = 70016
MULTIPLE_ADDRESS_VERSION = 209
NET_ADDRESS_TIME_VERSION = 31402
BIP0031_VERSION = 60000
BIP0035_VERSION = 60002
BIP0037_VERSION = 70001
REJECT_VERSION = 70002
BIP0111_VERSION = 70011
SEND_HEADERS_VERSION = 70012
FEE_FILTER_VERSION = 70013
PROTOCONF_VERSION = 70013

CMD_VERSION = "version"
CMD_VERACK = "verack"
CMD_TX = "tx"

MAX_VAR_INT_PAYLOAD = 9

FIXED_EXCESSIVE_BLOCK_SIZE = 10_000_000_000

_UINT64_MAX = 0xFFFFFFFFFFFFFFFF


class MessageError(ValueError):
    """A message could not be encoded or decoded because it breaks a protocol rule."""

    def __init__(self, func: str, description: str) -> None:
        super().__init__(f"{func}: {description}" if func else description)
        self.func = func
        self.description = description


class ServiceFlag(enum.IntFlag):
    """Services advertised by a peer."""

    NETWORK = 1 << 0
    GET_UTXO = 1 << 1
    BLOOM = 1 << 2
    WITNESS = 1 << 3
    XTHIN = 1 << 4
    BITCOIN_CASH = 1 << 5
    GRAPHENE = 1 << 6
    WEAK_BLOCKS = 1 << 7
    CF = 1 << 8
    XTHINNER = 1 << 9
    NETWORK_LIMITED = 1 << 10

    def __str__(self) -> str:
        remaining = int(self)
        if remaining == 0:
            return "0x0"
        parts = []
        for name, label in _SERVICE_FLAG_LABELS.items():
            bit = ServiceFlag[name].value
            if remaining & bit == bit:
                parts.append(label)
                remaining -= bit
        if remaining:
            parts.append(f"0x{remaining:x}")
        return "|".join(parts)


_SERVICE_FLAG_LABELS = {
    "NETWORK": "SFNodeNetwork",
    "GET_UTXO": "SFNodeGetUTXO",
    "BLOOM": "SFNodeBloom",
    "WITNESS": "SFNodeWitness",
    "XTHIN": "SFNodeXthin",
    "BITCOIN_CASH": "SFNodeBitcoinCash",
    "GRAPHENE": "SFNodeGraphene",
    "WEAK_BLOCKS": "SFNodeWeakBlocks",
    "CF": "SFNodeCF",
    "XTHINNER": "SFNodeXThinner",
    "NETWORK_LIMITED": "SFNodeNetworkLimited",
}


class BitcoinNet(enum.IntEnum):
    """Magic value identifying the network a message belongs to."""

    MAINNET = 0xE8F3E1E3
    TESTNET = 0xFABFB5DA
    TESTNET3 = 0xF4F3E5F4
    SIMNET = 0x12141C16

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, int) or not 0 <= value <= 0xFFFFFFFF:
            return None
        unknown = int.__new__(cls, value)
        unknown._name_ = None
        unknown._value_ = value
        return unknown

    def __str__(self) -> str:
        label = _NET_LABELS.get(self._name_) if self._name_ else None
        if label is not None:
            return label
        return f"Unknown BitcoinNet ({int(self)})"


_NET_LABELS = {
    "MAINNET": "MainNet",
    "TESTNET": "TestNet",
    "TESTNET3": "TestNet3",
    "SIMNET": "SimNet",
}


def max_block_payload() -> int:
    """Largest block payload accepted."""
    return FIXED_EXCESSIVE_BLOCK_SIZE


def max_message_payload() -> int:
    """Largest message payload accepted."""
    return max_block_payload()


def read_exact(reader: BinaryIO, size: int) -> bytes:
    """Read exactly ``size`` bytes, raising EOFError when the stream ends first."""
    data = bytearray()
    while len(data) < size:
        chunk = reader.read(size - len(data))
        if not chunk:
            break
        data += chunk
    if len(data) < size:
        raise EOFError("unexpected EOF" if data else "EOF")
    return bytes(data)


def read_var_int(reader: BinaryIO) -> int:
    """Read a variable length integer."""
    prefix = read_exact(reader, 1)[0]
    if prefix == 0xFF:
        return struct.unpack("<Q", read_exact(reader, 8))[0]
    if prefix == 0xFE:
        return struct.unpack("<I", read_exact(reader, 4))[0]
    if prefix == 0xFD:
        return struct.unpack("<H", read_exact(reader, 2))[0]
    return prefix


def _encode_var_int(value: int) -> bytes:
    if not 0 <= value <= _UINT64_MAX:
        raise ValueError(f"varint value out of range: {value}")
    if value < 0xFD:
        return bytes((value,))
    if value <= 0xFFFF:
        return b"\xfd" + struct.pack("<H", value)
    if value <= 0xFFFFFFFF:
        return b"\xfe" + struct.pack("<I", value)
    return b"\xff" + struct.pack("<Q", value)


def write_var_int(writer: BinaryIO, value: int) -> None:
    """Write ``value`` as a variable length integer."""
    writer.write(_encode_var_int(value))


def var_int_serialize_size(value: int) -> int:
    """Number of bytes ``value`` takes as a variable length integer."""
    if value < 0xFD:
        return 1
    if value <= 0xFFFF:
        return 3
    if value <= 0xFFFFFFFF:
        return 5
    return 9


def read_var_bytes(reader: BinaryIO, max_allowed: int, field_name: str) -> bytes:
    """Read a length-prefixed byte string no longer than ``max_allowed``."""
    count = read_var_int(reader)
    if count > max_allowed:
        raise MessageError(
            "read_var_bytes",
            f"{field_name} is larger than the max allowed size "
            f"[count {count}, max {max_allowed}]",
        )
    return read_exact(reader, count)


def write_var_bytes(writer: BinaryIO, data: bytes) -> None:
    """Write a length-prefixed byte string."""
    writer.write(_encode_var_int(len(data)) + bytes(data))


def read_var_string(reader: BinaryIO) -> str:
    """Read a length-prefixed string."""
    count = read_var_int(reader)
    limit = max_message_payload()
    if count > limit:
        raise MessageError(
            "read_var_string",
            f"variable length string is too long [count {count}, max {limit}]",
        )
    return read_exact(reader, count).decode("utf-8", errors="surrogateescape")


def write_var_string(writer: BinaryIO, value: str) -> None:
    """Write a length-prefixed string."""
    write_var_bytes(writer, value.encode("utf-8", errors="surrogateescape"))