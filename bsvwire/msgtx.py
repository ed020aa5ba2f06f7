"""The ``tx`` message: a complete transaction and its wire encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import BinaryIO, List

from .protocol import (
    CMD_TX,
    PROTOCOL_VERSION,
    MessageError,
    max_block_payload,
    read_exact,
    read_var_int,
    var_int_serialize_size,
    write_var_int,
)
from .txparts import (
    TX_VERSION,
    OutPoint,
    TxIn,
    TxOut,
    double_sha256,
    max_tx_in_per_message,
    max_tx_out_per_message,
    write_tx_out,
)


@dataclass
class MsgTx:
    """A transaction: version, inputs, outputs and lock time."""

    version: int = TX_VERSION
    tx_in: List[TxIn] = field(default_factory=list)
    tx_out: List[TxOut] = field(default_factory=list)
    lock_time: int = 0

    def add_tx_in(self, tx_in: TxIn) -> None:
        """Append an input."""
        self.tx_in.append(tx_in)

    def add_tx_out(self, tx_out: TxOut) -> None:
        """Append an output."""
        self.tx_out.append(tx_out)

    def tx_hash(self) -> bytes:
        """Double SHA-256 of the serialized transaction."""
        return double_sha256(self.to_bytes())

    def to_bytes(self) -> bytes:
        """The serialized transaction."""
        parts: list = []

        class _Collector:
            @staticmethod
            def write(data: bytes) -> int:
                parts.append(bytes(data))
                return len(data)

        self.serialize(_Collector())
        return b"".join(parts)

    def copy(self) -> "MsgTx":
        """A deep copy whose inputs and outputs can be changed independently."""
        return MsgTx(
            version=self.version,
            tx_in=[
                TxIn(
                    previous_out_point=OutPoint(
                        hash=ti.previous_out_point.hash,
                        index=ti.previous_out_point.index,
                    ),
                    signature_script=bytes(ti.signature_script),
                    sequence=ti.sequence,
                )
                for ti in self.tx_in
            ],
            tx_out=[
                TxOut(value=to.value, pk_script=bytes(to.pk_script))
                for to in self.tx_out
            ],
            lock_time=self.lock_time,
        )

    @classmethod
    def decode(cls, reader: BinaryIO, pver: int = PROTOCOL_VERSION) -> "MsgTx":
        """Read a transaction in its wire form."""
        (version,) = struct.unpack("<i", read_exact(reader, 4))

        count = read_var_int(reader)
        limit = max_tx_in_per_message()
        if count > limit:
            raise MessageError(
                "MsgTx.decode",
                "too many input transactions to fit into max message size "
                f"[count {count}, max {limit}]",
            )
        tx_in = [TxIn.decode(reader) for _ in range(count)]

        count = read_var_int(reader)
        limit = max_tx_out_per_message()
        if count > limit:
            raise MessageError(
                "MsgTx.decode",
                "too many output transactions to fit into max message size "
                f"[count {count}, max {limit}]",
            )
        tx_out = [TxOut.decode(reader) for _ in range(count)]

        (lock_time,) = struct.unpack("<I", read_exact(reader, 4))
        return cls(version=version, tx_in=tx_in, tx_out=tx_out, lock_time=lock_time)

    @classmethod
    def deserialize(cls, reader: BinaryIO) -> "MsgTx":
        """Read a transaction in its storage form, which matches the wire form."""
        return cls.decode(reader, 0)

    def encode(self, writer: BinaryIO, pver: int = PROTOCOL_VERSION) -> None:
        """Write the transaction in its wire form."""
        writer.write(struct.pack("<I", self.version & 0xFFFFFFFF))
        write_var_int(writer, len(self.tx_in))
        for ti in self.tx_in:
            ti.encode(writer)
        write_var_int(writer, len(self.tx_out))
        for to in self.tx_out:
            write_tx_out(writer, to)
        writer.write(struct.pack("<I", self.lock_time))

    def serialize(self, writer: BinaryIO) -> None:
        """Write the transaction in its storage form, which matches the wire form."""
        self.encode(writer, 0)

    def serialize_size(self) -> int:
        """Number of bytes the serialized transaction takes."""
        return (
            8
            + var_int_serialize_size(len(self.tx_in))
            + var_int_serialize_size(len(self.tx_out))
            + sum(ti.serialize_size() for ti in self.tx_in)
            + sum(to.serialize_size() for to in self.tx_out)
        )

    def command(self) -> str:
        """Protocol command name of the message."""
        return CMD_TX

    def max_payload_length(self, pver: int) -> int:
        """Largest payload this message may have."""
        return max_block_payload()

    def pk_script_locs(self) -> List[int]:
        """Offset of each output's public key script within the serialized form."""
        if not self.tx_out:
            return []
        offset = (
            4
            + var_int_serialize_size(len(self.tx_in))
            + var_int_serialize_size(len(self.tx_out))
            + sum(ti.serialize_size() for ti in self.tx_in)
        )
        locations = []
        for to in self.tx_out:
            offset += 8 + var_int_serialize_size(len(to.pk_script))
            locations.append(offset)
            offset += len(to.pk_script)
        return locations