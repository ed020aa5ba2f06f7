"""The ``version`` and ``verack`` handshake messages."""

from __future__ import annotations

import copy
import io
import struct
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO

from .netaddress import (
    NetAddress,
    max_net_address_payload,
    read_net_address,
    write_net_address,
)
from .protocol import (
    BIP0037_VERSION,
    CMD_VERACK,
    CMD_VERSION,
    MAX_VAR_INT_PAYLOAD,
    PROTOCOL_VERSION,
    MessageError,
    ServiceFlag,
    read_exact,
    read_var_string,
    write_var_string,
)

MAX_USER_AGENT_LEN = 256
DEFAULT_USER_AGENT = "/bsvwire:0.5.0/"

_EPOCH = datetime.fromtimestamp(0, timezone.utc)


def _validate_user_agent(user_agent: str) -> None:
    length = len(user_agent.encode("utf-8", errors="surrogateescape"))
    if length > MAX_USER_AGENT_LEN:
        raise MessageError(
            "MsgVersion",
            f"user agent too long [len {length}, max {MAX_USER_AGENT_LEN}]",
        )


@dataclass
class MsgVersion:
    """A peer's announcement of itself, sent as soon as a connection is made."""

    protocol_version: int = PROTOCOL_VERSION
    services: ServiceFlag = ServiceFlag(0)
    timestamp: datetime = _EPOCH
    addr_you: NetAddress = field(default_factory=NetAddress)
    addr_me: NetAddress = field(default_factory=NetAddress)
    nonce: int = 0
    user_agent: str = ""
    last_block: int = 0
    disable_relay_tx: bool = False

    def __post_init__(self) -> None:
        self.services = ServiceFlag(self.services)

    def has_service(self, service: ServiceFlag) -> bool:
        """Whether every bit of ``service`` is advertised."""
        return self.services & service == service

    def add_service(self, service: ServiceFlag) -> None:
        """Advertise ``service`` in addition to the current services."""
        self.services |= service

    @classmethod
    def decode(cls, data, pver: int = PROTOCOL_VERSION) -> "MsgVersion":
        """Decode a version message from its complete payload.

        Fields added in later protocol versions are read only while bytes
        remain, so the whole payload must be given rather than a stream.
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError("MsgVersion.decode requires the payload as bytes")
        payload = bytes(data)
        reader = io.BytesIO(payload)

        def remaining() -> int:
            return len(payload) - reader.tell()

        (protocol_version,) = struct.unpack("<i", read_exact(reader, 4))
        (services,) = struct.unpack("<Q", read_exact(reader, 8))
        (seconds,) = struct.unpack("<q", read_exact(reader, 8))
        msg = cls(
            protocol_version=protocol_version,
            services=ServiceFlag(services),
            timestamp=datetime.fromtimestamp(seconds, timezone.utc),
            addr_you=read_net_address(reader, pver, False),
        )

        if remaining() > 0:
            msg.addr_me = read_net_address(reader, pver, False)
        if remaining() > 0:
            (msg.nonce,) = struct.unpack("<Q", read_exact(reader, 8))
        if remaining() > 0:
            user_agent = read_var_string(reader)
            _validate_user_agent(user_agent)
            msg.user_agent = user_agent
        if remaining() > 0:
            (msg.last_block,) = struct.unpack("<i", read_exact(reader, 4))
        if remaining() > 0:
            relay_tx = read_exact(reader, 1)[0] != 0
            msg.disable_relay_tx = not relay_tx
        return msg

    def encode(self, writer: BinaryIO, pver: int = PROTOCOL_VERSION) -> None:
        """Write the message in its wire form."""
        _validate_user_agent(self.user_agent)
        seconds = int(self.timestamp.timestamp()) if self.timestamp else 0
        buf = io.BytesIO()
        buf.write(struct.pack("<i", self.protocol_version))
        buf.write(struct.pack("<Q", int(self.services)))
        buf.write(struct.pack("<q", seconds))
        write_net_address(buf, pver, self.addr_you, False)
        write_net_address(buf, pver, self.addr_me, False)
        buf.write(struct.pack("<Q", self.nonce))
        write_var_string(buf, self.user_agent)
        buf.write(struct.pack("<i", self.last_block))
        if pver >= BIP0037_VERSION:
            buf.write(b"\x00" if self.disable_relay_tx else b"\x01")
        writer.write(buf.getvalue())

    def command(self) -> str:
        """Protocol command name of the message."""
        return CMD_VERSION

    def max_payload_length(self, pver: int) -> int:
        """Largest payload this message may have."""
        return (
            33
            + max_net_address_payload(pver) * 2
            + MAX_VAR_INT_PAYLOAD
            + MAX_USER_AGENT_LEN
        )

    def add_user_agent(self, name: str, version: str, *args: str) -> None:
        """Replace the user agent with ``name:version(comments)/``."""
        user_agent = f"{name}:{version}"
        if args:
            user_agent += f"({'; '.join(args)})"
        user_agent += "/"
        _validate_user_agent(user_agent)
        self.user_agent = user_agent


def new_msg_version(
    me: NetAddress, you: NetAddress, nonce: int, last_block: int
) -> MsgVersion:
    """A version message for the latest protocol with the usual defaults."""
    return MsgVersion(
        protocol_version=PROTOCOL_VERSION,
        services=ServiceFlag(0),
        timestamp=datetime.now(timezone.utc).replace(microsecond=0),
        addr_you=copy.copy(you),
        addr_me=copy.copy(me),
        nonce=nonce,
        user_agent=DEFAULT_USER_AGENT,
        last_block=last_block,
        disable_relay_tx=False,
    )


@dataclass
class MsgVerAck:
    """Acknowledgement of a version message; it has no payload."""

    @classmethod
    def decode(cls, reader: BinaryIO, pver: int = PROTOCOL_VERSION) -> "MsgVerAck":
        """Read the (empty) payload."""
        return cls()

    def encode(self, writer: BinaryIO, pver: int = PROTOCOL_VERSION) -> None:
        """Write the (empty) payload."""

    def command(self) -> str:
        """Protocol command name of the message."""
        return CMD_VERACK

    def max_payload_length(self, pver: int) -> int:
        """Largest payload this message may have."""
        return 0