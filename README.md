# bsvwire

`bsvwire` reads and writes the binary payloads of some of the messages that
Bitcoin SV nodes exchange over the peer-to-peer network:

- transactions (`tx`), with their inputs, outputs and outpoints;
- the `version` / `verack` handshake;
- network addresses;
- service flags and network magic values, with the variable-length integer,
  string and byte encodings the protocol is built on.

It uses only the standard library.

## Installation

```
pip install bsvwire
```

## Transactions

```python
import io
from bsvwire.msgtx import MsgTx
from bsvwire.txparts import OutPoint, TxIn, TxOut, hash_to_str

tx = MsgTx(version=1)
tx.add_tx_in(TxIn(OutPoint(bytes(32), 0xFFFFFFFF), b"\x04\x31\xdc\x00\x1b\x01\x62"))
tx.add_tx_out(TxOut(5_000_000_000, b"\x76\xa9"))

raw = tx.to_bytes()
assert len(raw) == tx.serialize_size()

decoded = MsgTx.deserialize(io.BytesIO(raw))
print(hash_to_str(decoded.tx_hash()))   # txid in the usual byte-reversed hex form
print(decoded.pk_script_locs())         # offset of each output script in `raw`
```

`MsgTx.serialize(writer)` writes the same bytes that `to_bytes()` returns.
`MsgTx.decode(reader, pver)` and `MsgTx.encode(writer, pver)` read and write
the wire form for a protocol version; at present it is identical to the
storage form. `copy()` returns a deep copy. `command()` returns `"tx"`.

`bsvwire.txparts` also provides `double_sha256`, `hash_from_str` (which
left-pads short hex strings with zeros), `read_script`, `write_tx_out`, and the
limits `max_tx_in_per_message()` and `max_tx_out_per_message()`.
`str(OutPoint(...))` gives `"<hash>:<index>"`.

## Version handshake

```python
import io
from bsvwire.netaddress import new_net_address
from bsvwire.protocol import ServiceFlag
from bsvwire.version import MsgVerAck, MsgVersion, new_msg_version

me = new_net_address("127.0.0.1", 8333, ServiceFlag.NETWORK, None)
you = new_net_address("192.168.0.1", 8333, ServiceFlag.NETWORK, None)

msg = new_msg_version(me, you, nonce=123123, last_block=234234)
msg.add_user_agent("myclient", "1.2.3", "optional", "comments")
# msg.user_agent == "myclient:1.2.3(optional; comments)/"

buf = io.BytesIO()
msg.encode(buf, 70016)
again = MsgVersion.decode(buf.getvalue(), 70016)
```

`MsgVersion.decode` takes the whole payload as bytes and raises `TypeError`
for anything else. Fields that came later in the protocol's history are
optional, so the length of the payload decides how many of them it reads.
The relay flag is written only for protocol versions from 70001 on.
A `MsgVerAck` has no payload; its `command()` is `"verack"`.

## Network addresses

`bsvwire.netaddress.NetAddress` holds a timestamp, services, IP address and
port. IPv4-mapped IPv6 addresses are stored as IPv4. `read_net_address` and
`write_net_address` take a protocol version and a flag that says whether the
timestamp is present; it is only ever written or read from protocol version
31402 on. `max_net_address_payload(pver)` gives 30 bytes from that version and
26 before it.

## Flags and networks

`ServiceFlag` is an `enum.IntFlag` and `BitcoinNet` an `enum.IntEnum`.
`str()` gives readable names, for example
`str(ServiceFlag.NETWORK | ServiceFlag.BLOOM) == "SFNodeNetwork|SFNodeBloom"`,
with unnamed bits shown in hex, and `str(BitcoinNet(0xFFFFFFFF)) ==
"Unknown BitcoinNet (4294967295)"`.

## Errors

When a message breaks a protocol limit, for example too many inputs or a user
agent longer than 256 bytes, the package raises `bsvwire.protocol.MessageError`,
a subclass of `ValueError`. When a stream ends early, it raises `EOFError`.

## What it does not do

The package only encodes and decodes message payloads. It does not open
connections, manage peers, frame messages with network headers or checksums,
or handle message types other than `tx`, `version` and `verack`.