import io

import pytest

from bsvwire.protocol import MessageError
from bsvwire.txparts import (
    MAX_TX_IN_SEQUENCE_NUM,
    OutPoint,
    TxIn,
    TxOut,
    double_sha256,
    hash_from_str,
    hash_to_str,
    max_tx_in_per_message,
    max_tx_out_per_message,
    read_script,
    write_tx_out,
)

OUTPOINT_BYTES = bytes(32) + b"\xff\xff\xff\xff"

PK_SCRIPT = bytes.fromhex(
    "41"
    "0496b538e853519c726a2c91e61ec11600ae1390813a627c66fb8be7947be63c"
    "52da7589379515d4e0a604f8141781e62294721166bf621e73a82cbf2342c858ee"
    "ac"
)

TX_OUT_BYTES = bytes.fromhex("00f2052a01000000") + b"\x43" + PK_SCRIPT

SIG_SCRIPT = bytes([0x04, 0xFF, 0xFF, 0x00, 0x1D, 0x01, 0x04])

TX_IN_BYTES = OUTPOINT_BYTES + b"\x07" + SIG_SCRIPT + b"\xff\xff\xff\xff"


def _encode(item):
    buf = io.BytesIO()
    item.encode(buf)
    return buf.getvalue()


def test_read_outpoint():
    op = OutPoint.decode(io.BytesIO(OUTPOINT_BYTES))
    assert op.hash == bytes(32)
    assert op.index == 0xFFFFFFFF


def test_write_outpoint_zero():
    assert _encode(OutPoint(bytes(32), 0)) == bytes(36)


def test_outpoint_str():
    digest = hash_from_str("3ba27aa200b1cecaad478d2b00432346c3f1f3986da1afd33e506")
    op = OutPoint(digest, 1)
    assert str(op) == "00000000000" + "3ba27aa200b1cecaad478d2b00432346c3f1f3986da1afd33e506" + ":1"


def test_outpoint_rejects_wrong_hash_size():
    with pytest.raises(ValueError):
        OutPoint(b"\x00" * 31, 0)


def test_read_tx_out():
    out = TxOut.decode(io.BytesIO(TX_OUT_BYTES))
    assert out.value == 5000000000
    assert out.pk_script == PK_SCRIPT
    assert len(out.pk_script) == 67


def test_write_tx_out_round_trip():
    out = TxOut(0x12A05F200, PK_SCRIPT)
    buf = io.BytesIO()
    write_tx_out(buf, out)
    assert buf.getvalue() == TX_OUT_BYTES
    assert _encode(out) == TX_OUT_BYTES


def test_tx_out_negative_value_round_trip():
    out = TxOut(-1, b"\x51")
    data = _encode(out)
    assert data[:8] == b"\xff" * 8
    assert TxOut.decode(io.BytesIO(data)) == out


def test_read_tx_in():
    tx_in = TxIn.decode(io.BytesIO(TX_IN_BYTES))
    assert tx_in.previous_out_point == OutPoint(bytes(32), 0xFFFFFFFF)
    assert tx_in.signature_script == SIG_SCRIPT
    assert tx_in.sequence == 0xFFFFFFFF


def test_write_tx_in_round_trip():
    tx_in = TxIn(OutPoint(bytes(32), 0xFFFFFFFF), SIG_SCRIPT, 0xFFFFFFFF)
    data = _encode(tx_in)
    assert data == TX_IN_BYTES
    assert TxIn.decode(io.BytesIO(data)) == tx_in


def test_tx_in_default_sequence():
    assert TxIn(OutPoint(), b"").sequence == MAX_TX_IN_SEQUENCE_NUM


def test_serialize_sizes():
    tx_in = TxIn(OutPoint(), bytes([0x04, 0x31, 0xDC, 0x00, 0x1B, 0x01, 0x62]))
    assert tx_in.serialize_size() == 48
    assert TxOut(0, PK_SCRIPT).serialize_size() == 76
    assert len(_encode(tx_in)) == tx_in.serialize_size()


def test_read_script_too_large():
    data = b"\xff" + b"\xff" * 8
    with pytest.raises(MessageError):
        read_script(io.BytesIO(data), 100, "script")


def test_read_script_reads_exact_bytes():
    assert read_script(io.BytesIO(b"\x03abcdef"), 10, "script") == b"abc"


def test_tx_in_script_overflow():
    data = OUTPOINT_BYTES + b"\xff" * 9
    with pytest.raises(MessageError):
        TxIn.decode(io.BytesIO(data))


def test_tx_out_script_overflow():
    data = bytes(8) + b"\xff" * 9
    with pytest.raises(MessageError):
        TxOut.decode(io.BytesIO(data))


def test_truncated_tx_in_raises_eof():
    with pytest.raises(EOFError):
        TxIn.decode(io.BytesIO(TX_IN_BYTES[:45]))


def test_truncated_outpoint_raises_eof():
    with pytest.raises(EOFError):
        OutPoint.decode(io.BytesIO(b""))


def test_per_message_limits_are_positive_and_ordered():
    assert max_tx_in_per_message() > 1
    assert max_tx_out_per_message() > max_tx_in_per_message()


def test_double_sha256_empty():
    assert double_sha256(b"").hex() == (
        "5df6e0e2761359d30a8275058e299fcc0381534545f55cf43e41983f5d4c9456"
    )


def test_hash_str_round_trip():
    text = "b042f298deabcebbf15355aa3a13c7d7cfe96c44ac4f492735f936f8e50d06f6"
    digest = hash_from_str(text)
    assert len(digest) == 32
    assert digest[0] == 0xF6
    assert hash_to_str(digest) == text


def test_hash_from_str_too_long():
    with pytest.raises(ValueError):
        hash_from_str("0" * 65)


def test_hash_from_str_invalid_hex():
    with pytest.raises(ValueError):
        hash_from_str("zz")