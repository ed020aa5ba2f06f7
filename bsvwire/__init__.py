"""Encoding and decoding of Bitcoin SV wire payloads: tx, version, verack and addresses."""

__version__ = "0.1.0"

__all__ = ["msgtx", "netaddress", "protocol", "txparts", "version"]