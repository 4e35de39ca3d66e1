"""
nft_registry.codec: storage keys and value encodings.

Layout
------
    registry:admin            -> 32 raw identity bytes
    registry:oracle:setup     -> b"\\x01" once activated (absent before)
    registry:oracle:index     -> u64 big-endian, 8 bytes
    registry:nft: || u64 BE   -> canonical CBOR {"name": str, "owner": bytes}

Records are CBOR-encoded with ``cbor2`` in canonical mode so the same record
always yields the same bytes.
"""

from __future__ import annotations

from typing import Any

import cbor2

from .errors import CodecError
from .identity import IDENTITY_LEN, Identity
from .types import U64_MAX, Nft

ADMIN_KEY = b"registry:admin"
ORACLE_SETUP_KEY = b"registry:oracle:setup"
ORACLE_INDEX_KEY = b"registry:oracle:index"
NFT_NS = b"registry:nft:"

SETUP_FLAG = b"\x01"


def encode_u64(value: int) -> bytes:
    if not isinstance(value, int) or value < 0 or value > U64_MAX:
        raise CodecError(f"value out of u64 range: {value!r}")
    return value.to_bytes(8, "big")


def decode_u64(raw: bytes) -> int:
    if len(raw) != 8:
        raise CodecError(f"u64 must be 8 bytes, got {len(raw)}", context={"len": len(raw)})
    return int.from_bytes(raw, "big")


def nft_key(index: int) -> bytes:
    return NFT_NS + encode_u64(index)


def encode_identity(identity: Identity) -> bytes:
    return identity.raw


def decode_identity(raw: bytes) -> Identity:
    if len(raw) != IDENTITY_LEN:
        raise CodecError(f"stored identity must be {IDENTITY_LEN} bytes, got {len(raw)}")
    return Identity(raw)


def encode_nft(nft: Nft) -> bytes:
    return cbor2.dumps({"name": nft.name, "owner": nft.owner.raw}, canonical=True)


def decode_nft(raw: bytes) -> Nft:
    try:
        obj: Any = cbor2.loads(raw)
    except cbor2.CBORDecodeError as e:
        raise CodecError("stored record is not valid CBOR") from e
    if not isinstance(obj, dict) or set(obj) != {"name", "owner"}:
        raise CodecError("stored record has unexpected shape", context={"value": repr(obj)[:80]})
    name, owner = obj["name"], obj["owner"]
    if not isinstance(name, str) or not isinstance(owner, bytes):
        raise CodecError("stored record fields have unexpected types")
    return Nft(name=name, owner=decode_identity(owner))


__all__ = [
    "ADMIN_KEY",
    "ORACLE_SETUP_KEY",
    "ORACLE_INDEX_KEY",
    "NFT_NS",
    "SETUP_FLAG",
    "encode_u64",
    "decode_u64",
    "nft_key",
    "encode_identity",
    "decode_identity",
    "encode_nft",
    "decode_nft",
]
