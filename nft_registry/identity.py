"""
nft_registry.identity: account identities and the caller context.

An `Identity` is an opaque 32-byte account value. The registry only ever
compares identities for equality; it never interprets the bytes.

Hex strings (with or without "0x") are accepted by helpers and normalized to
bytes. `CallContext` carries the environment-supplied caller into each
state-mutating call, the way a transaction environment carries its sender.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Any, Dict, Union

from .errors import IdentityError

IDENTITY_LEN = 32

BytesLike = Union[bytes, bytearray, memoryview, str]

# Stable dev accounts, in the order host test environments hand them out.
DEV_ACCOUNT_NAMES = ("alice", "bob", "charlie", "django", "eve", "frank")


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: BytesLike) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise IdentityError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise IdentityError(f"invalid hex string: {value!r}") from e
    raise IdentityError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


@dataclass(frozen=True)
class Identity:
    """Fixed-size, equality-comparable account value."""

    raw: bytes

    def __post_init__(self) -> None:
        raw = to_bytes(self.raw)
        if len(raw) != IDENTITY_LEN:
            raise IdentityError(
                f"identity must be {IDENTITY_LEN} bytes, got {len(raw)}",
                context={"len": len(raw)},
            )
        object.__setattr__(self, "raw", raw)

    # ---- constructors ---- #

    @classmethod
    def from_hex(cls, value: str) -> "Identity":
        return cls(to_bytes(value))

    @classmethod
    def zero(cls) -> "Identity":
        return cls(bytes(IDENTITY_LEN))

    @classmethod
    def derive(cls, tag: str) -> "Identity":
        """Deterministic identity from a label (dev accounts, fixtures)."""
        return cls(hashlib.sha3_256(b"nft-registry/account|" + tag.encode("utf-8")).digest())

    # ---- views ---- #

    def is_zero(self) -> bool:
        return self.raw == bytes(IDENTITY_LEN)

    def hex(self) -> str:
        return to_hex(self.raw)

    def __bytes__(self) -> bytes:
        return self.raw

    def __str__(self) -> str:
        return self.hex()

    def __repr__(self) -> str:
        return f"Identity({self.hex()[:10]}…)"


def dev_accounts() -> Dict[str, Identity]:
    """Named deterministic accounts for local runs and tests."""
    return {name: Identity.derive(name) for name in DEV_ACCOUNT_NAMES}


def parse_identity(value: Any) -> Identity:
    """
    Accept an Identity, a CallContext, raw 32 bytes, a 0x-hex string, or a
    dev account name.
    """
    if isinstance(value, Identity):
        return value
    if isinstance(value, CallContext):
        return value.caller
    if isinstance(value, str) and value.strip().lower() in DEV_ACCOUNT_NAMES:
        return Identity.derive(value.strip().lower())
    return Identity(to_bytes(value))


@dataclass(frozen=True)
class CallContext:
    """Per-call environment supplied by the host: who is calling."""

    caller: Identity

    @classmethod
    def of(cls, caller: Any) -> "CallContext":
        return cls(parse_identity(caller))

    def to_dict(self) -> Dict[str, Any]:
        return {"caller": self.caller.hex()}


__all__ = [
    "IDENTITY_LEN",
    "DEV_ACCOUNT_NAMES",
    "to_bytes",
    "to_hex",
    "Identity",
    "dev_accounts",
    "parse_identity",
    "CallContext",
]
