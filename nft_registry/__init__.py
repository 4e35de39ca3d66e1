"""
NFT minting registry: package marker and public entrypoints.

A single-administrator registry that mints sequentially numbered records
("NFT #1", "NFT #2", ...) once its counter has been activated, and lets each
record's owner hand it to another account.

    from nft_registry import Registry, dev_accounts, ErrorCode

    acc = dev_accounts()
    reg = Registry.new(acc["alice"])
    assert reg.mint_token(acc["bob"]).error is ErrorCode.OracleNotSetup
    reg.setup_oracle(acc["alice"])
    assert reg.mint_token(acc["bob"]).value == 1

Calls return ``Ok(value)`` or ``Err(ErrorCode)``; see nft_registry.errors.
"""

from __future__ import annotations

from .version import __version__
from .errors import Err, ErrorCode, Ok, RegistryError, Result
from .identity import CallContext, Identity, dev_accounts, parse_identity
from .types import Nft, OracleData, OracleState
from .storage import MemoryBackend, SqliteBackend, StorageBackend, open_backend
from .registry import Registry
from .dispatch import dispatch


def version() -> str:
    """Return the package version string."""
    return __version__


__all__ = [
    "__version__",
    "version",
    "Err",
    "ErrorCode",
    "Ok",
    "RegistryError",
    "Result",
    "CallContext",
    "Identity",
    "dev_accounts",
    "parse_identity",
    "Nft",
    "OracleData",
    "OracleState",
    "MemoryBackend",
    "SqliteBackend",
    "StorageBackend",
    "open_backend",
    "Registry",
    "dispatch",
]
