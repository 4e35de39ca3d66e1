"""Plain data shapes returned by the registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict

from .identity import Identity

# u64 sequence domain
U64_MAX = (1 << 64) - 1

NAME_PREFIX = "NFT #"


def token_name(index: int) -> str:
    return NAME_PREFIX + str(index)


@dataclass(frozen=True)
class Nft:
    """A minted record. `name` never changes; `owner` changes only by transfer."""

    name: str
    owner: Identity

    def with_owner(self, owner: Identity) -> "Nft":
        return Nft(name=self.name, owner=owner)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "owner": self.owner.hex()}


@dataclass(frozen=True)
class OracleData:
    current_index: int

    def to_dict(self) -> Dict[str, Any]:
        return {"current_index": self.current_index}


@dataclass(frozen=True)
class OracleState:
    activated: bool
    sequence: int


__all__ = ["U64_MAX", "NAME_PREFIX", "token_name", "Nft", "OracleData", "OracleState"]
