"""
nft_registry.registry
=====================

The registry state machine: one administrator, a one-time activated sequence
counter ("oracle"), and a store of minted records keyed by sequence number.

States
------
    Uninitialized(admin set, activated=False)
        --setup_oracle()[caller == admin]-->        Active(sequence=0)
    Active(N) --mint_token()[any caller]-->          Active(N + 1)
    Active(N) --transfer_nft(i, new)[owner(i)]-->    Active(N)

Nothing ever returns to Uninitialized.

Every call runs under the registry lock and inside one storage transaction:
it either commits all of its writes or none. Contract-level failures are
returned as ``Err(ErrorCode)`` before any write happens.

Usage
-----
    from nft_registry import Registry, dev_accounts

    acc = dev_accounts()
    reg = Registry.new(acc["alice"])
    reg.setup_oracle(acc["alice"])          # Ok(None)
    reg.mint_token(acc["bob"])              # Ok(1)
    reg.transfer_nft(acc["bob"], 1, acc["charlie"])
    reg.get_nft(1)                          # Nft(name="NFT #1", owner=charlie)
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional

from . import codec
from .errors import AlreadyInitialized, Err, ErrorCode, NotInitialized, Ok, RegistryError, Result
from .events import MINTED, ORACLE_SETUP, TRANSFERRED, Event, EventSink
from .identity import Identity, parse_identity
from .logging import get_logger
from .storage import MemoryBackend, StorageBackend
from .types import U64_MAX, Nft, OracleData, OracleState, token_name

log = get_logger(__name__)


# --------------------------------------------------------------------------- #
# Access control                                                              #
# --------------------------------------------------------------------------- #


def is_admin(caller: Identity, admin: Identity) -> bool:
    return caller == admin


def is_owner(caller: Identity, record: Nft) -> bool:
    return caller == record.owner


# --------------------------------------------------------------------------- #
# Oracle counter                                                              #
# --------------------------------------------------------------------------- #


class OracleCounter:
    """
    Sequence generator gated by a one-time activation flag.

    `next()` is the only path that allocates an index. It must run inside the
    caller's storage transaction so the counter and the record it numbers are
    written together.
    """

    def __init__(self, store: StorageBackend) -> None:
        self._store = store

    @property
    def activated(self) -> bool:
        return self._store.get(codec.ORACLE_SETUP_KEY) == codec.SETUP_FLAG

    @property
    def sequence(self) -> int:
        raw = self._store.get(codec.ORACLE_INDEX_KEY)
        return 0 if raw is None else codec.decode_u64(raw)

    def state(self) -> OracleState:
        return OracleState(activated=self.activated, sequence=self.sequence)

    def activate(self) -> Result[None]:
        if self.activated:
            return Err(ErrorCode.OracleAlreadySet)
        self._store.set(codec.ORACLE_SETUP_KEY, codec.SETUP_FLAG)
        self._store.set(codec.ORACLE_INDEX_KEY, codec.encode_u64(0))
        return Ok(None)

    def next(self) -> Result[int]:
        if not self.activated:
            return Err(ErrorCode.OracleNotSetup)
        candidate = self.sequence + 1
        if candidate > U64_MAX:
            return Err(ErrorCode.CounterOverflow)
        self._store.set(codec.ORACLE_INDEX_KEY, codec.encode_u64(candidate))
        return Ok(candidate)


# --------------------------------------------------------------------------- #
# Registry                                                                    #
# --------------------------------------------------------------------------- #


def _index_in_domain(index: Any) -> bool:
    if isinstance(index, bool) or not isinstance(index, int):
        raise RegistryError(
            f"index must be int, got {type(index).__name__}",
            code="index_invalid",
        )
    return 0 <= index <= U64_MAX


class Registry:
    """
    Explicit registry state bound to a storage backend.

    Build with `Registry.new(caller)` for a fresh registry or
    `Registry.open(backend)` to resume one already persisted.
    """

    def __init__(self, store: StorageBackend, admin: Identity) -> None:
        self._store = store
        self._admin = admin
        self._oracle = OracleCounter(store)
        self._lock = threading.RLock()
        self._sink = EventSink()
        self._pending: List[Event] = []

    # ---- constructors ---- #

    @classmethod
    def new(cls, caller: Any, store: Optional[StorageBackend] = None) -> "Registry":
        """Create a registry whose permanent admin is `caller`."""
        admin = parse_identity(caller)
        store = store if store is not None else MemoryBackend()
        with store.transaction():
            if store.exists(codec.ADMIN_KEY):
                raise AlreadyInitialized("store already holds a registry")
            store.set(codec.ADMIN_KEY, codec.encode_identity(admin))
        log.info("registry created", extra={"admin": admin.hex()})
        return cls(store, admin)

    @classmethod
    def open(cls, store: StorageBackend) -> "Registry":
        raw = store.get(codec.ADMIN_KEY)
        if raw is None:
            raise NotInitialized("store holds no registry; create one first")
        return cls(store, codec.decode_identity(raw))

    # ---- plumbing ---- #

    @property
    def admin(self) -> Identity:
        return self._admin

    @property
    def store(self) -> StorageBackend:
        return self._store

    @contextmanager
    def _call(self) -> Iterator[None]:
        """Serialize the call, group its writes, publish its events on commit."""
        with self._lock:
            self._pending = []
            try:
                with self._store.transaction():
                    yield
                self._sink.extend(self._pending)
            finally:
                self._pending = []

    def _emit(self, event: str, **args: Any) -> None:
        self._pending.append(Event(event, args))

    @staticmethod
    def _rejected(op: str, caller: Identity, err: Err) -> Err:
        log.debug("call rejected", extra={"op": op, "caller_id": caller.hex(), "error": err.error.name})
        return err

    # ---- mutating calls ---- #

    def setup_oracle(self, caller: Any) -> Result[None]:
        """Admin-only, one-time activation of the sequence counter."""
        caller = parse_identity(caller)
        with self._call():
            if not is_admin(caller, self._admin):
                return self._rejected("setup_oracle", caller, Err(ErrorCode.NotAdmin))
            res = self._oracle.activate()
            if not res.is_ok:
                return self._rejected("setup_oracle", caller, res)
            self._emit(ORACLE_SETUP, admin=caller)
        log.info("oracle activated", extra={"admin": caller.hex()})
        return res

    def mint_token(self, caller: Any) -> Result[int]:
        """Allocate the next index and mint "NFT #<index>" owned by `caller`."""
        caller = parse_identity(caller)
        with self._call():
            res = self._oracle.next()
            if not res.is_ok:
                return self._rejected("mint_token", caller, res)
            index = res.value
            nft = Nft(name=token_name(index), owner=caller)
            self._store.set(codec.nft_key(index), codec.encode_nft(nft))
            self._emit(MINTED, index=index, owner=caller, name=nft.name)
        log.info("minted", extra={"index": index, "owner": caller.hex()})
        return Ok(index)

    def transfer_nft(self, caller: Any, index: int, new_owner: Any) -> Result[None]:
        """
        Owner-only: reassign `index` to `new_owner`. The zero identity and the
        caller itself are valid targets.
        """
        caller, new_owner = parse_identity(caller), parse_identity(new_owner)
        with self._call():
            nft = self._load(index)
            if nft is None:
                return self._rejected("transfer_nft", caller, Err(ErrorCode.NFTNotFound))
            if not is_owner(caller, nft):
                return self._rejected("transfer_nft", caller, Err(ErrorCode.NotOwner))
            self._store.set(codec.nft_key(index), codec.encode_nft(nft.with_owner(new_owner)))
            self._emit(TRANSFERRED, index=index, previous=caller, new=new_owner)
        log.info("transferred", extra={"index": index, "from": caller.hex(), "to": new_owner.hex()})
        return Ok(None)

    # ---- queries ---- #

    def _load(self, index: int) -> Optional[Nft]:
        if not _index_in_domain(index):
            return None
        raw = self._store.get(codec.nft_key(index))
        return None if raw is None else codec.decode_nft(raw)

    def get_nft(self, index: int) -> Optional[Nft]:
        with self._lock:
            return self._load(index)

    def get_oracle_data(self) -> OracleData:
        with self._lock:
            return OracleData(current_index=self._oracle.sequence)

    def oracle_state(self) -> OracleState:
        with self._lock:
            return self._oracle.state()

    @property
    def events(self) -> List[Event]:
        return self._sink.get_events()

    def clear_events(self) -> None:
        self._sink.clear()


__all__ = ["is_admin", "is_owner", "OracleCounter", "Registry"]
