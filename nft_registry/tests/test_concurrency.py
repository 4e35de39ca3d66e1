# -*- coding: utf-8 -*-
"""
Calls on one registry from many threads are serialized: every mint gets a
distinct index and the indices form one contiguous run.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from nft_registry import codec
from nft_registry.errors import Err, ErrorCode
from nft_registry.events import MINTED
from nft_registry.types import U64_MAX

THREADS = 8
MINTS_EACH = 25


def _mint_many(reg, who, n):
    return [reg.mint_token(who) for _ in range(n)]


def test_concurrent_mints_are_contiguous(active_registry, accounts):
    names = ["alice", "bob", "charlie", "django", "eve", "frank", "alice", "bob"]
    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        futures = [pool.submit(_mint_many, active_registry, accounts[n], MINTS_EACH) for n in names]
        results = [r for f in futures for r in f.result()]

    total = THREADS * MINTS_EACH
    assert all(r.is_ok for r in results)
    assert sorted(r.value for r in results) == list(range(1, total + 1))
    assert active_registry.get_oracle_data().current_index == total
    for i in range(1, total + 1):
        assert active_registry.get_nft(i).name == f"NFT #{i}"
    assert active_registry.get_nft(total + 1) is None
    assert [e.name for e in active_registry.events] == [MINTED] * total


def test_each_thread_owns_what_it_minted(active_registry, accounts):
    names = ["bob", "charlie", "eve", "frank"]
    with ThreadPoolExecutor(max_workers=len(names)) as pool:
        got = dict(zip(names, pool.map(lambda n: _mint_many(active_registry, accounts[n], 10), names)))

    for n, results in got.items():
        for r in results:
            assert active_registry.get_nft(r.unwrap()).owner == accounts[n]


def test_concurrent_mints_near_overflow(active_registry, backend, accounts):
    room = 5
    backend.set(codec.ORACLE_INDEX_KEY, codec.encode_u64(U64_MAX - room))

    with ThreadPoolExecutor(max_workers=THREADS) as pool:
        futures = [pool.submit(_mint_many, active_registry, accounts["bob"], 3) for _ in range(THREADS)]
        results = [r for f in futures for r in f.result()]

    minted = sorted(r.value for r in results if r.is_ok)
    assert minted == list(range(U64_MAX - room + 1, U64_MAX + 1))
    rejected = [r for r in results if not r.is_ok]
    assert len(rejected) == THREADS * 3 - room
    assert all(r == Err(ErrorCode.CounterOverflow) for r in rejected)
    assert active_registry.get_oracle_data().current_index == U64_MAX
    assert len(active_registry.events) == room


def test_concurrent_transfers_of_one_record(active_registry, accounts):
    i = active_registry.mint_token(accounts["bob"]).unwrap()
    targets = ["charlie", "eve", "frank", "django"]

    with ThreadPoolExecutor(max_workers=len(targets)) as pool:
        results = list(pool.map(lambda t: active_registry.transfer_nft(accounts["bob"], i, accounts[t]), targets))

    # only the first transfer to run is from the owner; the rest see a new owner
    assert sum(1 for r in results if r.is_ok) == 1
    assert sum(1 for r in results if r == Err(ErrorCode.NotOwner)) == len(targets) - 1
    winner = targets[[r.is_ok for r in results].index(True)]
    assert active_registry.get_nft(i).owner == accounts[winner]
