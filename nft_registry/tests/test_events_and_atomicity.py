# -*- coding: utf-8 -*-
"""
Committed calls emit exactly one event; rejected or rolled-back calls leave
neither state nor events behind.
"""
from __future__ import annotations

import pytest

from nft_registry import codec
from nft_registry.errors import StorageError
from nft_registry.events import MINTED, ORACLE_SETUP, TRANSFERRED
from nft_registry.registry import Registry
from nft_registry.storage import MemoryBackend


def test_event_log_for_a_full_flow(registry, accounts):
    a, b, c = accounts["alice"], accounts["bob"], accounts["charlie"]
    registry.setup_oracle(a)
    registry.mint_token(b)
    registry.transfer_nft(b, 1, c)

    evs = registry.events
    assert [e.name for e in evs] == [ORACLE_SETUP, MINTED, TRANSFERRED]
    assert evs[0].args == {"admin": a}
    assert evs[1].args == {"index": 1, "owner": b, "name": "NFT #1"}
    assert evs[2].args == {"index": 1, "previous": b, "new": c}
    assert evs[1].to_dict()["args"]["owner"] == b.hex()


def test_rejections_emit_nothing(registry, accounts):
    registry.mint_token(accounts["bob"])
    registry.setup_oracle(accounts["bob"])
    registry.transfer_nft(accounts["bob"], 1, accounts["alice"])
    assert registry.events == []


def test_clear_events(active_registry, accounts):
    active_registry.mint_token(accounts["bob"])
    assert len(active_registry.events) == 1
    active_registry.clear_events()
    assert active_registry.events == []


class _FailingRecordWrites(MemoryBackend):
    """Accepts counter writes, refuses record writes."""

    def set(self, key: bytes, value: bytes) -> None:
        if key.startswith(codec.NFT_NS):
            raise StorageError("disk full")
        super().set(key, value)


def test_mint_rolls_back_counter_when_record_write_fails(accounts):
    store = _FailingRecordWrites()
    reg = Registry.new(accounts["alice"], store)
    reg.setup_oracle(accounts["alice"])
    reg.clear_events()

    with pytest.raises(StorageError):
        reg.mint_token(accounts["bob"])

    assert reg.get_oracle_data().current_index == 0
    assert reg.get_nft(1) is None
    assert reg.events == []


def test_sqlite_mint_rolls_back_on_fault(tmp_path, accounts, monkeypatch):
    from nft_registry.storage import SqliteBackend

    store = SqliteBackend(tmp_path / "r.db")
    reg = Registry.new(accounts["alice"], store)
    reg.setup_oracle(accounts["alice"])

    original = SqliteBackend.set

    def failing_set(self, key, value):
        if key.startswith(codec.NFT_NS):
            raise StorageError("disk full")
        original(self, key, value)

    monkeypatch.setattr(SqliteBackend, "set", failing_set)
    with pytest.raises(StorageError):
        reg.mint_token(accounts["bob"])
    monkeypatch.undo()

    assert reg.get_oracle_data().current_index == 0
    assert reg.mint_token(accounts["bob"]).unwrap() == 1
    store.close()
