# -*- coding: utf-8 -*-
"""
nft_registry.tests.conftest
===========================

Shared fixtures:
- deterministic dev accounts (alice is the conventional deployer/admin)
- storage backends, parametrized over the in-memory and SQLite stores
- fresh and activated registries bound to those backends
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterator

import pytest

from nft_registry.config import load_config
from nft_registry.identity import Identity, dev_accounts
from nft_registry.registry import Registry
from nft_registry.storage import MemoryBackend, SqliteBackend, StorageBackend

os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")


@pytest.fixture(autouse=True)
def _fresh_config() -> Iterator[None]:
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def accounts() -> Dict[str, Identity]:
    return dev_accounts()


@pytest.fixture(params=["memory", "sqlite"])
def backend(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[StorageBackend]:
    if request.param == "memory":
        yield MemoryBackend()
        return
    db = SqliteBackend(tmp_path / "registry.db")
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def registry(backend: StorageBackend, accounts: Dict[str, Identity]) -> Registry:
    """A registry created by alice, counter not yet activated."""
    return Registry.new(accounts["alice"], backend)


@pytest.fixture
def active_registry(registry: Registry, accounts: Dict[str, Identity]) -> Registry:
    """A registry whose counter alice has already activated."""
    assert registry.setup_oracle(accounts["alice"]).is_ok
    registry.clear_events()
    return registry
