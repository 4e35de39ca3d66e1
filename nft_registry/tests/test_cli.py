# -*- coding: utf-8 -*-
"""CLI end-to-end over a SQLite database."""
from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from nft_registry import cli
from nft_registry.cli import app
from nft_registry.config import load_config
from nft_registry.identity import dev_accounts

runner = CliRunner()


@pytest.fixture
def db(tmp_path, monkeypatch):
    monkeypatch.delenv("NFT_REGISTRY_DB", raising=False)
    monkeypatch.delenv("NFT_REGISTRY_LOG_LEVEL", raising=False)
    path = tmp_path / "reg.db"
    res = runner.invoke(app, ["init", "--db", str(path), "--caller", "alice"])
    assert res.exit_code == 0, res.output
    return str(path)


def _call(*argv):
    res = runner.invoke(app, list(argv))
    return res.exit_code, (json.loads(res.stdout) if res.stdout.strip() else None)


def test_cli_end_to_end(db):
    acc = dev_accounts()

    code, out = _call("mint", "--db", db, "--caller", "bob")
    assert code == 1
    assert out["error"]["name"] == "OracleNotSetup"

    code, out = _call("setup-oracle", "--db", db, "--caller", "alice")
    assert (code, out["ok"]) == (0, True)

    code, out = _call("mint", "--db", db, "--caller", "bob")
    assert (code, out["return"]) == (0, 1)

    code, out = _call("transfer", "1", "charlie", "--db", db, "--caller", "bob")
    assert code == 0

    code, out = _call("get", "1", "--db", db)
    assert out["return"] == {"name": "NFT #1", "owner": acc["charlie"].hex()}

    code, out = _call("transfer", "1", "alice", "--db", db, "--caller", "bob")
    assert (code, out["error"]["name"]) == (1, "NotOwner")

    code, out = _call("transfer", "99", "alice", "--db", db, "--caller", "bob")
    assert (code, out["error"]["name"]) == (1, "NFTNotFound")

    code, out = _call("oracle", "--db", db)
    assert out["return"] == {"current_index": 1}


def test_db_from_environment(db, monkeypatch):
    monkeypatch.setenv("NFT_REGISTRY_DB", db)
    code, out = _call("oracle")
    assert (code, out["return"]) == (0, {"current_index": 0})


def test_init_twice_is_a_host_error(db):
    res = runner.invoke(app, ["init", "--db", db, "--caller", "bob"])
    assert res.exit_code == 2


def test_uninitialized_db_is_a_host_error(tmp_path):
    res = runner.invoke(app, ["oracle", "--db", str(tmp_path / "empty.db")])
    assert res.exit_code == 2


def test_missing_db_is_a_usage_error(monkeypatch):
    monkeypatch.delenv("NFT_REGISTRY_DB", raising=False)
    res = runner.invoke(app, ["oracle"])
    assert res.exit_code == 2


def test_bad_caller_is_a_host_error(db):
    res = runner.invoke(app, ["mint", "--db", db, "--caller", "0x12"])
    assert res.exit_code == 2


def test_accounts_listing():
    code, out = _call("accounts")
    assert code == 0
    assert out == {k: v.hex() for k, v in dev_accounts().items()}


def test_unreadable_db_file_is_a_host_error(tmp_path):
    path = tmp_path / "junk.db"
    path.write_bytes(b"definitely not sqlite\n" * 64)
    res = runner.invoke(app, ["oracle", "--db", str(path)])
    assert res.exit_code == 2


def test_cli_log_level_comes_from_config(db, monkeypatch):
    seen = []
    monkeypatch.delenv("NFT_REGISTRY_CLI_LOG_LEVEL", raising=False)
    load_config.cache_clear()
    monkeypatch.setattr(cli, "configure", lambda **kw: seen.append(kw["level"]))

    _call("oracle", "--db", db)
    monkeypatch.setenv("NFT_REGISTRY_CLI_LOG_LEVEL", "error")
    load_config.cache_clear()
    _call("oracle", "--db", db)
    _call("-v", "oracle", "--db", db)
    assert seen == ["WARNING", "ERROR", "DEBUG"]
