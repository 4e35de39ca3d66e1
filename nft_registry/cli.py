"""
nft_registry.cli
----------------

Drive a SQLite-backed registry from the shell.

Examples
--------
# Create a registry administered by alice, then activate the counter
nft-registry init --db reg.db --caller alice
nft-registry setup-oracle --db reg.db --caller alice

# bob mints #1 and hands it to charlie
nft-registry mint --db reg.db --caller bob
nft-registry transfer 1 charlie --db reg.db --caller bob

# Read-only queries
nft-registry oracle --db reg.db
nft-registry get 1 --db reg.db

Identities are 0x-hex (32 bytes) or a dev account name (see `accounts`).
Output is JSON on stdout. Exit codes: 0 ok, 1 rejected by the registry,
2 usage or host error.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from .config import load_config
from .dispatch import dispatch
from .errors import RegistryError
from .identity import dev_accounts, parse_identity
from .logging import configure, trace_scope
from .registry import Registry
from .storage import SqliteBackend, open_backend

app = typer.Typer(
    name="nft-registry",
    add_completion=False,
    no_args_is_help=True,
    help="Mint and transfer numbered NFT records in a local registry database.",
)

DbOpt = typer.Option(None, "--db", envvar="NFT_REGISTRY_DB", help="SQLite database path.")
CallerOpt = typer.Option(..., "--caller", "-c", help="Caller identity (0x-hex or dev account name).")

_STATE: Dict[str, Any] = {}


# -------------------- utils --------------------


def _print(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2 if _STATE.get("pretty") else None, sort_keys=True))


def _fail(err: RegistryError) -> None:
    typer.echo(json.dumps({"error": err.to_dict()}, sort_keys=True), err=True)
    raise typer.Exit(code=2)


def _backend(db: Optional[Path]) -> SqliteBackend:
    if db is None:
        typer.echo("no database: pass --db or set NFT_REGISTRY_DB", err=True)
        raise typer.Exit(code=2)
    try:
        store = open_backend(db)
    except RegistryError as e:
        _fail(e)
    assert isinstance(store, SqliteBackend)
    return store


def _run(db: Optional[Path], message: str, caller: Optional[str] = None, **args: Any) -> None:
    store = _backend(db)
    try:
        with trace_scope():
            env = dispatch(Registry.open(store), message, caller=caller, args=args)
    except RegistryError as e:
        _fail(e)
    finally:
        store.close()
    _print(env)
    if not env["ok"]:
        raise typer.Exit(code=1)


# -------------------- commands --------------------


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG to stderr."),
    pretty: bool = typer.Option(False, "--pretty", help="Indent JSON output."),
) -> None:
    _STATE["pretty"] = pretty
    configure(level="DEBUG" if verbose else load_config().cli_log_level)


@app.command("init")
def init_cmd(db: Optional[Path] = DbOpt, caller: str = CallerOpt) -> None:
    """Create a registry whose permanent admin is CALLER."""
    store = _backend(db)
    try:
        reg = Registry.new(parse_identity(caller), store)
        _print({"admin": reg.admin.hex(), "db": str(db)})
    except RegistryError as e:
        _fail(e)
    finally:
        store.close()


@app.command("setup-oracle")
def setup_oracle_cmd(db: Optional[Path] = DbOpt, caller: str = CallerOpt) -> None:
    """Activate the sequence counter (admin only, once)."""
    _run(db, "setup_oracle", caller)


@app.command("mint")
def mint_cmd(db: Optional[Path] = DbOpt, caller: str = CallerOpt) -> None:
    """Mint the next NFT to CALLER."""
    _run(db, "mint_token", caller)


@app.command("transfer")
def transfer_cmd(
    index: int = typer.Argument(..., help="NFT index."),
    new_owner: str = typer.Argument(..., help="Recipient identity."),
    db: Optional[Path] = DbOpt,
    caller: str = CallerOpt,
) -> None:
    """Transfer NFT INDEX to NEW_OWNER (current owner only)."""
    _run(db, "transfer_nft", caller, index=index, new_owner=new_owner)


@app.command("oracle")
def oracle_cmd(db: Optional[Path] = DbOpt) -> None:
    """Show the current counter value."""
    _run(db, "get_oracle_data")


@app.command("get")
def get_cmd(index: int = typer.Argument(..., help="NFT index."), db: Optional[Path] = DbOpt) -> None:
    """Show NFT INDEX (null if never minted)."""
    _run(db, "get_nft", index=index)


@app.command("accounts")
def accounts_cmd() -> None:
    """List the deterministic dev accounts."""
    _print({name: ident.hex() for name, ident in dev_accounts().items()})


if __name__ == "__main__":
    app()
