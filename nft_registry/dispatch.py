"""
nft_registry.dispatch: route named messages to registry calls.

    dispatch(reg, "mint_token", caller=alice)
    -> {"ok": True, "return": 1, "error": None}

    dispatch(reg, "transfer_nft", caller=bob, args={"index": 1, "new_owner": "0x…"})
    -> {"ok": False, "return": None, "error": {"code": 5, "name": "NotOwner"}}

The envelope is JSON-safe: identities are 0x-hex, records are dicts.
Unknown messages and malformed arguments are host faults and raise
DispatchError; contract rejections come back with ok=False.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional

from .errors import DispatchError, Err, IdentityError, Ok
from .identity import Identity, parse_identity
from .logging import bind, get_logger, unbind
from .registry import Registry

log = get_logger(__name__)

Envelope = Dict[str, Any]


def _json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Identity):
        return value.hex()
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    raise DispatchError(f"cannot encode return value of type {type(value).__name__}")


def _envelope(result: Any) -> Envelope:
    if isinstance(result, Err):
        return {"ok": False, "return": None, "error": {"code": int(result.error), "name": result.error.name}}
    if isinstance(result, Ok):
        result = result.value
    return {"ok": True, "return": _json_safe(result), "error": None}


def _arg(args: Mapping[str, Any], name: str) -> Any:
    if name not in args:
        raise DispatchError(f"missing argument: {name}", context={"arg": name})
    return args[name]


def _index_arg(args: Mapping[str, Any]) -> int:
    raw = _arg(args, "index")
    if isinstance(raw, bool):
        raise DispatchError("index must be an integer", context={"index": raw})
    if isinstance(raw, str):
        try:
            raw = int(raw, 0)
        except ValueError as e:
            raise DispatchError("index must be an integer", context={"index": raw}) from e
    if not isinstance(raw, int):
        raise DispatchError("index must be an integer", context={"index": repr(raw)})
    return raw


def _identity_arg(args: Mapping[str, Any], name: str) -> Identity:
    try:
        return parse_identity(_arg(args, name))
    except IdentityError as e:
        raise DispatchError(f"bad identity for {name}: {e.message}", context={"arg": name}) from e


def _need_caller(caller: Optional[Identity]) -> Identity:
    if caller is None:
        raise DispatchError("this message requires a caller")
    return caller


Handler = Callable[[Registry, Optional[Identity], Mapping[str, Any]], Any]

HANDLERS: Dict[str, Handler] = {
    "setup_oracle": lambda reg, caller, args: reg.setup_oracle(_need_caller(caller)),
    "mint_token": lambda reg, caller, args: reg.mint_token(_need_caller(caller)),
    "transfer_nft": lambda reg, caller, args: reg.transfer_nft(
        _need_caller(caller), _index_arg(args), _identity_arg(args, "new_owner")
    ),
    "get_oracle_data": lambda reg, caller, args: reg.get_oracle_data(),
    "get_nft": lambda reg, caller, args: reg.get_nft(_index_arg(args)),
}


def dispatch(
    registry: Registry,
    message: str,
    caller: Any = None,
    args: Optional[Mapping[str, Any]] = None,
) -> Envelope:
    handler = HANDLERS.get(message)
    if handler is None:
        raise DispatchError(f"unknown message: {message!r}", context={"known": sorted(HANDLERS)})
    who: Optional[Identity] = None
    if caller is not None:
        try:
            who = parse_identity(caller)
        except IdentityError as e:
            raise DispatchError(f"bad caller identity: {e.message}") from e

    bind(call=message, caller=who.hex() if who else None)
    try:
        env = _envelope(handler(registry, who, dict(args or {})))
    finally:
        unbind("call", "caller")
    if not env["ok"]:
        log.debug("dispatch rejected", extra={"error": env["error"]["name"]})
    return env


__all__ = ["HANDLERS", "dispatch"]
