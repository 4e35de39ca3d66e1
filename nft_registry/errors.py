"""
nft_registry.errors
-------------------

Two layers of failure live here.

Contract results
    Every fallible registry operation returns ``Ok(value)`` or
    ``Err(ErrorCode)``. These are plain data: the caller inspects them and may
    retry with a corrected caller or argument. Nothing is raised.

Host faults
    Problems that are not a legal outcome of a registry call (corrupt stored
    bytes, malformed identities, a bad dispatcher message, a storage backend
    that refuses a write) raise ``RegistryError`` subclasses. They carry a
    short machine code, a human message and an optional context dict.

The numeric values of ``ErrorCode`` are stable and must not be reordered.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Generic, Mapping, TypeVar, Union

T = TypeVar("T")


class ErrorCode(IntEnum):
    NotAdmin = 0
    OracleAlreadySet = 1
    OracleNotSetup = 2
    CounterOverflow = 3
    NFTNotFound = 4
    NotOwner = 5


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: ErrorCode

    @property
    def is_ok(self) -> bool:
        return False

    def unwrap(self) -> Any:
        raise ResultError(
            f"called unwrap() on Err({self.error.name})",
            code="unwrap_err",
            context={"error": self.error.name},
        )


Result = Union[Ok[T], Err]


# --------------------------------------------------------------------------- #
# Host faults                                                                 #
# --------------------------------------------------------------------------- #


class RegistryError(Exception):
    """
    Structured error raised by the registry host layer.

        RegistryError("message")
        RegistryError("message", code="some_code", context={...})
    """

    default_code = "registry_error"

    def __init__(self, message: str = "", *, code: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ResultError(RegistryError):
    """An Err result was unwrapped."""

    default_code = "result_error"


class IdentityError(RegistryError):
    """Identity bytes or hex could not be parsed."""

    default_code = "identity_invalid"


class StorageError(RegistryError):
    """Backend refused a key/value or could not complete a transaction."""

    default_code = "storage_error"


class CodecError(RegistryError):
    """Stored bytes did not decode to the expected shape."""

    default_code = "codec_error"


class NotInitialized(RegistryError):
    """Opened a store that holds no registry."""

    default_code = "not_initialized"


class AlreadyInitialized(RegistryError):
    """Tried to create a registry over a store that already holds one."""

    default_code = "already_initialized"


class DispatchError(RegistryError):
    """Unknown message name or malformed call arguments."""

    default_code = "dispatch_error"


__all__ = [
    "ErrorCode",
    "Ok",
    "Err",
    "Result",
    "RegistryError",
    "ResultError",
    "IdentityError",
    "StorageError",
    "CodecError",
    "NotInitialized",
    "AlreadyInitialized",
    "DispatchError",
]
