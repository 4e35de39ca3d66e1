"""
nft_registry.events: in-process event sink for committed transitions.

Only committed calls emit; a rejected call leaves the sink untouched. Events
are buffered per call and flushed after the storage transaction commits, so a
rolled-back call never leaves an event behind.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from .identity import Identity

ORACLE_SETUP = "OracleSetup"
MINTED = "Minted"
TRANSFERRED = "Transferred"


@dataclass(frozen=True)
class Event:
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "args": {k: (v.hex() if isinstance(v, Identity) else v) for k, v in self.args.items()},
        }


class EventSink:
    def __init__(self) -> None:
        self._events: List[Event] = []
        self._lock = threading.Lock()

    def extend(self, events: List[Event]) -> None:
        with self._lock:
            self._events.extend(events)

    def get_events(self) -> List[Event]:
        with self._lock:
            return list(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


__all__ = ["ORACLE_SETUP", "MINTED", "TRANSFERRED", "Event", "EventSink"]
