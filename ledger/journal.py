"""
Ledger journal

Append-only log of committed operations:
- mints / burns
- transfers and approvals
- locks
- gate, whitelist, ownership and upgrade changes

Entries stay in memory (bounded) and are echoed as one JSON line each.
Rejected operations are never journaled.
"""

from __future__ import annotations
from collections import deque
from dataclasses import asdict, dataclass
from typing import Any, Deque, Dict, List, Optional
import time
import json

DEFAULT_MAX_ENTRIES = 1000


@dataclass
class JournalEntry:
    ts: float
    marker: int
    event_type: str
    actor_id: Optional[str]
    metadata: Dict[str, Any]


class Journal:
    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES, echo: bool = True) -> None:
        self._entries: Deque[JournalEntry] = deque(maxlen=max_entries)
        self._echo = echo
        self._recorded = 0

    def record(self, event_type: str, actor_id: Optional[str], marker: int, **metadata: Any) -> JournalEntry:
        ev = JournalEntry(
            ts=time.time(),
            marker=marker,
            event_type=event_type,
            actor_id=actor_id,
            metadata=metadata,
        )
        self._entries.append(ev)
        self._recorded += 1
        if self._echo:
            print("[Ledger]", json.dumps(asdict(ev), default=str), flush=True)
        return ev

    def mark(self) -> int:
        return self._recorded

    def rollback(self, mark: int) -> int:
        """Drop entries recorded after `mark`. Returns how many were dropped."""
        dropped = 0
        while self._recorded > mark and self._entries:
            self._entries.pop()
            self._recorded -= 1
            dropped += 1
        self._recorded = min(self._recorded, mark)
        if dropped and self._echo:
            print(f"[Ledger] rolled back {dropped} uncommitted entries", flush=True)
        return dropped

    def entries(self, limit: Optional[int] = None) -> List[JournalEntry]:
        items = list(self._entries)
        if limit is not None:
            items = items[-limit:] if limit > 0 else []
        return items

    def __len__(self) -> int:
        return len(self._entries)
