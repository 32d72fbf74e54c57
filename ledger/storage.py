"""
State storage: Redis when REDIS_URL is configured, process memory otherwise.

The whole ledger state is one JSON document under a single key, so a save
is all-or-nothing. The host's block height lives next to it under
`<key>:clock` and is written in the same transaction as the state.
"""

from __future__ import annotations
import json
from contextlib import nullcontext
from typing import Any, ContextManager, Dict, Optional, Union

import redis

from ledger.config import LedgerConfig
from ledger.upgrade import LedgerState, state_from_dict, state_to_dict

# seconds a writer may hold the lock, and may wait for it
LOCK_TIMEOUT = 10
LOCK_WAIT = 5


class MemoryStorage:
    kind = "memory"

    def __init__(self, key: str = "ledger:state") -> None:
        self.key = key
        self.clock_key = f"{key}:clock"
        self.lock_key = f"{key}:lock"
        self._kv: Dict[str, str] = {}

    def _get(self, key: str) -> Optional[str]:
        return self._kv.get(key)

    def _set(self, key: str, val: str) -> None:
        self._kv[key] = val

    def _set_many(self, items: Dict[str, str]) -> None:
        self._kv.update(items)

    def writer(self) -> ContextManager[Any]:
        # One process owns memory storage; the token mutex already serializes it.
        return nullcontext()

    def load_doc(self) -> Optional[Dict[str, Any]]:
        raw = self._get(self.key)
        return None if raw is None else json.loads(raw)

    def load(self) -> Optional[LedgerState]:
        doc = self.load_doc()
        return None if doc is None else state_from_dict(doc)

    def commit(self, state: LedgerState, height: Optional[int] = None) -> None:
        """Write the state and, for block clocks, the new height in one step."""
        items = {self.key: _dump(state)}
        if height is not None:
            items[self.clock_key] = str(height)
        self._set_many(items)

    def load_height(self) -> Optional[int]:
        raw = self._get(self.clock_key)
        return None if raw is None else int(raw)

    def save_height(self, height: int) -> None:
        self._set(self.clock_key, str(height))


class RedisStorage(MemoryStorage):
    """
    Shared storage for several API workers. Writers take a Redis lock on
    `<key>:lock` and reload the state inside it, so no worker commits on
    top of a stale copy.
    """

    kind = "redis"

    def __init__(self, client: Any, key: str = "ledger:state") -> None:
        super().__init__(key)
        self._client = client

    @classmethod
    def from_url(cls, url: str, key: str = "ledger:state") -> "RedisStorage":
        return cls(redis.Redis.from_url(url, decode_responses=True), key)

    def _get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def _set(self, key: str, val: str) -> None:
        self._client.set(key, val)

    def _set_many(self, items: Dict[str, str]) -> None:
        pipe = self._client.pipeline(transaction=True)
        for key, val in items.items():
            pipe.set(key, val)
        pipe.execute()

    def writer(self) -> ContextManager[Any]:
        return self._client.lock(self.lock_key, timeout=LOCK_TIMEOUT, blocking_timeout=LOCK_WAIT)


Storage = Union[MemoryStorage, RedisStorage]


def _dump(state: LedgerState) -> str:
    return json.dumps(state_to_dict(state), sort_keys=True)


def open_storage(cfg: LedgerConfig) -> Storage:
    if cfg.redis_url:
        return RedisStorage.from_url(cfg.redis_url, cfg.state_key)
    return MemoryStorage(cfg.state_key)
