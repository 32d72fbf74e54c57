"""
Host-side service around the token.

Owns the pieces the engine treats as external: storage, the reference clock
and the boundary where caller identities arrive. Every mutating call runs
under the token mutex and the storage writer lock. It reloads the stored
state first and is persisted on success. With a block clock it also moves
the chain forward by one block. A call that fails leaves nothing behind.
"""

from __future__ import annotations
from typing import Any, Callable, Optional, Union

from ledger.clock import BlockClock, TimestampClock
from ledger.config import LedgerConfig
from ledger.errors import LedgerError
from ledger.journal import Journal
from ledger.storage import Storage, open_storage
from ledger.token import Token
from ledger.upgrade import new_state

MUTATIONS = (
    "mint",
    "burn",
    "burn_from",
    "approve",
    "increase_allowance",
    "decrease_allowance",
    "transfer",
    "transfer_from",
    "lock",
    "set_enabled_from",
    "add_whitelist",
    "revoke_whitelist",
    "renounce_whitelist",
    "transfer_ownership",
    "renounce_ownership",
    "upgrade",
)


def log(msg: str) -> None:
    print(f"[LedgerService] {msg}", flush=True)


def make_clock(cfg: LedgerConfig, storage: Storage) -> Union[BlockClock, TimestampClock]:
    if cfg.clock == "timestamp":
        return TimestampClock()
    height = storage.load_height()
    return BlockClock(height if height is not None else cfg.lock_from_marker)


class LedgerService:
    def __init__(self, token: Token, storage: Storage, cfg: LedgerConfig) -> None:
        self.token = token
        self.storage = storage
        self.cfg = cfg

    @classmethod
    def bootstrap(
        cls,
        cfg: LedgerConfig,
        storage: Optional[Storage] = None,
        journal: Optional[Journal] = None,
    ) -> "LedgerService":
        storage = storage if storage is not None else open_storage(cfg)
        with storage.writer():
            clock = make_clock(cfg, storage)
            height = clock.current() if isinstance(clock, BlockClock) else None
            state = storage.load()
            if state is None:
                state = new_state(
                    cfg.owner,
                    cfg.cap,
                    cfg.lock_from_marker,
                    cfg.lock_to_marker,
                    version=cfg.version,
                )
                storage.commit(state, height)
                log(f"Created ledger v{state.version} owned by {cfg.owner} (cap={cfg.cap}).")
            else:
                if height is not None and storage.load_height() is None:
                    storage.save_height(height)
                log(f"Loaded ledger v{state.version} from {storage.kind} storage.")
        return cls(Token(state, clock, journal=journal), storage, cfg)

    @property
    def clock(self) -> Union[BlockClock, TimestampClock]:
        return self.token.clock  # type: ignore[return-value]

    def _refresh(self) -> None:
        # other workers may have committed since this one last looked
        doc = self.storage.load_doc()
        if doc is not None:
            self.token.restore(doc)
        clock = self.clock
        if isinstance(clock, BlockClock):
            height = self.storage.load_height()
            if height is not None:
                clock.sync(height)

    def _commit(self) -> None:
        clock = self.clock
        if isinstance(clock, BlockClock):
            height = clock.current() + 1
            self.storage.commit(self.token.state, height)
            clock.sync(height)
        else:
            self.storage.commit(self.token.state)

    def execute(
        self,
        operation: str,
        caller: str,
        *args: Any,
        view: Optional[Callable[[Token], Any]] = None,
    ) -> Any:
        """
        Run one mutation against the freshest stored state and persist it.

        If the operation or the save fails, the in-memory state and the
        journal are put back as they were before the call. With `view`, the
        return value is `view(token)`, read before the mutex is released.
        """
        if operation not in MUTATIONS:
            raise ValueError(f"unknown operation: {operation}")
        token = self.token
        with token.mutex, self.storage.writer():
            self._refresh()
            before = token.snapshot()
            mark = token.journal.mark()
            try:
                result = getattr(token, operation)(caller, *args)
                self._commit()
            except Exception as e:
                token.restore(before)
                token.journal.rollback(mark)
                if not isinstance(e, LedgerError):
                    log(f"{operation} by {caller} not committed: {e!r}")
                raise
            return view(token) if view is not None else result

    def query(self, view: Callable[[Token], Any]) -> Any:
        with self.token.mutex:
            self._refresh()
            return view(self.token)

    def advance_clock(self, caller: str, blocks: int) -> int:
        """Owner-only helper for block-mode hosts (tests, local chains)."""
        clock = self.clock
        if not isinstance(clock, BlockClock):
            raise ValueError("clock is not block-based; it cannot be advanced")
        if blocks < 0:
            raise ValueError("cannot move the block clock backwards")
        with self.token.mutex, self.storage.writer():
            self._refresh()
            self.token.ownership.require_owner(caller, "advance_clock")
            height = clock.current() + blocks
            self.storage.save_height(height)
            clock.sync(height)
        log(f"Clock advanced by {blocks} to {height}.")
        return height
