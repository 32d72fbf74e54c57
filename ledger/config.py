"""
Ledger configuration.

Values come from environment variables. If LEDGER_CONFIG points at a YAML
file, its keys fill in anything the environment leaves unset.

    owner: treasury
    cap: 1000000
    lock_from_marker: 13546394
    lock_to_marker: 15935486
    clock: block
"""

from __future__ import annotations
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ledger.upgrade import SUPPORTED_VERSIONS, V2

DEFAULT_CAP = 100_000_000 * 10**18
DEFAULT_LOCK_TO = 2**63 - 1
CLOCK_MODES = ("block", "timestamp")


@dataclass
class LedgerConfig:
    owner: str = "owner"
    cap: int = DEFAULT_CAP
    lock_from_marker: int = 0
    lock_to_marker: int = DEFAULT_LOCK_TO
    clock: str = "block"
    version: int = V2
    redis_url: Optional[str] = None
    state_key: str = "ledger:state"
    env_name: str = "prod"
    allow_origins: str = "*"


def load_yaml(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ValueError(f"ledger config file not found: {path}")
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError(f"ledger config must be a mapping: {path}")
    return data


def _pick(env: Dict[str, str], name: str, file_cfg: Dict[str, Any], key: str, default: Any) -> Any:
    raw = env.get(name)
    if raw is not None and raw.strip() != "":
        return raw.strip()
    if key in file_cfg and file_cfg[key] is not None:
        return file_cfg[key]
    return default


def _as_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be an integer, got {value!r}")


def load_config(env: Optional[Dict[str, str]] = None) -> LedgerConfig:
    env = dict(os.environ) if env is None else env
    file_cfg: Dict[str, Any] = {}
    cfg_path = env.get("LEDGER_CONFIG", "").strip()
    if cfg_path:
        file_cfg = load_yaml(Path(cfg_path))

    cfg = LedgerConfig(
        owner=str(_pick(env, "LEDGER_OWNER", file_cfg, "owner", "owner")),
        cap=_as_int(_pick(env, "LEDGER_CAP", file_cfg, "cap", DEFAULT_CAP), "cap"),
        lock_from_marker=_as_int(
            _pick(env, "LEDGER_LOCK_FROM", file_cfg, "lock_from_marker", 0), "lock_from_marker"
        ),
        lock_to_marker=_as_int(
            _pick(env, "LEDGER_LOCK_TO", file_cfg, "lock_to_marker", DEFAULT_LOCK_TO), "lock_to_marker"
        ),
        clock=str(_pick(env, "LEDGER_CLOCK", file_cfg, "clock", "block")).lower(),
        version=_as_int(_pick(env, "LEDGER_VERSION", file_cfg, "version", V2), "version"),
        redis_url=_pick(env, "REDIS_URL", file_cfg, "redis_url", None),
        state_key=str(_pick(env, "LEDGER_STATE_KEY", file_cfg, "state_key", "ledger:state")),
        env_name=str(_pick(env, "ENV_NAME", file_cfg, "env_name", "prod")),
        allow_origins=str(_pick(env, "ALLOW_ORIGINS", file_cfg, "allow_origins", "*")),
    )

    if not cfg.owner.strip():
        raise ValueError("owner must be a non-empty account id")
    if cfg.cap < 0:
        raise ValueError("cap must be non-negative")
    if cfg.lock_from_marker > cfg.lock_to_marker:
        raise ValueError("lock_from_marker must not exceed lock_to_marker")
    if cfg.clock not in CLOCK_MODES:
        raise ValueError(f"clock must be one of {CLOCK_MODES}, got {cfg.clock!r}")
    if cfg.clock == "timestamp" and cfg.lock_to_marker <= int(time.time()):
        # a window given in block numbers reads as a date in 1970
        raise ValueError(
            f"lock_to_marker {cfg.lock_to_marker} is already in the past for a timestamp clock; "
            "give the window in unix seconds or use LEDGER_CLOCK=block"
        )
    if cfg.version not in SUPPORTED_VERSIONS:
        raise ValueError(f"version must be one of {SUPPORTED_VERSIONS}, got {cfg.version}")
    return cfg
