#!/usr/bin/env python3
"""
Ledger Balance Snapshot

Entry point for:
- Loading the stored ledger state
- Splitting every account into available / locked / total
- Writing a daily snapshot markdown file under:
    ledger/telemetry/balance_snapshot_YYYY-MM-DD.md
"""

from __future__ import annotations
import datetime as _dt
from pathlib import Path
from typing import Dict, List, Optional

from ledger.config import load_config
from ledger.storage import open_storage
from ledger.upgrade import LedgerState

ROOT = Path(__file__).resolve().parents[1]
TELEMETRY_DIR = ROOT / "ledger" / "telemetry"


def account_rows(state: LedgerState) -> Dict[str, Dict[str, int]]:
    rows: Dict[str, Dict[str, int]] = {}
    for acct in sorted(set(state.available) | set(state.locked)):
        available = state.available.get(acct, 0)
        locked = state.locked.get(acct, 0)
        rows[acct] = {"available": available, "locked": locked, "total": available + locked}
    return rows


def summarize_balances_md(state: Optional[LedgerState]) -> List[str]:
    """
    Produce human-readable markdown lines for the balance split.
    """
    lines: List[str] = []
    if state is None:
        lines.append("No ledger state recorded yet.")
        return lines

    rows = account_rows(state)
    if not rows:
        lines.append("_No account holds funds yet._")
        return lines

    lines.append("| Account | Available | Locked | Total |")
    lines.append("|---|---:|---:|---:|")
    for acct, row in rows.items():
        marker = " (whitelisted)" if acct in state.whitelist else ""
        lines.append(
            f"| {acct}{marker} | {row['available']:,} | {row['locked']:,} | {row['total']:,} |"
        )
    return lines


def generate_snapshot(state: Optional[LedgerState], out_dir: Path = TELEMETRY_DIR) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)

    today = _dt.datetime.now(_dt.timezone.utc).strftime("%Y-%m-%d")
    ts = _dt.datetime.now(_dt.timezone.utc).isoformat()
    snapshot_path = out_dir / f"balance_snapshot_{today}.md"

    lines = [
        "# Ledger Balance Snapshot",
        "",
        f"- Generated at: `{ts}`",
    ]
    if state is not None:
        gate = "unset" if state.enabled_from is None else str(state.enabled_from)
        lines.extend(
            [
                f"- Version: `{state.version}`",
                f"- Total supply: `{state.total_supply:,}` of cap `{state.cap:,}`",
                f"- Locked overall: `{sum(state.locked.values()):,}`",
                f"- Transfers enabled from: `{gate}`",
            ]
        )
    lines.extend(["", "## Balances by Account", ""])
    lines.extend(summarize_balances_md(state))

    snapshot_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return snapshot_path


def main() -> None:
    cfg = load_config()
    path = generate_snapshot(open_storage(cfg).load())
    print(f"[snapshot] Wrote balance snapshot to: {path}")


if __name__ == "__main__":
    main()
