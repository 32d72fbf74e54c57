#!/usr/bin/env python3
"""
Ledger Integrity Check

- Loads the stored ledger state (Redis or memory, per config)
- Verifies the accounting invariants:
    * total_supply == sum(available + locked) over all accounts
    * total_supply <= cap
    * no negative balance, locked amount or allowance
    * V1 states carry no V2 data
- Emits a human-readable report in:
    reports/ledger/ledger_integrity_YYYY-MM-DD.md

This is read-only: it never modifies state, only reports.
A failed check means a bug in the engine, not a rejected operation.
"""

import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from ledger.config import load_config
from ledger.errors import InvariantViolation
from ledger.storage import open_storage
from ledger.upgrade import V1, LedgerState

ROOT = Path(__file__).resolve().parents[1]
REPORT_DIR = ROOT / "reports" / "ledger"


def check_invariants(state: LedgerState) -> List[str]:
    issues: List[str] = []

    for name, bucket in (("available", state.available), ("locked", state.locked)):
        for acct, amt in sorted(bucket.items()):
            if amt < 0:
                issues.append(f"negative {name} balance for `{acct}`: {amt}")

    for owner, spenders in sorted(state.allowances.items()):
        for spender, amt in sorted(spenders.items()):
            if amt < 0:
                issues.append(f"negative allowance `{owner}` -> `{spender}`: {amt}")

    held = sum(state.available.values()) + sum(state.locked.values())
    if held != state.total_supply:
        issues.append(f"total_supply {state.total_supply} != sum of balances {held}")
    if state.total_supply > state.cap:
        issues.append(f"total_supply {state.total_supply} exceeds cap {state.cap}")
    if state.total_supply < 0:
        issues.append(f"negative total_supply: {state.total_supply}")

    if state.version == V1 and (state.locked or state.whitelist or state.enabled_from is not None):
        issues.append("version 1 state carries version 2 data")

    return issues


def assert_invariants(state: LedgerState) -> None:
    issues = check_invariants(state)
    if issues:
        raise InvariantViolation("; ".join(issues))


def write_report(state: Optional[LedgerState], issues: List[str], out_dir: Path = REPORT_DIR) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    now = datetime.now(timezone.utc)
    out = out_dir / f"ledger_integrity_{now.strftime('%Y-%m-%d')}.md"

    lines: List[str] = []
    lines.append("# Ledger Integrity Report")
    lines.append("")
    lines.append(f"- Generated at: `{now.isoformat()}`")
    lines.append("")

    if state is None:
        lines.append("No ledger state stored yet.")
        out.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return out

    lines.append("## Summary")
    lines.append(f"- Version: **{state.version}**")
    lines.append(f"- Total supply: **{state.total_supply}**")
    lines.append(f"- Cap: **{state.cap}**")
    lines.append(f"- Accounts with available funds: **{len(state.available)}**")
    lines.append(f"- Accounts with locked funds: **{len(state.locked)}**")
    lines.append(f"- Whitelisted accounts: **{len(state.whitelist)}**")
    lines.append("")

    lines.append("## Detected Issues")
    if issues:
        lines.extend(f"- {issue}" for issue in issues)
    else:
        lines.append("- No integrity issues detected")
    lines.append("")

    out.write_text("\n".join(lines), encoding="utf-8")
    return out


def main() -> int:
    cfg = load_config()
    state = open_storage(cfg).load()
    issues = check_invariants(state) if state is not None else []
    report_path = write_report(state, issues)
    print(
        json.dumps(
            {
                "report": str(report_path),
                "issues": len(issues),
            },
            indent=2,
        )
    )
    return 1 if issues else 0


if __name__ == "__main__":
    sys.exit(main())
