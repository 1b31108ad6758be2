from __future__ import annotations
from typing import Dict, Sequence

from finstation.forecasting.engine import Snapshot


def _close(a: float, b: float, eps: float) -> bool:
    return abs(a - b) <= eps * max(1.0, abs(a), abs(b))


def check_identities(rows: Sequence[Snapshot], eps: float = 1e-9) -> Dict[str, bool]:
    """Check balance-sheet continuity across consecutive snapshots.

    Tolerance is relative to the magnitude of the compared values. Returns a
    name -> pass mapping suitable for the validation report.
    """
    checks = {
        "total_assets": True,
        "balance_sheet_balances": True,
        "ppe_roll_forward": True,
        "equity_roll_forward": True,
        "cash_roll_forward": True,
        "debt_constant": True,
    }
    prev = None
    for r in rows:
        if not _close(r.total_assets, r.cash + r.nwc + r.ppe, eps):
            checks["total_assets"] = False
        if not _close(r.total_assets, r.total_debt + r.total_equity, eps):
            checks["balance_sheet_balances"] = False
        if prev is not None:
            if not _close(r.ppe, prev.ppe + r.capex - r.depreciation, eps):
                checks["ppe_roll_forward"] = False
            if not _close(r.total_equity, prev.total_equity + r.net_income, eps):
                checks["equity_roll_forward"] = False
            if not _close(r.cash, prev.cash + r.cash_roll_forward_delta, eps):
                checks["cash_roll_forward"] = False
            if r.total_debt != prev.total_debt:
                checks["debt_constant"] = False
        prev = r
    return checks
