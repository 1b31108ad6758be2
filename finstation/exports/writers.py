from __future__ import annotations
from typing import List, Dict, Any, Iterable, Sequence
import csv
import io

from finstation.forecasting.engine import Snapshot
from finstation.scenarios.store import ComparisonRow

SCHEMAS = {
    "projection": [
        "year","revenue","cogs","grossProfit","opex","ebitda","depreciation","ebit","tax","netIncome",
        "changeInNWC","capex","cashFlow","cashRollForwardDelta",
        "cash","nwc","ppe","totalAssets","totalDebt","totalEquity"
    ],
    "comparison": [
        "scenario_id","name","npv","irr","irr_converged","enterprise_value","error"
    ],
}


def write_csv(rows: Iterable[Any], columns: List[str]) -> str:
    """Write mappings, or records exposing to_dict(), as CSV with a fixed column order.

    Missing values and None are written as empty cells.
    """
    buf = io.StringIO()
    w = csv.DictWriter(buf, fieldnames=columns, extrasaction="ignore", lineterminator="\n")
    w.writeheader()
    for r in rows:
        rec: Dict[str, Any] = r.to_dict() if hasattr(r, "to_dict") else r
        w.writerow({k: rec.get(k) for k in columns})
    return buf.getvalue()


def write_projection(snapshots: Sequence[Snapshot]) -> str:
    return write_csv(snapshots, SCHEMAS["projection"])


def write_comparison(rows: Iterable[ComparisonRow]) -> str:
    return write_csv((vars(r) for r in rows), SCHEMAS["comparison"])
