from __future__ import annotations
from dataclasses import fields
from typing import Dict, Any, List

from finstation.forecasting.drivers import DriverSet
from finstation.valuation.calculator import ValuationResult

_DRIVER_LABELS = {
    "base_revenue": "Base revenue",
    "revenue_growth": "Revenue growth",
    "cogs_margin": "COGS margin",
    "opex_margin": "Opex margin",
    "tax_rate": "Tax rate",
    "discount_rate": "Discount rate",
    "nwc_percent": "NWC % of revenue",
    "capex_percent": "Capex % of revenue",
    "depreciation_percent": "D&A % of revenue",
}


def assumptions_md(drivers: DriverSet, scenario_name: str | None = None, warnings: List[str] | None = None) -> str:
    title = f"# Assumptions: {scenario_name}" if scenario_name else "# Assumptions"
    lines = [title, ""]
    for f in fields(drivers):
        value = getattr(drivers, f.name)
        shown = f"{value:,.2f}" if f.name == "base_revenue" else f"{value:.2f}%"
        lines.append(f"- {_DRIVER_LABELS.get(f.name, f.name)}: {shown}")
    if warnings:
        lines.append("\n## Warnings")
        for w in warnings:
            lines.append(f"- {w}")
    return "\n".join(lines) + "\n"


def validation_report_md(checks: Dict[str, bool], details: Dict[str, Any] | None = None) -> str:
    failed = [k for k, ok in checks.items() if not ok]
    lines = ["# Validation Report", ""]
    if failed:
        lines.append(f"{len(failed)} of {len(checks)} statement identities failed.")
    else:
        lines.append(f"All {len(checks)} statement identities hold.")
    lines.append("")
    for k, ok in checks.items():
        lines.append(f"- {k.replace('_', ' ')}: {'PASS' if ok else 'FAIL'}")
    if details:
        lines.append("\n## Details")
        for k, v in details.items():
            lines.append(f"- {k}: {v}")
    return "\n".join(lines) + "\n"


def valuation_md(scenario_name: str, result: ValuationResult) -> str:
    lines = [f"# Valuation: {scenario_name}", ""]
    lines.append(f"- Discount rate: {result.discount_rate:.2f}%")
    lines.append(f"- Terminal growth: {result.terminal_growth:.2f}%")
    lines.append(f"- NPV (explicit years): {result.npv:,.2f}")
    lines.append(f"- Terminal value: {result.terminal_value:,.2f} (PV {result.pv_terminal:,.2f})")
    lines.append(f"- Enterprise value: {result.enterprise_value:,.2f}")
    irr = f"- IRR (approximation): {result.irr:.2f}%"
    if not result.irr_converged:
        irr += " [low confidence: search did not converge]"
    lines.append(irr)
    if result.payback_period is None:
        lines.append("- Payback: not within horizon")
    else:
        lines.append(f"- Payback: {result.payback_period:.2f} years")
    lines.append("")
    lines.append(
        f"IRR is measured against a proxy outlay of {result.initial_outlay:,.2f} and is meant "
        "for ranking scenarios, not as a money-weighted return."
    )
    return "\n".join(lines) + "\n"
