from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from finstation.errors import InvalidInputError
from finstation.forecasting.drivers import DriverSet, validate_drivers
from finstation.valuation.fcff import FCFFInputs, fcff

DEFAULT_HORIZON_YEARS = 5

# Opening balance sheet as a share of base revenue. Modelling conventions,
# not driver inputs. Equity is the plug.
ANCHOR_CASH_RATIO = 0.10
ANCHOR_PPE_RATIO = 0.50
ANCHOR_DEBT_RATIO = 0.20


@dataclass(frozen=True)
class Snapshot:
    year: int

    # Income statement
    revenue: float
    cogs: float
    gross_profit: float
    opex: float
    ebitda: float
    depreciation: float
    ebit: float
    tax: float
    net_income: float

    # Cash flow
    change_in_nwc: float
    capex: float
    cash_flow: float                # unlevered FCF, the discounted quantity
    cash_roll_forward_delta: float  # net-income based, balance sheet only

    # Balance sheet (year end)
    cash: float
    nwc: float
    ppe: float
    total_assets: float
    total_debt: float
    total_equity: float

    def to_dict(self) -> Dict[str, Any]:
        return {_camel(k): v for k, v in asdict(self).items()}


_ACRONYMS = {"nwc": "NWC"}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(_ACRONYMS.get(p, p.capitalize()) for p in rest)


def anchor_snapshot(drivers: DriverSet) -> Snapshot:
    rev = float(drivers.base_revenue)
    cash = rev * ANCHOR_CASH_RATIO
    nwc = rev * drivers.nwc_percent / 100.0
    ppe = rev * ANCHOR_PPE_RATIO
    debt = rev * ANCHOR_DEBT_RATIO
    assets = cash + nwc + ppe
    return Snapshot(
        year=0,
        revenue=rev,
        cogs=0.0, gross_profit=0.0, opex=0.0, ebitda=0.0,
        depreciation=0.0, ebit=0.0, tax=0.0, net_income=0.0,
        change_in_nwc=0.0, capex=0.0, cash_flow=0.0, cash_roll_forward_delta=0.0,
        cash=cash,
        nwc=nwc,
        ppe=ppe,
        total_assets=assets,
        total_debt=debt,
        total_equity=assets - debt,
    )


def project(drivers: DriverSet, horizon_years: int = DEFAULT_HORIZON_YEARS) -> List[Snapshot]:
    """Project a three-statement model for `horizon_years` years.

    Returns horizon_years + 1 snapshots; index 0 is the anchor year built from
    base revenue alone. Every later year is re-derived from the previous
    snapshot and the drivers:

    - Revenue compounds at a constant growth rate; COGS, opex, D&A, NWC and
      capex are fixed percents of the same year's revenue.
    - Tax is floored at zero on negative EBIT. No loss carryforward.
    - `cash_flow` is unlevered FCF on after-tax EBIT (used for valuation).
    - `cash` rolls forward on net income instead (`cash_roll_forward_delta`)
      so the balance sheet stays consistent. The two are different numbers
      whenever EBIT is negative and must not be merged.
    - Debt is held flat; equity grows by net income.
    """
    if isinstance(horizon_years, bool) or not isinstance(horizon_years, int):
        raise InvalidInputError("horizon must be an integer number of years", field="horizon_years")
    if horizon_years < 1:
        raise InvalidInputError("horizon must be at least 1 year", field="horizon_years")
    validate_drivers(drivers)

    tax_rate = drivers.tax_rate / 100.0
    prev = anchor_snapshot(drivers)
    rows: List[Snapshot] = [prev]

    for year in range(1, horizon_years + 1):
        rev = prev.revenue * (1.0 + drivers.revenue_growth / 100.0)
        cogs = rev * drivers.cogs_margin / 100.0
        gross_profit = rev - cogs
        opex = rev * drivers.opex_margin / 100.0
        ebitda = gross_profit - opex
        dep = rev * drivers.depreciation_percent / 100.0
        ebit = ebitda - dep
        tax = max(0.0, ebit * tax_rate)
        net_income = ebit - tax

        nwc = rev * drivers.nwc_percent / 100.0
        delta_nwc = nwc - prev.nwc
        capex = rev * drivers.capex_percent / 100.0

        ufcf = fcff(FCFFInputs(ebit=ebit, tax_rate=tax_rate, da=dep, capex=capex, delta_nwc=delta_nwc))
        cash_delta = net_income + dep - delta_nwc - capex

        cash = prev.cash + cash_delta
        ppe = prev.ppe + capex - dep

        snap = Snapshot(
            year=year,
            revenue=rev,
            cogs=cogs,
            gross_profit=gross_profit,
            opex=opex,
            ebitda=ebitda,
            depreciation=dep,
            ebit=ebit,
            tax=tax,
            net_income=net_income,
            change_in_nwc=delta_nwc,
            capex=capex,
            cash_flow=ufcf,
            cash_roll_forward_delta=cash_delta,
            cash=cash,
            nwc=nwc,
            ppe=ppe,
            total_assets=cash + nwc + ppe,
            total_debt=prev.total_debt,
            total_equity=prev.total_equity + net_income,
        )
        rows.append(snap)
        prev = snap

    return rows
