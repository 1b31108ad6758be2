from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import math

from finstation.errors import DomainError, InvalidInputError
from finstation.forecasting.drivers import DriverSet
from finstation.forecasting.engine import DEFAULT_HORIZON_YEARS, Snapshot, project
from finstation.valuation.discount import discount_factor, present_value
from finstation.valuation.irr import bisect_irr
from finstation.valuation.terminal import DEFAULT_TERMINAL_GROWTH_PCT, TerminalInputs, gordon_value

# Proxy initial investment for the IRR search, as a share of anchor revenue.
# A heuristic for ranking scenarios against each other, not a capital budget.
IRR_OUTLAY_RATIO = 0.20


@dataclass(frozen=True)
class ValuationResult:
    npv: float                 # PV of explicit years 1..N
    enterprise_value: float    # npv + pv_terminal
    irr: float                 # percent; approximation, see irr_converged
    irr_converged: bool
    terminal_value: float      # undiscounted, at end of year N
    pv_terminal: float
    initial_outlay: float      # proxy outlay used for IRR and payback
    payback_period: Optional[float]
    discount_rate: float       # percent
    terminal_growth: float     # percent

    @property
    def clears_hurdle(self) -> bool:
        return self.irr > self.discount_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            "npv": self.npv,
            "enterpriseValue": self.enterprise_value,
            "irr": self.irr,
            "irrConverged": self.irr_converged,
            "irrIsApproximation": True,
            "clearsHurdle": self.clears_hurdle,
            "terminalValue": self.terminal_value,
            "pvTerminal": self.pv_terminal,
            "initialOutlay": self.initial_outlay,
            "paybackPeriod": self.payback_period,
            "discountRate": self.discount_rate,
            "terminalGrowth": self.terminal_growth,
        }


def _finite(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
        raise InvalidInputError(f"{name} must be a finite number", field=name)
    return float(value)


def payback_period(outlay: float, cashflows: Sequence[float]) -> Optional[float]:
    """Fractional years until cumulative cash flow recovers `outlay`, or None."""
    remaining = outlay
    for year, cf in enumerate(cashflows, start=1):
        if cf > 0 and cf >= remaining:
            return (year - 1) + max(0.0, remaining) / cf
        remaining -= cf
    return None


def valuate(
    snapshots: Sequence[Snapshot],
    discount_rate_pct: float,
    terminal_growth_pct: float = DEFAULT_TERMINAL_GROWTH_PCT,
    outlay_ratio: float = IRR_OUTLAY_RATIO,
) -> ValuationResult:
    """Discount a projection to NPV, Enterprise Value and an IRR estimate.

    - NPV discounts `cash_flow` of years 1..N at r; the anchor year is skipped.
    - Terminal value is Gordon growth on year N cash flow, discounted N years.
    - IRR bisects the flows [-outlay, cf1..cfN] where outlay is
      `outlay_ratio` x anchor revenue. It is a comparative ranking figure;
      `irr_converged=False` marks an estimate that missed the tolerance.

    Raises InvalidInputError for malformed inputs and DomainError when the
    discount rate does not exceed terminal growth.
    """
    if len(snapshots) < 2:
        raise InvalidInputError("need the anchor year and at least one projected year", field="snapshots")
    r_pct = _finite(discount_rate_pct, "discount_rate")
    g_pct = _finite(terminal_growth_pct, "terminal_growth")
    ratio = _finite(outlay_ratio, "outlay_ratio")
    if r_pct <= 0:
        raise InvalidInputError("discount rate must be positive", field="discount_rate")
    if r_pct <= g_pct:
        raise DomainError("discount rate must exceed terminal growth rate")

    r = r_pct / 100.0
    g = g_pct / 100.0
    anchor = snapshots[0]
    flows: List[float] = [s.cash_flow for s in snapshots[1:]]
    if not all(math.isfinite(cf) for cf in flows):
        raise DomainError("projection produced a non-finite cash flow")
    n = len(flows)

    npv = present_value(flows, r)
    tv = gordon_value(TerminalInputs(last_fcf=flows[-1], rate=r, g=g))
    pv_tv = tv * discount_factor(r, n)

    outlay = anchor.revenue * ratio
    est = bisect_irr([-outlay] + flows)

    return ValuationResult(
        npv=npv,
        enterprise_value=npv + pv_tv,
        irr=est.rate * 100.0,
        irr_converged=est.converged,
        terminal_value=tv,
        pv_terminal=pv_tv,
        initial_outlay=outlay,
        payback_period=payback_period(outlay, flows),
        discount_rate=r_pct,
        terminal_growth=g_pct,
    )


def evaluate(
    drivers: DriverSet,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
    terminal_growth_pct: float = DEFAULT_TERMINAL_GROWTH_PCT,
) -> tuple[List[Snapshot], ValuationResult]:
    """project() then valuate() at the drivers' own discount rate."""
    rows = project(drivers, horizon_years)
    return rows, valuate(rows, drivers.discount_rate, terminal_growth_pct)
