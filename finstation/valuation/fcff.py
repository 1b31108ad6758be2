from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class FCFFInputs:
    ebit: float
    tax_rate: float  # statutory rate on operating income (0..1)
    da: float        # depreciation & amortization
    capex: float
    delta_nwc: float


def fcff(i: FCFFInputs) -> float:
    """Unlevered free cash flow: EBIT * (1 - t) + D&A - Capex - ΔNWC.

    Taxes EBIT at the full rate even when EBIT is negative, so the figure is
    capital-structure neutral. It is the quantity discounted for EV and is
    not the balance-sheet cash roll-forward.
    """
    nopat = i.ebit * (1.0 - i.tax_rate)
    return float(nopat + i.da - i.capex - i.delta_nwc)
