from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence
import math

from finstation.valuation.discount import present_value

IRR_LOW = -0.99
IRR_HIGH = 2.0
IRR_MAX_ITER = 50
IRR_TOLERANCE = 100.0  # absolute currency units


@dataclass(frozen=True)
class IRREstimate:
    rate: float         # 0..1 scale
    npv_at_rate: float
    iterations: int
    converged: bool     # False => low-confidence midpoint


def _npv(cashflows: Sequence[float], rate: float) -> float:
    try:
        return present_value(cashflows, rate, start=0)
    except (ZeroDivisionError, OverflowError):
        # (1+r)**t left float range. Near -100% the last flows dominate;
        # at high rates everything after time zero vanishes.
        if rate < 0:
            last = next((cf for cf in reversed(cashflows) if cf != 0), 0.0)
            return math.copysign(math.inf, last) if last else 0.0
        return float(cashflows[0])


def bisect_irr(
    cashflows: Sequence[float],
    low: float = IRR_LOW,
    high: float = IRR_HIGH,
    max_iter: int = IRR_MAX_ITER,
    tolerance: float = IRR_TOLERANCE,
) -> IRREstimate:
    """Bisection search for the rate where NPV(cashflows) is within `tolerance` of zero.

    cashflows[0] is the time-zero flow (normally the negative outlay). Assumes
    NPV falls as the rate rises. Always stops after `max_iter` midpoints and
    returns the last one; `converged` tells whether the tolerance was met.
    """
    mid = (low + high) / 2.0
    npv = _npv(cashflows, mid)
    it = 0
    for it in range(1, max_iter + 1):
        mid = (low + high) / 2.0
        npv = _npv(cashflows, mid)
        if abs(npv) < tolerance:
            return IRREstimate(rate=mid, npv_at_rate=npv, iterations=it, converged=True)
        if npv > 0:
            low = mid
        else:
            high = mid
    return IRREstimate(rate=mid, npv_at_rate=npv, iterations=it, converged=False)
