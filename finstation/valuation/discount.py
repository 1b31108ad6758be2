from __future__ import annotations
from typing import Iterable, List


def discount_factor(rate: float, period: float) -> float:
    try:
        return 1.0 / ((1.0 + rate) ** period)
    except OverflowError:
        # growth factor past float range; the discounted flow is zero
        return 0.0


def discount_factors(rate: float, periods: int) -> List[float]:
    """Return [1/(1+r)^1, ..., 1/(1+r)^periods] (end-of-year convention)."""
    return [discount_factor(rate, t) for t in range(1, periods + 1)]


def present_value(cashflows: Iterable[float], rate: float, start: int = 1) -> float:
    """Sum of cf_t / (1+r)^t with t counted from `start`.

    start=1 discounts a list of year 1..N flows; start=0 treats the first
    element as an undiscounted time-zero flow (IRR search).
    """
    total = 0.0
    for t, cf in enumerate(cashflows, start=start):
        total += float(cf) * discount_factor(rate, t)
    return total
