from __future__ import annotations
from dataclasses import dataclass

from finstation.errors import DomainError

DEFAULT_TERMINAL_GROWTH_PCT = 2.0


@dataclass(frozen=True)
class TerminalInputs:
    last_fcf: float   # cash flow of the final explicit year N
    rate: float       # discount rate (0..1)
    g: float          # perpetual growth (0..1)


def gordon_value(i: TerminalInputs) -> float:
    """Gordon growth value at the end of year N: FCF_N * (1 + g) / (r - g).

    Undiscounted. Raises DomainError when r <= g, where the perpetuity
    diverges or turns negative.
    """
    if i.rate <= i.g:
        raise DomainError("discount rate must exceed terminal growth rate")
    return float(i.last_fcf * (1.0 + i.g) / (i.rate - i.g))
