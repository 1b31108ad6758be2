from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from finstation.errors import DomainError, InvalidInputError
from finstation.forecasting.drivers import DriverSet

# Used when pretax income is zero and no effective rate can be derived.
STATUTORY_TAX_RATE = 21.0


@dataclass(frozen=True)
class IncomeRecord:
    """One annual income statement as reported by the market-data provider."""
    revenue: float
    cost_of_revenue: float = 0.0
    income_before_tax: float = 0.0
    income_tax_expense: float = 0.0
    date: Optional[str] = None  # period end, YYYY-MM-DD


def derive_drivers(latest: IncomeRecord, prior: IncomeRecord, template: DriverSet) -> DriverSet:
    """Turn two years of reported figures into a driver set.

    Base revenue, growth, COGS margin and tax rate come from the actuals; the
    other drivers are carried over from `template`. Negative ratios are
    clamped to zero: the model has no notion of a negative margin or a tax
    credit, even though real companies report both.
    """
    if latest.revenue <= 0:
        raise InvalidInputError("latest revenue must be positive", field="revenue")
    if prior.revenue == 0:
        raise DomainError("prior-period revenue is zero; growth is undefined")

    growth = (latest.revenue - prior.revenue) / prior.revenue * 100.0
    cogs_margin = latest.cost_of_revenue / latest.revenue * 100.0
    if latest.income_before_tax != 0:
        tax_rate = latest.income_tax_expense / latest.income_before_tax * 100.0
    else:
        tax_rate = STATUTORY_TAX_RATE

    return template.replace(
        base_revenue=float(latest.revenue),
        revenue_growth=max(0.0, growth),
        cogs_margin=min(100.0, max(0.0, cogs_margin)),
        tax_rate=min(100.0, max(0.0, tax_rate)),
    )
