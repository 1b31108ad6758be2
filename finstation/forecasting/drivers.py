from __future__ import annotations
from dataclasses import dataclass, asdict, replace as dc_replace, fields
from typing import Any, Dict, Mapping
import math

from finstation.errors import InvalidInputError


@dataclass(frozen=True)
class DriverSet:
    # Anchor
    base_revenue: float  # year-0 revenue, currency units

    # Growth and margins (whole percents, e.g. 5.0 for 5%)
    revenue_growth: float
    cogs_margin: float
    opex_margin: float  # cash opex, excludes D&A

    # Taxes and discounting
    tax_rate: float
    discount_rate: float  # also the IRR hurdle

    # Balance-sheet drivers as % of that year's revenue
    nwc_percent: float
    capex_percent: float
    depreciation_percent: float

    def replace(self, **changes: float) -> "DriverSet":
        for name in changes:
            if name not in DRIVER_FIELDS:
                raise InvalidInputError(f"unknown driver '{name}'", field=name)
        d = dc_replace(self, **changes)
        validate_drivers(d)
        return d

    def to_dict(self) -> Dict[str, float]:
        return {WIRE_NAMES[k]: float(v) for k, v in asdict(self).items()}

    @staticmethod
    def from_dict(data: Mapping[str, Any]) -> "DriverSet":
        """Build from a flat mapping keyed by wire (camelCase) or attribute names."""
        values: Dict[str, float] = {}
        for name, wire in WIRE_NAMES.items():
            if wire in data:
                raw = data[wire]
            elif name in data:
                raw = data[name]
            else:
                raise InvalidInputError(f"missing driver '{wire}'", field=wire)
            try:
                values[name] = float(raw)
            except (TypeError, ValueError):
                raise InvalidInputError(f"driver '{wire}' must be numeric", field=wire)
        d = DriverSet(**values)
        validate_drivers(d)
        return d


DRIVER_FIELDS = tuple(f.name for f in fields(DriverSet))

WIRE_NAMES: Dict[str, str] = {
    "base_revenue": "baseRevenue",
    "revenue_growth": "revenueGrowth",
    "cogs_margin": "cogsMargin",
    "opex_margin": "opexMargin",
    "tax_rate": "taxRate",
    "discount_rate": "discountRate",
    "nwc_percent": "nwcPercent",
    "capex_percent": "capexPercent",
    "depreciation_percent": "depreciationPercent",
}

_PERCENT_0_100 = ("cogs_margin", "opex_margin", "tax_rate", "nwc_percent", "capex_percent", "depreciation_percent")


def validate_drivers(d: DriverSet) -> None:
    for name in DRIVER_FIELDS:
        v = getattr(d, name)
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise InvalidInputError(f"{name} must be numeric", field=name)
        if not math.isfinite(v):
            raise InvalidInputError(f"{name} must be finite", field=name)
    if d.base_revenue <= 0:
        raise InvalidInputError("base revenue must be positive", field="base_revenue")
    if d.revenue_growth <= -100.0:
        raise InvalidInputError("revenue growth must be above -100%", field="revenue_growth")
    if d.discount_rate <= 0:
        raise InvalidInputError("discount rate must be positive", field="discount_rate")
    for name in _PERCENT_0_100:
        if not (0.0 <= getattr(d, name) <= 100.0):
            raise InvalidInputError(f"{name} must be between 0 and 100%", field=name)


BASE_CASE = DriverSet(
    base_revenue=1_000_000,
    revenue_growth=5,
    cogs_margin=40,
    opex_margin=30,
    tax_rate=21,
    discount_rate=10,
    nwc_percent=10,
    capex_percent=5,
    depreciation_percent=3,
)

BULL_CASE = DriverSet(
    base_revenue=1_000_000,
    revenue_growth=12,
    cogs_margin=35,
    opex_margin=25,
    tax_rate=21,
    discount_rate=10,
    nwc_percent=8,
    capex_percent=6,
    depreciation_percent=3,
)

BEAR_CASE = DriverSet(
    base_revenue=1_000_000,
    revenue_growth=-2,
    cogs_margin=55,
    opex_margin=35,
    tax_rate=25,
    discount_rate=12,
    nwc_percent=12,
    capex_percent=3,
    depreciation_percent=4,
)

# (id, display name, drivers), in startup order
PRESETS = (
    ("base", "Base Case", BASE_CASE),
    ("optimistic", "Bull Case", BULL_CASE),
    ("pessimistic", "Bear Case", BEAR_CASE),
)
