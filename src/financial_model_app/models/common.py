from __future__ import annotations

import math
from decimal import ROUND_HALF_EVEN, Decimal, localcontext
from typing import Callable, Iterable, Tuple

from pydantic import BaseModel, ConfigDict, Field, confloat

YEARS: Tuple[int, int, int] = (1, 2, 3)


def round_amount(value: float) -> float:
    """Round a derived value half-even to 2 decimals.

    Non-finite values are returned unchanged. The quantize runs with enough
    precision for any finite float, so very large amounts never raise.
    """
    value = float(value)
    if not math.isfinite(value):
        return value
    with localcontext() as ctx:
        ctx.prec = 400
        return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN))


class YearlySeries(BaseModel):
    year1: float = 0.0
    year2: float = 0.0
    year3: float = 0.0

    @classmethod
    def from_values(cls, values: Iterable[float]) -> "YearlySeries":
        year1, year2, year3 = list(values)
        return cls(year1=year1, year2=year2, year3=year3)

    @classmethod
    def from_function(cls, fn: Callable[[int], float]) -> "YearlySeries":
        return cls.from_values(fn(year) for year in YEARS)

    def value_for(self, year: int) -> float:
        if year not in YEARS:
            raise ValueError(f"Year must be one of {YEARS}, got {year}")
        return getattr(self, f"year{year}")

    def values(self) -> Tuple[float, float, float]:
        return self.year1, self.year2, self.year3

    def map(self, fn: Callable[[float], float]) -> "YearlySeries":
        return YearlySeries.from_values(fn(value) for value in self.values())

    def combine(self, other: "YearlySeries", fn: Callable[[float, float], float]) -> "YearlySeries":
        return YearlySeries.from_values(fn(a, b) for a, b in zip(self.values(), other.values()))

    def total(self) -> float:
        return sum(self.values())

    def rounded(self) -> "YearlySeries":
        return self.map(round_amount)


def sum_series(series: Iterable[YearlySeries]) -> YearlySeries:
    totals = [0.0, 0.0, 0.0]
    for item in series:
        for idx, value in enumerate(item.values()):
            totals[idx] += value
    return YearlySeries.from_values(totals)


class Assumptions(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    avg_revenue_per_customer: confloat(gt=0) = Field(1000.0, description="Average annual revenue per customer")
    avg_customer_lifetime_years: confloat(ge=0) = Field(3.0, description="Assumed customer lifetime in years")
    day_count_basis: confloat(gt=0) = Field(365.0, description="Days per year used for AR/AP balances")
    dcf_base_growth: confloat(ge=-1, le=10) = Field(0.25, description="Year-one growth applied to projected cash flows")
    dcf_growth_decay: confloat(ge=1, le=10) = Field(1.2, description="Divisor applied to the growth rate each year")
    dcf_range_spread: confloat(ge=0, lt=1) = Field(0.15, description="Band around the DCF value in the football field")


class CompanyProfile(BaseModel):
    name: str = "My Company"
    industry: str = "technology"
    currency: str = "USD"
    language: str = "English"
