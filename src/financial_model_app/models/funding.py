from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field, confloat

from .common import YearlySeries


class FundAllocation(BaseModel):
    category: str
    percentage: confloat(ge=0, le=100)


class FundingPlan(BaseModel):
    total_funding: confloat(ge=0) = 0.0
    burn_rate: confloat(ge=0) = Field(0.0, description="Monthly cash burn")
    use_of_funds: List[FundAllocation] = Field(default_factory=list)


class AllocatedFunds(BaseModel):
    category: str
    percentage: float
    amount: float


class FundingSummary(BaseModel):
    allocations: List[AllocatedFunds]
    unallocated_percentage: float
    runway_months: int
    cumulative_cash_position: YearlySeries
    funding_gap: float = Field(..., description="Lowest cumulative cash position over the three years")
    additional_funding_needed: float
