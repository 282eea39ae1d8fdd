from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field

from .common import YearlySeries


class DirectCosts(BaseModel):
    cogs: YearlySeries = Field(default_factory=YearlySeries)
    processing: YearlySeries = Field(default_factory=YearlySeries)
    fulfillment: YearlySeries = Field(default_factory=YearlySeries)


class CostLine(YearlySeries):
    name: str


class MarketingPlan(BaseModel):
    is_percentage_of_revenue: bool = False
    percentage_of_revenue: float = 0.0
    manual_budget: YearlySeries = Field(default_factory=YearlySeries)


class CostStructure(BaseModel):
    revenue_stream_costs: Dict[str, DirectCosts] = Field(
        default_factory=dict, description="Direct costs keyed by revenue stream name"
    )
    team: List[CostLine] = Field(default_factory=list)
    admin: List[CostLine] = Field(default_factory=list)
    marketing: MarketingPlan = Field(default_factory=MarketingPlan)


class OperatingCostBreakdown(BaseModel):
    staffing_payroll: YearlySeries
    team_costs: YearlySeries
    admin_costs: YearlySeries
    marketing_cost: YearlySeries
    total: YearlySeries
