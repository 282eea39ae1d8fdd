from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field, confloat

from .common import YearlySeries


class RevenueStreamType(str, Enum):
    SAAS = "saas"
    ECOMMERCE = "ecommerce"
    ADVERTISING = "advertising"
    ONE_TIME = "one-time"
    CONSULTING = "consulting"
    COMMISSION = "commission"
    FREEMIUM = "freemium"


class RevenueStream(YearlySeries):
    name: str
    type: RevenueStreamType = RevenueStreamType.SAAS
    growth_rate: float = Field(0.0, description="Expected growth in percent")
    ar_days: confloat(ge=0) = Field(0.0, description="Days of revenue outstanding as receivables")


class RevenueSummary(BaseModel):
    total_revenue: YearlySeries
    by_stream: Dict[str, YearlySeries] = Field(default_factory=dict)
