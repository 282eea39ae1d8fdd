from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, confloat, conint, field_validator, model_validator

CUSTOM_INDUSTRY = "custom"

# Price-to-revenue multiples by sector.
INDUSTRY_REVENUE_MULTIPLES: Dict[str, float] = {
    "saas": 8.0,
    "ecommerce": 3.0,
    "fintech": 6.0,
    "healthtech": 7.0,
    "marketplace": 5.0,
    "hardware": 2.0,
    "consulting": 1.5,
}


class ValuationMethod(str, Enum):
    REVENUE_MULTIPLE = "revenue_multiple"
    EBITDA_MULTIPLE = "ebitda_multiple"
    DCF = "dcf"


class RiskLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    MEDIUM_HIGH = "Medium-High"
    HIGH = "High"

    @property
    def adjustment(self) -> float:
        """Factor applied to the industry valuation."""
        return {"Low": 1.0, "Medium": 0.85, "Medium-High": 0.7, "High": 0.5}[self.value]


class MultipleRange(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    low: float
    high: float

    @model_validator(mode="after")
    def check_order(self) -> "MultipleRange":
        if self.low > self.high:
            raise ValueError(f"Multiple range low ({self.low}) must not exceed high ({self.high})")
        return self


class DCFParameters(BaseModel):
    discount_rate: float = Field(12.0, gt=-100, le=1000, description="Discount rate in percent")
    terminal_growth_rate: float = Field(
        3.0, ge=-100, le=1000, description="Perpetual growth after the projection, in percent"
    )
    years: conint(ge=1, le=50) = 5

    @model_validator(mode="after")
    def check_spread(self) -> "DCFParameters":
        # Gordon growth needs a positive spread between the two rates.
        if self.discount_rate <= self.terminal_growth_rate:
            raise ValueError(
                f"Discount rate ({self.discount_rate}%) must exceed terminal growth rate ({self.terminal_growth_rate}%)"
            )
        return self


class ValuationInputs(BaseModel):
    ebitda_multiples: MultipleRange = Field(default_factory=lambda: MultipleRange(low=12, high=18))
    revenue_multiples: MultipleRange = Field(default_factory=lambda: MultipleRange(low=5.5, high=7.5))
    dcf: DCFParameters = Field(default_factory=DCFParameters)
    industry: str = Field("saas", description="Sector preset for the headline revenue multiple, or 'custom'")
    custom_multiple: confloat(ge=0) = Field(0.0, description="Revenue multiple used when industry is 'custom'")

    @field_validator("industry")
    @classmethod
    def check_industry(cls, value: str) -> str:
        if value != CUSTOM_INDUSTRY and value not in INDUSTRY_REVENUE_MULTIPLES:
            options = ", ".join([*INDUSTRY_REVENUE_MULTIPLES, CUSTOM_INDUSTRY])
            raise ValueError(f"Unknown industry '{value}', expected one of: {options}")
        return value

    @property
    def industry_multiple(self) -> float:
        if self.industry == CUSTOM_INDUSTRY:
            return self.custom_multiple
        return INDUSTRY_REVENUE_MULTIPLES[self.industry]


class ValueRange(BaseModel):
    low: float
    high: float


class DiscountedCashFlowResult(BaseModel):
    valuation: float
    pv_of_cash_flows: float
    pv_of_terminal_value: float
    terminal_value: float
    projected_cash_flows: List[float]
    present_values: List[float]


class FootballFieldMethod(BaseModel):
    method: ValuationMethod
    low: float
    high: float
    position: float = Field(..., description="Offset of the bar as a fraction of the overall span")
    width: float = Field(..., description="Bar length as a fraction of the overall span")


class FootballField(BaseModel):
    methods: List[FootballFieldMethod]
    overall_low: float
    overall_high: float
    midpoint: float


class RiskAssessment(BaseModel):
    level: RiskLevel
    adjustment: float
    industry_multiple: float
    industry_valuation: float
    risk_adjusted_valuation: float


class ValuationResult(BaseModel):
    latest_revenue: float
    latest_ebitda: float
    revenue_multiple: ValueRange
    ebitda_multiple: ValueRange
    dcf: DiscountedCashFlowResult
    football_field: FootballField
    risk: Optional[RiskAssessment] = None
