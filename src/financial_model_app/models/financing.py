from __future__ import annotations

from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field, conint, confloat, model_validator


class LoanType(str, Enum):
    TERM = "term"
    LINE_OF_CREDIT = "line-of-credit"
    CONVERTIBLE_NOTE = "convertible-note"


class PaymentFrequency(str, Enum):
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUALLY = "annually"

    @property
    def periods_per_year(self) -> int:
        return {"monthly": 12, "quarterly": 4, "annually": 1}[self.value]


class ConversionDetails(BaseModel):
    discount_rate: confloat(ge=0, le=100) = Field(20.0, description="Discount to the next round price, in percent")
    valuation_cap: confloat(ge=0) = Field(0.0, description="Cap on the conversion valuation; 0 means uncapped")
    automatic_conversion: bool = False


class Loan(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    type: LoanType = LoanType.TERM
    principal_amount: confloat(ge=0)
    interest_rate: confloat(ge=0, le=1000) = Field(..., description="Annual rate in percent")
    term_months: conint(ge=0, le=600) = 0
    start_year: conint(ge=1, le=3) = 1
    is_interest_only: bool = False
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    grace_period_months: conint(ge=0, le=36) = Field(0, description="Months after the start before payments begin")
    conversion_details: Optional[ConversionDetails] = None

    @model_validator(mode="after")
    def default_conversion_terms(self) -> "Loan":
        if self.type == LoanType.CONVERTIBLE_NOTE and self.conversion_details is None:
            self.conversion_details = ConversionDetails()
        return self


class ZakatMethod(str, Enum):
    NET_WORTH = "net-worth"
    PROFIT = "profit"


class IncomeTaxSettings(BaseModel):
    enabled: bool = False
    corporate_rate: confloat(ge=0) = 0.0


class ZakatSettings(BaseModel):
    enabled: bool = False
    rate: confloat(ge=0) = 0.0
    calculation_method: ZakatMethod = ZakatMethod.NET_WORTH


class TaxationSettings(BaseModel):
    income_tax: IncomeTaxSettings = Field(default_factory=IncomeTaxSettings)
    zakat: ZakatSettings = Field(default_factory=ZakatSettings)
