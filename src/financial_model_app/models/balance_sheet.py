from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field, confloat

from .common import YearlySeries


class AssetClass(str, Enum):
    TANGIBLE = "tangible"
    INTANGIBLE = "intangible"


class FixedAsset(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    name: str
    cost: confloat(ge=0)
    useful_life: confloat(gt=0) = Field(..., description="Useful life in years")
    asset_class: AssetClass = AssetClass.TANGIBLE
    is_from_capitalized_payroll: bool = False


class AccountsReceivableConfig(BaseModel):
    days_linked_to_revenue: Optional[confloat(ge=0)] = Field(
        default=None,
        description="When set, applied to total revenue; otherwise each stream's ar_days is used",
    )


class AccountsPayableConfig(BaseModel):
    days_for_payment: confloat(ge=0) = 0.0


class BalanceSheetInputs(BaseModel):
    fixed_assets: List[FixedAsset] = Field(default_factory=list)
    accounts_receivable: AccountsReceivableConfig = Field(default_factory=AccountsReceivableConfig)
    accounts_payable: AccountsPayableConfig = Field(default_factory=AccountsPayableConfig)
    cash_and_bank: YearlySeries = Field(default_factory=YearlySeries)
    inventory: YearlySeries = Field(default_factory=YearlySeries)
    other_assets: YearlySeries = Field(default_factory=YearlySeries)
    other_liabilities: YearlySeries = Field(default_factory=YearlySeries)


class DepreciationSchedule(BaseModel):
    annual_depreciation: Dict[str, float]
    depreciation: YearlySeries
    net_book_value: YearlySeries


class BalanceSheetProjection(BaseModel):
    fixed_assets: YearlySeries
    depreciation: YearlySeries
    accounts_receivable: YearlySeries
    accounts_receivable_by_stream: Dict[str, YearlySeries] = Field(default_factory=dict)
    accounts_payable: YearlySeries
    cash_and_bank: YearlySeries
    inventory: YearlySeries
    other_assets: YearlySeries
    other_liabilities: YearlySeries
    total_assets: YearlySeries
    total_liabilities: YearlySeries
    equity: YearlySeries
