from __future__ import annotations

from typing import Dict

from pydantic import BaseModel

from .balance_sheet import BalanceSheetProjection
from .common import YearlySeries
from .costs import OperatingCostBreakdown
from .funding import FundingSummary
from .revenue import RevenueSummary
from .valuation import ValuationResult


class IncomeStatement(BaseModel):
    revenue: YearlySeries
    direct_costs: YearlySeries
    gross_profit: YearlySeries
    operational_expenses: YearlySeries
    ebitda: YearlySeries
    interest_expense: YearlySeries
    profit_before_tax: YearlySeries
    income_tax: YearlySeries
    zakat: YearlySeries
    net_profit: YearlySeries


class Margins(BaseModel):
    gross_margin: YearlySeries
    operating_margin: YearlySeries
    net_margin: YearlySeries


class CustomerEconomics(BaseModel):
    customers_acquired: YearlySeries
    cac: YearlySeries
    ltv: float
    ltv_cac_ratio: float
    revenue_growth_rate: float
    revenue_cagr: float


class ModelResult(BaseModel):
    revenue: RevenueSummary
    operating_costs: OperatingCostBreakdown
    direct_costs_by_stream: Dict[str, YearlySeries]
    income_statement: IncomeStatement
    margins: Margins
    customer_economics: CustomerEconomics
    balance_sheet: BalanceSheetProjection
    debt_service: YearlySeries
    funding: FundingSummary
    valuation: ValuationResult
