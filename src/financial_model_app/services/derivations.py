"""Spreadsheet-style derivations over a financial model.

Every function here is total: divisions are guarded and return 0 instead of
raising, so a half-filled model still produces a complete set of metrics.
Values are returned at full precision; rounding happens when result records
are assembled.
"""
from __future__ import annotations

import math
from typing import Dict, Iterable, List, Tuple

from ..models.balance_sheet import DepreciationSchedule, FixedAsset
from ..models.common import Assumptions, YearlySeries, round_amount, sum_series
from ..models.costs import CostStructure, MarketingPlan
from ..models.financing import Loan, LoanType, TaxationSettings, ZakatMethod
from ..models.funding import AllocatedFunds, FundingPlan, FundingSummary
from ..models.headcount import Employee
from ..models.results import CustomerEconomics
from ..models.revenue import RevenueStream


def safe_divide(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def percentage_of(part: float, whole: float) -> float:
    """Return ``part / whole * 100``, or 0 when ``whole`` is 0."""
    if whole == 0:
        return 0.0
    return part / whole * 100


def annual_depreciation(asset: FixedAsset) -> float:
    if asset.useful_life <= 0:
        return 0.0
    return asset.cost / asset.useful_life


def depreciation_schedule(assets: Iterable[FixedAsset]) -> DepreciationSchedule:
    assets = list(assets)
    per_asset = {asset.id: annual_depreciation(asset) for asset in assets}
    yearly_charge = sum(per_asset.values())

    def net_book_value(year: int) -> float:
        # Floored for the whole portfolio, not per asset.
        total = sum(asset.cost - per_asset[asset.id] * year for asset in assets)
        return max(0.0, total)

    return DepreciationSchedule(
        annual_depreciation={asset_id: round_amount(value) for asset_id, value in per_asset.items()},
        depreciation=YearlySeries(year1=yearly_charge, year2=yearly_charge, year3=yearly_charge).rounded(),
        net_book_value=YearlySeries.from_function(net_book_value).rounded(),
    )


def day_count_balance(aggregate: float, days: float, basis: float = 365.0) -> float:
    return safe_divide(aggregate * days, basis)


def total_revenue(streams: Iterable[RevenueStream]) -> YearlySeries:
    return sum_series(streams)


def receivables_by_stream(streams: Iterable[RevenueStream], basis: float) -> Dict[str, YearlySeries]:
    balances: Dict[str, YearlySeries] = {}
    for stream in streams:
        balances[stream.name] = stream.map(lambda revenue, days=stream.ar_days: day_count_balance(revenue, days, basis))
    return balances


def direct_costs(costs: CostStructure) -> Tuple[YearlySeries, Dict[str, YearlySeries]]:
    by_stream: Dict[str, YearlySeries] = {}
    for stream_name, stream_costs in costs.revenue_stream_costs.items():
        by_stream[stream_name] = sum_series([stream_costs.cogs, stream_costs.processing, stream_costs.fulfillment])
    return sum_series(by_stream.values()), by_stream


def staffing_payroll(employees: Iterable[Employee], year: int) -> float:
    return sum(employee.count * employee.salary for employee in employees if employee.year <= year)


def marketing_cost(plan: MarketingPlan, revenue: float, year: int) -> float:
    if plan.is_percentage_of_revenue:
        return revenue * (plan.percentage_of_revenue / 100)
    return plan.manual_budget.value_for(year)


def revenue_growth_rate(revenue: YearlySeries) -> float:
    if revenue.year1 == 0:
        return 0.0
    return (revenue.year3 - revenue.year1) / revenue.year1 * 100


def revenue_cagr(revenue: YearlySeries) -> float:
    # Two compounding periods between year 1 and year 3.
    if revenue.year1 <= 0 or revenue.year3 < 0:
        return 0.0
    return (math.pow(revenue.year3 / revenue.year1, 1 / 2) - 1) * 100


def customer_economics(revenue: YearlySeries, marketing: YearlySeries, assumptions: Assumptions) -> CustomerEconomics:
    customers = revenue.map(lambda value: safe_divide(value, assumptions.avg_revenue_per_customer))
    cac = marketing.combine(customers, lambda spend, acquired: safe_divide(spend, acquired) if acquired > 0 else 0.0)
    ltv = assumptions.avg_revenue_per_customer * assumptions.avg_customer_lifetime_years
    ltv_cac_ratio = safe_divide(ltv, cac.year3) if cac.year3 > 0 else 0.0
    return CustomerEconomics(
        customers_acquired=customers.rounded(),
        cac=cac.rounded(),
        ltv=round_amount(ltv),
        ltv_cac_ratio=round_amount(ltv_cac_ratio),
        revenue_growth_rate=round_amount(revenue_growth_rate(revenue)),
        revenue_cagr=round_amount(revenue_cagr(revenue)),
    )


def loan_interest(loan: Loan, year: int) -> float:
    if year < loan.start_year:
        return 0.0
    annual_rate = loan.interest_rate / 100
    if loan.type == LoanType.CONVERTIBLE_NOTE or loan.is_interest_only:
        return loan.principal_amount * annual_rate
    if loan.term_months <= 0:
        return 0.0
    years_active = year - loan.start_year + 1
    remaining_share = max(0.0, (loan.term_months - (years_active - 1) * 12) / loan.term_months)
    return loan.principal_amount * remaining_share * annual_rate


def interest_expense(loans: Iterable[Loan]) -> YearlySeries:
    loans = list(loans)
    return YearlySeries.from_function(lambda year: sum(loan_interest(loan, year) for loan in loans))


def loan_payment_amount(loan: Loan) -> float:
    """Payment due each period under the loan's payment frequency.

    Interest-only loans and convertible notes pay interest only. Other loans
    amortize over ``term_months`` with level payments; a loan without a term
    has no scheduled payment.
    """
    periods = loan.payment_frequency.periods_per_year
    rate = loan.interest_rate / 100 / periods
    if loan.is_interest_only or loan.type == LoanType.CONVERTIBLE_NOTE:
        return loan.principal_amount * rate
    installments = loan.term_months * periods / 12
    if installments <= 0:
        return 0.0
    compound = (1 + rate) ** installments
    if compound == 1:
        return loan.principal_amount / installments
    return loan.principal_amount * rate * compound / (compound - 1)


def loan_payments(loan: Loan, year: int) -> float:
    """Total paid on ``loan`` during model ``year``.

    Payments start after the grace period and stop when the term runs out.
    Loans without a term keep paying through year 3.
    """
    if year < loan.start_year:
        return 0.0
    months_per_period = 12 / loan.payment_frequency.periods_per_year
    first_month = (loan.start_year - 1) * 12 + loan.grace_period_months
    last_month = year * 12
    if loan.term_months > 0:
        last_month = min(last_month, first_month + loan.term_months)
    months_paid = last_month - max(first_month, (year - 1) * 12)
    if months_paid <= 0:
        return 0.0
    return loan_payment_amount(loan) * (months_paid / months_per_period)


def debt_service(loans: Iterable[Loan]) -> YearlySeries:
    loans = list(loans)
    return YearlySeries.from_function(lambda year: sum(loan_payments(loan, year) for loan in loans))


def income_tax(taxation: TaxationSettings, profit_before_tax: float) -> float:
    if not taxation.income_tax.enabled or profit_before_tax <= 0:
        return 0.0
    return profit_before_tax * (taxation.income_tax.corporate_rate / 100)


def zakat(taxation: TaxationSettings, profit_before_tax: float, zakatable_assets: float) -> float:
    settings = taxation.zakat
    if not settings.enabled:
        return 0.0
    if settings.calculation_method == ZakatMethod.PROFIT:
        return profit_before_tax * (settings.rate / 100) if profit_before_tax > 0 else 0.0
    return zakatable_assets * (settings.rate / 100)


def funding_summary(plan: FundingPlan, cash_flow: YearlySeries | None = None) -> FundingSummary:
    """Allocate the raise, estimate runway and look for a funding gap.

    ``cash_flow`` is the yearly operating result added to the raise to get the
    cumulative cash position; the lowest position below zero is the extra
    funding the plan needs.
    """
    allocations: List[AllocatedFunds] = [
        AllocatedFunds(
            category=item.category,
            percentage=item.percentage,
            amount=round_amount(plan.total_funding * item.percentage / 100),
        )
        for item in plan.use_of_funds
    ]
    allocated = sum(item.percentage for item in plan.use_of_funds)
    months = safe_divide(plan.total_funding, plan.burn_rate)
    runway = math.floor(months) if math.isfinite(months) else 0

    position = plan.total_funding
    positions = []
    for value in (cash_flow if cash_flow is not None else YearlySeries()).values():
        position += value
        positions.append(position)
    funding_gap = min(positions)
    return FundingSummary(
        allocations=allocations,
        unallocated_percentage=round_amount(100 - allocated),
        runway_months=runway,
        cumulative_cash_position=YearlySeries.from_values(positions).rounded(),
        funding_gap=round_amount(funding_gap),
        additional_funding_needed=round_amount(-funding_gap if funding_gap < 0 else 0.0),
    )
