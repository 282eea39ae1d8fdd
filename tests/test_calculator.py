from __future__ import annotations

import math

import pytest
from pydantic import ValidationError

from financial_model_app.models.balance_sheet import (
    AccountsPayableConfig,
    AccountsReceivableConfig,
    BalanceSheetInputs,
    FixedAsset,
)
from financial_model_app.models.common import Assumptions, YearlySeries, round_amount
from financial_model_app.models.costs import CostLine, CostStructure, DirectCosts, MarketingPlan
from financial_model_app.models.financial_model import FinancialModel
from financial_model_app.models.financing import (
    IncomeTaxSettings,
    Loan,
    LoanType,
    PaymentFrequency,
    TaxationSettings,
    ZakatMethod,
    ZakatSettings,
)
from financial_model_app.models.funding import FundAllocation, FundingPlan
from financial_model_app.models.headcount import Employee
from financial_model_app.models.revenue import RevenueStream
from financial_model_app.models.valuation import RiskLevel
from financial_model_app.sample_data import build_sample_model
from financial_model_app.services import derivations
from financial_model_app.services.calculator import ModelCalculator


def _model(**sections) -> FinancialModel:
    return FinancialModel(**sections)


def test_sample_model_generates_results():
    model = build_sample_model()
    result = ModelCalculator().run(model)

    statement = result.income_statement
    assert statement.revenue.values() == (750_000, 1_700_000, 2_850_000)
    assert statement.direct_costs.year1 == 165_000
    assert result.operating_costs.staffing_payroll.year1 == 470_000
    assert result.operating_costs.team_costs.year1 == 509_000
    assert result.operating_costs.admin_costs.year1 == 246_600
    assert result.operating_costs.marketing_cost.year1 == 112_500
    assert statement.ebitda.year1 == -283_100
    assert statement.income_tax.year1 == 0
    assert statement.ebitda.year3 == 986_300
    assert statement.income_tax.year3 == 197_260
    assert statement.net_profit.year3 == 789_040
    assert result.funding.runway_months == 22
    assert result.funding.unallocated_percentage == 0
    assert result.valuation.dcf.valuation > 0


def test_sample_receivables_on_360_day_basis():
    model = build_sample_model().model_copy(update={"assumptions": Assumptions(day_count_basis=360)})
    result = ModelCalculator().run(model)

    by_stream = result.balance_sheet.accounts_receivable_by_stream
    assert by_stream["Educational Platform Subscriptions"].year1 == 50_000
    assert by_stream["Corporate Training Programs"].year1 == 18_750
    assert result.balance_sheet.accounts_receivable.year1 == 68_750


def test_depreciation_straight_line():
    asset = FixedAsset(name="Server", cost=10_000, useful_life=5)
    schedule = derivations.depreciation_schedule([asset])

    assert schedule.annual_depreciation[asset.id] == 2_000
    assert schedule.depreciation.values() == (2_000, 2_000, 2_000)
    assert schedule.net_book_value.values() == (8_000, 6_000, 4_000)


def test_net_book_value_floors_at_zero():
    asset = FixedAsset(name="Laptop", cost=3_000, useful_life=2)
    schedule = derivations.depreciation_schedule([asset])

    assert schedule.net_book_value.values() == (1_500, 0, 0)


def test_net_book_value_floor_applies_to_portfolio():
    short = FixedAsset(name="Phone", cost=1_000, useful_life=1)
    long = FixedAsset(name="Fit-out", cost=10_000, useful_life=10)
    schedule = derivations.depreciation_schedule([short, long])

    assert schedule.net_book_value.values() == (9_000, 7_000, 5_000)


def test_margins_and_ebitda():
    model = _model(
        revenue_streams=[RevenueStream(name="Core", year3=1_000_000)],
        costs=CostStructure(
            revenue_stream_costs={"Core": DirectCosts(cogs=YearlySeries(year3=300_000))},
            admin=[CostLine(name="Operations", year3=400_000)],
        ),
    )
    result = ModelCalculator().run(model)

    assert result.income_statement.ebitda.year3 == 300_000
    assert result.margins.gross_margin.year3 == 70
    assert result.margins.operating_margin.year3 == 30


def test_zero_revenue_margins_are_zero():
    model = _model(costs=CostStructure(admin=[CostLine(name="Rent", year1=1_000, year2=1_000, year3=1_000)]))
    result = ModelCalculator().run(model)

    assert result.margins.gross_margin.values() == (0, 0, 0)
    assert result.margins.operating_margin.values() == (0, 0, 0)
    assert result.margins.net_margin.values() == (0, 0, 0)
    assert result.income_statement.ebitda.year1 == -1_000


def test_revenue_growth_and_cagr():
    revenue = YearlySeries(year1=100_000, year2=150_000, year3=225_000)

    assert derivations.revenue_growth_rate(revenue) == pytest.approx(125)
    assert derivations.revenue_cagr(revenue) == pytest.approx(50)
    assert derivations.revenue_growth_rate(YearlySeries(year3=10)) == 0
    assert derivations.revenue_cagr(YearlySeries(year3=10)) == 0


def test_customer_economics_guards_zero_customers():
    economics = derivations.customer_economics(YearlySeries(), YearlySeries(year3=5_000), Assumptions())

    assert economics.cac.values() == (0, 0, 0)
    assert economics.ltv == 3_000
    assert economics.ltv_cac_ratio == 0


def test_customer_economics_uses_marketing_spend():
    revenue = YearlySeries(year1=100_000, year2=200_000, year3=300_000)
    marketing = YearlySeries(year1=10_000, year2=20_000, year3=60_000)
    economics = derivations.customer_economics(revenue, marketing, Assumptions())

    assert economics.customers_acquired.values() == (100, 200, 300)
    assert economics.cac.year3 == 200
    assert economics.ltv_cac_ratio == 15


def test_payroll_counts_employees_from_their_start_year():
    employees = [
        Employee(role="Engineer", count=2, salary=50_000, year=1),
        Employee(role="Designer", salary=40_000, year=2),
    ]

    assert derivations.staffing_payroll(employees, 1) == 100_000
    assert derivations.staffing_payroll(employees, 2) == 140_000
    assert derivations.staffing_payroll(employees, 3) == 140_000


def test_marketing_budget_modes():
    manual = MarketingPlan(manual_budget=YearlySeries(year1=5_000))
    linked = MarketingPlan(is_percentage_of_revenue=True, percentage_of_revenue=10, manual_budget=YearlySeries(year1=5_000))

    assert derivations.marketing_cost(manual, 100_000, 1) == 5_000
    assert derivations.marketing_cost(linked, 100_000, 1) == 10_000


def test_receivables_from_aggregate_days_and_payables():
    model = _model(
        revenue_streams=[RevenueStream(name="Core", year1=365_000, ar_days=10)],
        costs=CostStructure(admin=[CostLine(name="Rent", year1=365_000)]),
        balance_sheet=BalanceSheetInputs(
            accounts_receivable=AccountsReceivableConfig(days_linked_to_revenue=73),
            accounts_payable=AccountsPayableConfig(days_for_payment=36.5),
            cash_and_bank=YearlySeries(year1=20_000),
            other_liabilities=YearlySeries(year1=1_500),
        ),
    )
    balance_sheet = ModelCalculator().run(model).balance_sheet

    assert balance_sheet.accounts_receivable.year1 == 73_000
    assert balance_sheet.accounts_receivable_by_stream == {}
    assert balance_sheet.accounts_payable.year1 == 36_500
    assert balance_sheet.total_assets.year1 == 93_000
    assert balance_sheet.total_liabilities.year1 == 38_000
    assert balance_sheet.equity.year1 == 55_000


def test_receivables_per_stream_days():
    model = _model(revenue_streams=[RevenueStream(name="Core", year1=365_000, ar_days=10)])
    balance_sheet = ModelCalculator().run(model).balance_sheet

    assert balance_sheet.accounts_receivable.year1 == 10_000
    assert balance_sheet.accounts_receivable_by_stream["Core"].year1 == 10_000


def test_loan_interest_schedules():
    term = Loan(name="Bank", principal_amount=120_000, interest_rate=10, term_months=24)
    note = Loan(name="Note", type=LoanType.CONVERTIBLE_NOTE, principal_amount=100_000, interest_rate=5, start_year=2)

    assert derivations.interest_expense([term]).values() == pytest.approx((12_000, 6_000, 0))
    assert derivations.interest_expense([note]).values() == pytest.approx((0, 5_000, 5_000))


def test_income_statement_applies_interest_and_taxes():
    model = _model(
        revenue_streams=[RevenueStream(name="Core", year1=200_000)],
        loans=[Loan(name="Bank", principal_amount=100_000, interest_rate=10, term_months=36, is_interest_only=True)],
        taxation=TaxationSettings(
            income_tax=IncomeTaxSettings(enabled=True, corporate_rate=20),
            zakat=ZakatSettings(enabled=True, rate=2.5, calculation_method=ZakatMethod.PROFIT),
        ),
    )
    statement = ModelCalculator().run(model).income_statement

    assert statement.interest_expense.year1 == 10_000
    assert statement.profit_before_tax.year1 == 190_000
    assert statement.income_tax.year1 == 38_000
    assert statement.zakat.year1 == 4_750
    assert statement.net_profit.year1 == 147_250
    assert statement.income_tax.year2 == 0


def test_net_worth_zakat_uses_liquid_assets():
    model = _model(
        balance_sheet=BalanceSheetInputs(
            cash_and_bank=YearlySeries(year1=100_000),
            inventory=YearlySeries(year1=20_000),
        ),
        taxation=TaxationSettings(zakat=ZakatSettings(enabled=True, rate=2.5)),
    )
    statement = ModelCalculator().run(model).income_statement

    assert statement.zakat.year1 == 3_000
    assert statement.net_profit.year1 == -3_000


def test_funding_allocations_and_runway():
    plan = FundingPlan(
        total_funding=500_000,
        burn_rate=30_000,
        use_of_funds=[FundAllocation(category="Product", percentage=60), FundAllocation(category="Sales", percentage=25)],
    )
    summary = derivations.funding_summary(plan)

    assert [item.amount for item in summary.allocations] == [300_000, 125_000]
    assert summary.unallocated_percentage == 15
    assert summary.runway_months == 16
    assert derivations.funding_summary(FundingPlan(total_funding=1_000)).runway_months == 0
    assert derivations.funding_summary(FundingPlan(total_funding=1_000, burn_rate=1e-320)).runway_months == 0


def test_run_is_deterministic_and_leaves_input_untouched():
    model = build_sample_model()
    snapshot = model.model_dump()
    calculator = ModelCalculator()

    first = calculator.run(model)
    second = calculator.run(model)

    assert first.model_dump() == second.model_dump()
    assert model.model_dump() == snapshot


def test_empty_model_runs():
    result = ModelCalculator().run(FinancialModel())

    assert result.income_statement.net_profit.values() == (0, 0, 0)
    assert result.valuation.dcf.valuation == 0
    assert result.customer_economics.ltv_cac_ratio == 0


def test_sample_model_risk_and_funding_position():
    result = ModelCalculator().run(build_sample_model())

    assert result.valuation.risk.level == RiskLevel.LOW
    assert result.valuation.risk.industry_valuation == 22_800_000
    assert result.valuation.risk.risk_adjusted_valuation == 22_800_000
    net_profit = result.income_statement.net_profit
    assert result.funding.cumulative_cash_position.year1 == pytest.approx(1_000_000 + net_profit.year1, abs=0.01)
    assert result.funding.cumulative_cash_position.year3 == pytest.approx(1_000_000 + net_profit.total(), abs=0.01)


def test_funding_gap_from_cumulative_cash_flow():
    plan = FundingPlan(total_funding=100_000)
    summary = derivations.funding_summary(plan, YearlySeries(year1=-150_000, year2=-50_000, year3=300_000))

    assert summary.cumulative_cash_position.values() == (-50_000, -100_000, 200_000)
    assert summary.funding_gap == -100_000
    assert summary.additional_funding_needed == 100_000


def test_no_funding_gap_when_cash_stays_positive():
    summary = derivations.funding_summary(FundingPlan(total_funding=1_000))

    assert summary.cumulative_cash_position.values() == (1_000, 1_000, 1_000)
    assert summary.funding_gap == 1_000
    assert summary.additional_funding_needed == 0


def test_empty_model_is_high_risk_with_zero_valuation():
    risk = ModelCalculator().run(FinancialModel()).valuation.risk

    assert risk.level == RiskLevel.HIGH
    assert risk.adjustment == 0.5
    assert risk.risk_adjusted_valuation == 0


def test_amortizing_loan_payments():
    loan = Loan(
        name="Bank",
        principal_amount=100_000,
        interest_rate=8,
        term_months=12,
        payment_frequency=PaymentFrequency.QUARTERLY,
    )

    assert derivations.loan_payment_amount(loan) == pytest.approx(26_262.375, abs=0.01)
    assert derivations.loan_payments(loan, 1) == pytest.approx(4 * 26_262.375, abs=0.05)
    assert derivations.loan_payments(loan, 2) == 0


def test_interest_free_loan_spreads_principal():
    loan = Loan(name="Family", principal_amount=12_000, interest_rate=0, term_months=12)

    assert derivations.loan_payment_amount(loan) == 1_000
    assert derivations.debt_service([loan]).values() == (12_000, 0, 0)


def test_grace_period_delays_payments():
    loan = Loan(name="Bank", principal_amount=12_000, interest_rate=0, term_months=12, grace_period_months=6)

    assert derivations.debt_service([loan]).values() == (6_000, 6_000, 0)


def test_interest_only_and_convertible_payments():
    interest_only = Loan(
        name="Bridge",
        principal_amount=50_000,
        interest_rate=6,
        is_interest_only=True,
        start_year=2,
        payment_frequency=PaymentFrequency.ANNUALLY,
    )
    note = Loan(name="Note", type=LoanType.CONVERTIBLE_NOTE, principal_amount=10_000, interest_rate=12)

    assert derivations.debt_service([interest_only]).values() == pytest.approx((0, 3_000, 3_000))
    assert derivations.debt_service([note]).values() == pytest.approx((1_200, 1_200, 1_200))
    assert note.conversion_details.discount_rate == 20
    assert not note.conversion_details.automatic_conversion
    assert interest_only.conversion_details is None


def test_loan_without_term_has_no_scheduled_payments():
    loan = Loan(name="Bank", principal_amount=10_000, interest_rate=5)

    assert derivations.loan_payment_amount(loan) == 0
    assert derivations.debt_service([loan]).values() == (0, 0, 0)


def test_debt_service_in_model_result():
    model = _model(loans=[Loan(name="Family", principal_amount=12_000, interest_rate=0, term_months=24)])

    assert ModelCalculator().run(model).debt_service.values() == (6_000, 6_000, 0)


@pytest.mark.parametrize("field, value", [("interest_rate", 1_001), ("term_months", 601), ("grace_period_months", 37)])
def test_loan_terms_are_bounded(field, value):
    with pytest.raises(ValidationError):
        Loan(name="Bank", principal_amount=1_000, interest_rate=5, **{field: value})


def test_duplicate_stream_names_are_rejected():
    with pytest.raises(ValidationError, match="unique"):
        _model(revenue_streams=[RevenueStream(name="Core", year1=1), RevenueStream(name="Core", year1=2)])


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")])
def test_non_finite_inputs_are_rejected(value):
    with pytest.raises(ValidationError, match="finite"):
        _model(revenue_streams=[RevenueStream(name="Core", year1=value)])


def test_round_amount_handles_huge_and_non_finite_values():
    assert round_amount(1e26) == 1e26
    assert round_amount(1.7e308) == 1.7e308
    assert round_amount(123_456_789_012_345_678.125) == 123_456_789_012_345_678.125
    assert round_amount(float("inf")) == float("inf")
    assert math.isnan(round_amount(float("nan")))


def test_huge_revenue_runs_without_error():
    model = _model(revenue_streams=[RevenueStream(name="Core", year1=1e30, year2=2e30, year3=3e30)])
    result = ModelCalculator().run(model)

    assert result.income_statement.revenue.year3 == 3e30
    assert result.valuation.revenue_multiple.high == pytest.approx(3e30 * 7.5)
