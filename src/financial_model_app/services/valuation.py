from __future__ import annotations

from typing import List, Tuple

from ..models.common import Assumptions, YearlySeries, round_amount
from ..models.valuation import (
    DCFParameters,
    DiscountedCashFlowResult,
    FootballField,
    FootballFieldMethod,
    MultipleRange,
    RiskAssessment,
    RiskLevel,
    ValuationInputs,
    ValuationMethod,
    ValuationResult,
    ValueRange,
)


def multiple_valuation(base: float, multiples: MultipleRange) -> ValueRange:
    return ValueRange(low=base * multiples.low, high=base * multiples.high)


def gordon_terminal_value(final_cash_flow: float, discount_rate: float, terminal_growth_rate: float) -> float:
    """Perpetuity value of ``final_cash_flow``; rates are percentages.

    Returns 0 when the discount rate does not exceed the growth rate, since the
    perpetuity has no finite value there. ``DCFParameters`` rejects such input
    up front; the guard keeps this function total for unvalidated data.
    """
    spread = discount_rate / 100 - terminal_growth_rate / 100
    if spread <= 0:
        return 0.0
    return final_cash_flow * (1 + terminal_growth_rate / 100) / spread


def present_value(amount: float, rate: float, periods: int) -> float:
    """Discount ``amount`` back ``periods`` years at ``rate`` (a fraction).

    A rate at or below -100% has no meaningful discount factor and yields 0.
    """
    if 1 + rate <= 0:
        return 0.0
    factor = (1 + rate) ** periods
    if factor == 0:
        return 0.0
    return amount / factor


def project_cash_flows(starting_cash_flow: float, years: int, base_growth: float, decay: float) -> List[float]:
    cash_flows: List[float] = []
    cash_flow = starting_cash_flow
    for i in range(1, years + 1):
        cash_flow *= 1 + base_growth / decay ** i
        cash_flows.append(cash_flow)
    return cash_flows


def discounted_cash_flow(
    latest_ebitda: float,
    params: DCFParameters,
    assumptions: Assumptions | None = None,
) -> DiscountedCashFlowResult:
    assumptions = assumptions or Assumptions()
    rate = params.discount_rate / 100
    cash_flows = project_cash_flows(latest_ebitda, params.years, assumptions.dcf_base_growth, assumptions.dcf_growth_decay)
    present_values = [present_value(cf, rate, i) for i, cf in enumerate(cash_flows, start=1)]
    terminal_value = gordon_terminal_value(cash_flows[-1], params.discount_rate, params.terminal_growth_rate)
    pv_terminal = present_value(terminal_value, rate, params.years)
    pv_cash_flows = sum(present_values)
    return DiscountedCashFlowResult(
        valuation=round_amount(pv_cash_flows + pv_terminal),
        pv_of_cash_flows=round_amount(pv_cash_flows),
        pv_of_terminal_value=round_amount(pv_terminal),
        terminal_value=round_amount(terminal_value),
        projected_cash_flows=[round_amount(cf) for cf in cash_flows],
        present_values=[round_amount(pv) for pv in present_values],
    )


def football_field(ranges: List[Tuple[ValuationMethod, float, float]]) -> FootballField:
    # A negative base flips a multiple range, so each bar is reordered first.
    ranges = [(method, min(low, high), max(low, high)) for method, low, high in ranges]
    overall_low = min(low for _, low, _ in ranges)
    overall_high = max(high for _, _, high in ranges)
    span = overall_high - overall_low
    methods = []
    for method, low, high in ranges:
        if span == 0:
            position, width = 0.0, 0.0
        else:
            position = (low - overall_low) / span
            width = (high - low) / span
        methods.append(
            FootballFieldMethod(
                method=method,
                low=round_amount(low),
                high=round_amount(high),
                position=round(position, 4),
                width=round(width, 4),
            )
        )
    return FootballField(
        methods=methods,
        overall_low=round_amount(overall_low),
        overall_high=round_amount(overall_high),
        midpoint=round_amount((overall_low + overall_high) / 2),
    )


def assess_risk(revenue: YearlySeries, net_profit: float) -> RiskLevel:
    """Grade the plan from its year-3 net margin and revenue trajectory."""
    margin = net_profit / revenue.year3 * 100 if revenue.year3 > 0 else 0.0
    consistent_growth = revenue.year3 > revenue.year2 > revenue.year1
    if margin > 20 and consistent_growth and revenue.year3 > 1_000_000:
        return RiskLevel.LOW
    if margin > 10 and consistent_growth:
        return RiskLevel.MEDIUM
    if margin > 0:
        return RiskLevel.MEDIUM_HIGH
    return RiskLevel.HIGH


def risk_adjusted_valuation(latest_revenue: float, inputs: ValuationInputs, level: RiskLevel) -> RiskAssessment:
    industry_valuation = latest_revenue * inputs.industry_multiple
    return RiskAssessment(
        level=level,
        adjustment=level.adjustment,
        industry_multiple=inputs.industry_multiple,
        industry_valuation=round_amount(industry_valuation),
        risk_adjusted_valuation=round_amount(industry_valuation * level.adjustment),
    )


def build_valuation(
    latest_revenue: float,
    latest_ebitda: float,
    inputs: ValuationInputs,
    assumptions: Assumptions | None = None,
    risk_level: RiskLevel | None = None,
) -> ValuationResult:
    assumptions = assumptions or Assumptions()
    revenue_range = multiple_valuation(latest_revenue, inputs.revenue_multiples)
    ebitda_range = multiple_valuation(latest_ebitda, inputs.ebitda_multiples)
    dcf = discounted_cash_flow(latest_ebitda, inputs.dcf, assumptions)
    spread = assumptions.dcf_range_spread
    field = football_field(
        [
            (ValuationMethod.REVENUE_MULTIPLE, revenue_range.low, revenue_range.high),
            (ValuationMethod.EBITDA_MULTIPLE, ebitda_range.low, ebitda_range.high),
            (ValuationMethod.DCF, dcf.valuation * (1 - spread), dcf.valuation * (1 + spread)),
        ]
    )
    return ValuationResult(
        latest_revenue=round_amount(latest_revenue),
        latest_ebitda=round_amount(latest_ebitda),
        revenue_multiple=ValueRange(low=round_amount(revenue_range.low), high=round_amount(revenue_range.high)),
        ebitda_multiple=ValueRange(low=round_amount(ebitda_range.low), high=round_amount(ebitda_range.high)),
        dcf=dcf,
        football_field=field,
        risk=risk_adjusted_valuation(latest_revenue, inputs, risk_level) if risk_level is not None else None,
    )
