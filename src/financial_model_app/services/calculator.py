from __future__ import annotations

from typing import Dict, Tuple

from ..core.logging import get_logger
from ..models.balance_sheet import BalanceSheetProjection
from ..models.common import YEARS, YearlySeries, sum_series
from ..models.costs import OperatingCostBreakdown
from ..models.financial_model import FinancialModel
from ..models.results import IncomeStatement, Margins, ModelResult
from ..models.revenue import RevenueSummary
from . import derivations
from .valuation import assess_risk, build_valuation

logger = get_logger(__name__)


class ModelCalculator:
    def run(self, model: FinancialModel) -> ModelResult:
        revenue = derivations.total_revenue(model.revenue_streams)
        direct_costs, direct_by_stream = derivations.direct_costs(model.costs)
        operating = self._compute_operating_costs(model, revenue)
        operational_expenses = operating["total"]

        gross_profit = revenue.combine(direct_costs, lambda rev, cost: rev - cost)
        ebitda = gross_profit.combine(operational_expenses, lambda gross, opex: gross - opex)

        balance_sheet = self._compute_balance_sheet(model, revenue, direct_costs, operational_expenses)
        income_statement = self._compute_income_statement(
            model, revenue, direct_costs, gross_profit, operational_expenses, ebitda, balance_sheet
        )
        margins = Margins(
            gross_margin=gross_profit.combine(revenue, derivations.percentage_of).rounded(),
            operating_margin=ebitda.combine(revenue, derivations.percentage_of).rounded(),
            net_margin=income_statement.net_profit.combine(revenue, derivations.percentage_of).rounded(),
        )
        customer_economics = derivations.customer_economics(revenue, operating["marketing_cost"], model.assumptions)
        risk_level = assess_risk(revenue, income_statement.net_profit.year3)
        valuation = build_valuation(revenue.year3, ebitda.year3, model.valuation, model.assumptions, risk_level)

        logger.debug(
            "Derived model for %s: revenue=%s ebitda=%s",
            model.company.name,
            revenue.values(),
            ebitda.values(),
        )
        return ModelResult(
            revenue=RevenueSummary(
                total_revenue=revenue.rounded(),
                by_stream={stream.name: YearlySeries.from_values(stream.values()).rounded() for stream in model.revenue_streams},
            ),
            operating_costs=OperatingCostBreakdown(**{name: series.rounded() for name, series in operating.items()}),
            direct_costs_by_stream={name: series.rounded() for name, series in direct_by_stream.items()},
            income_statement=income_statement,
            margins=margins,
            customer_economics=customer_economics,
            balance_sheet=balance_sheet,
            debt_service=derivations.debt_service(model.loans).rounded(),
            funding=derivations.funding_summary(model.funding, income_statement.net_profit),
            valuation=valuation,
        )

    def _compute_operating_costs(self, model: FinancialModel, revenue: YearlySeries) -> Dict[str, YearlySeries]:
        payroll = YearlySeries.from_function(lambda year: derivations.staffing_payroll(model.employees, year))
        team = sum_series(model.costs.team).combine(payroll, lambda lines, staff: lines + staff)
        admin = sum_series(model.costs.admin)
        marketing = YearlySeries.from_function(
            lambda year: derivations.marketing_cost(model.costs.marketing, revenue.value_for(year), year)
        )
        return {
            "staffing_payroll": payroll,
            "team_costs": team,
            "admin_costs": admin,
            "marketing_cost": marketing,
            "total": sum_series([team, admin, marketing]),
        }

    def _compute_balance_sheet(
        self,
        model: FinancialModel,
        revenue: YearlySeries,
        direct_costs: YearlySeries,
        operational_expenses: YearlySeries,
    ) -> BalanceSheetProjection:
        inputs = model.balance_sheet
        basis = model.assumptions.day_count_basis
        schedule = derivations.depreciation_schedule(inputs.fixed_assets)

        receivables, receivables_by_stream = self._compute_receivables(model, revenue)
        expenses = direct_costs.combine(operational_expenses, lambda direct, opex: direct + opex)
        payables = expenses.map(
            lambda total: derivations.day_count_balance(total, inputs.accounts_payable.days_for_payment, basis)
        )

        total_assets = sum_series(
            [inputs.cash_and_bank, receivables, inputs.inventory, schedule.net_book_value, inputs.other_assets]
        )
        total_liabilities = sum_series([payables, inputs.other_liabilities])
        return BalanceSheetProjection(
            fixed_assets=schedule.net_book_value,
            depreciation=schedule.depreciation,
            accounts_receivable=receivables.rounded(),
            accounts_receivable_by_stream={name: series.rounded() for name, series in receivables_by_stream.items()},
            accounts_payable=payables.rounded(),
            cash_and_bank=inputs.cash_and_bank.rounded(),
            inventory=inputs.inventory.rounded(),
            other_assets=inputs.other_assets.rounded(),
            other_liabilities=inputs.other_liabilities.rounded(),
            total_assets=total_assets.rounded(),
            total_liabilities=total_liabilities.rounded(),
            equity=total_assets.combine(total_liabilities, lambda assets, liabilities: assets - liabilities).rounded(),
        )

    def _compute_receivables(
        self,
        model: FinancialModel,
        revenue: YearlySeries,
    ) -> Tuple[YearlySeries, Dict[str, YearlySeries]]:
        basis = model.assumptions.day_count_basis
        days = model.balance_sheet.accounts_receivable.days_linked_to_revenue
        if days is not None:
            return revenue.map(lambda total: derivations.day_count_balance(total, days, basis)), {}
        by_stream = derivations.receivables_by_stream(model.revenue_streams, basis)
        return sum_series(by_stream.values()), by_stream

    def _compute_income_statement(
        self,
        model: FinancialModel,
        revenue: YearlySeries,
        direct_costs: YearlySeries,
        gross_profit: YearlySeries,
        operational_expenses: YearlySeries,
        ebitda: YearlySeries,
        balance_sheet: BalanceSheetProjection,
    ) -> IncomeStatement:
        interest = derivations.interest_expense(model.loans)
        profit_before_tax = ebitda.combine(interest, lambda earnings, cost: earnings - cost)
        income_tax = profit_before_tax.map(lambda pbt: derivations.income_tax(model.taxation, pbt))
        zakat = YearlySeries.from_values(
            derivations.zakat(
                model.taxation,
                profit_before_tax.value_for(year),
                balance_sheet.cash_and_bank.value_for(year)
                + balance_sheet.accounts_receivable.value_for(year)
                + balance_sheet.inventory.value_for(year),
            )
            for year in YEARS
        )
        net_profit = YearlySeries.from_values(
            pbt - tax - levy for pbt, tax, levy in zip(profit_before_tax.values(), income_tax.values(), zakat.values())
        )
        return IncomeStatement(
            revenue=revenue.rounded(),
            direct_costs=direct_costs.rounded(),
            gross_profit=gross_profit.rounded(),
            operational_expenses=operational_expenses.rounded(),
            ebitda=ebitda.rounded(),
            interest_expense=interest.rounded(),
            profit_before_tax=profit_before_tax.rounded(),
            income_tax=income_tax.rounded(),
            zakat=zakat.rounded(),
            net_profit=net_profit.rounded(),
        )
