from __future__ import annotations

from .models.balance_sheet import (
    AccountsPayableConfig,
    AccountsReceivableConfig,
    AssetClass,
    BalanceSheetInputs,
    FixedAsset,
)
from .models.common import CompanyProfile, YearlySeries
from .models.costs import CostLine, CostStructure, DirectCosts, MarketingPlan
from .models.financial_model import FinancialModel
from .models.financing import IncomeTaxSettings, TaxationSettings, ZakatSettings
from .models.funding import FundAllocation, FundingPlan
from .models.headcount import Employee
from .models.revenue import RevenueStream, RevenueStreamType


def _series(year1: float, year2: float, year3: float) -> YearlySeries:
    return YearlySeries(year1=year1, year2=year2, year3=year3)


def build_sample_model() -> FinancialModel:
    """Demo ed-tech company used by the API and the tests."""
    revenue_streams = [
        RevenueStream(
            name="Educational Platform Subscriptions",
            type=RevenueStreamType.SAAS,
            year1=600_000,
            year2=1_400_000,
            year3=2_400_000,
            growth_rate=133.3,
            ar_days=30,
        ),
        RevenueStream(
            name="Corporate Training Programs",
            type=RevenueStreamType.CONSULTING,
            year1=150_000,
            year2=300_000,
            year3=450_000,
            growth_rate=100,
            ar_days=45,
        ),
    ]

    costs = CostStructure(
        revenue_stream_costs={
            "Educational Platform Subscriptions": DirectCosts(
                cogs=_series(60_000, 140_000, 240_000),
                processing=_series(18_000, 42_000, 72_000),
                fulfillment=_series(30_000, 70_000, 120_000),
            ),
            "Corporate Training Programs": DirectCosts(
                cogs=_series(45_000, 90_000, 135_000),
                processing=_series(4_500, 9_000, 13_500),
                fulfillment=_series(7_500, 15_000, 22_500),
            ),
        },
        team=[
            CostLine(name="Recruitment", year1=15_000, year2=25_000, year3=35_000),
            CostLine(name="Legal Advisor (consultant)", year1=24_000, year2=24_000, year3=24_000),
        ],
        admin=[
            CostLine(name="Rent & Utilities", year1=110_400, year2=110_400, year3=110_400),
            CostLine(name="Travel", year1=21_600, year2=25_200, year3=28_800),
            CostLine(name="Insurance", year1=5_000, year2=7_500, year3=10_000),
            CostLine(name="Legal", year1=25_000, year2=30_000, year3=35_000),
            CostLine(name="Accounting", year1=18_000, year2=22_000, year3=26_000),
            CostLine(name="Software", year1=51_600, year2=61_200, year3=72_000),
            CostLine(name="Other", year1=15_000, year2=18_000, year3=22_000),
        ],
        marketing=MarketingPlan(
            is_percentage_of_revenue=True,
            percentage_of_revenue=15,
            manual_budget=_series(112_500, 255_000, 427_500),
        ),
    )

    employees = [
        Employee(role="Chief Technology Officer", salary=120_000),
        Employee(role="Lead Full Stack Developer", salary=85_000),
        Employee(role="DevOps Engineer", salary=75_000),
        Employee(role="Marketing Manager", salary=65_000),
        Employee(role="Sales Manager", salary=70_000),
        Employee(role="Customer Success Manager", salary=55_000),
    ]

    balance_sheet = BalanceSheetInputs(
        fixed_assets=[
            FixedAsset(
                id="office-equipment",
                name="Office Equipment & Computers",
                cost=50_000,
                useful_life=3,
                asset_class=AssetClass.TANGIBLE,
            ),
            FixedAsset(
                id="platform-ip",
                name="Educational Platform IP",
                cost=200_000,
                useful_life=5,
                asset_class=AssetClass.INTANGIBLE,
                is_from_capitalized_payroll=True,
            ),
        ],
        accounts_receivable=AccountsReceivableConfig(),
        accounts_payable=AccountsPayableConfig(days_for_payment=30),
        cash_and_bank=_series(350_000, 750_000, 1_200_000),
        other_assets=_series(15_000, 20_000, 25_000),
        other_liabilities=_series(10_000, 15_000, 20_000),
    )

    funding = FundingPlan(
        total_funding=1_000_000,
        burn_rate=45_000,
        use_of_funds=[
            FundAllocation(category="Product Development", percentage=40),
            FundAllocation(category="Marketing & Sales", percentage=30),
            FundAllocation(category="Operations", percentage=20),
            FundAllocation(category="Working Capital", percentage=10),
        ],
    )

    return FinancialModel(
        company=CompanyProfile(name="CyberLabs", industry="edtech"),
        revenue_streams=revenue_streams,
        costs=costs,
        employees=employees,
        balance_sheet=balance_sheet,
        taxation=TaxationSettings(
            income_tax=IncomeTaxSettings(enabled=True, corporate_rate=20),
            zakat=ZakatSettings(enabled=False),
        ),
        funding=funding,
    )
