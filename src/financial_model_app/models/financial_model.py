from __future__ import annotations

import math
from collections import Counter
from typing import Any, Iterator, List

from pydantic import BaseModel, Field, model_validator

from .balance_sheet import BalanceSheetInputs
from .common import Assumptions, CompanyProfile
from .costs import CostStructure
from .financing import Loan, TaxationSettings
from .funding import FundingPlan
from .headcount import Employee
from .revenue import RevenueStream
from .valuation import ValuationInputs


def _numbers(value: Any, path: str = "") -> Iterator[tuple[str, float]]:
    if isinstance(value, dict):
        for key, item in value.items():
            yield from _numbers(item, f"{path}.{key}" if path else str(key))
    elif isinstance(value, (list, tuple)):
        for idx, item in enumerate(value):
            yield from _numbers(item, f"{path}[{idx}]")
    elif isinstance(value, float):
        yield path, value


class FinancialModel(BaseModel):
    company: CompanyProfile = Field(default_factory=CompanyProfile)
    revenue_streams: List[RevenueStream] = Field(default_factory=list)
    costs: CostStructure = Field(default_factory=CostStructure)
    employees: List[Employee] = Field(default_factory=list)
    balance_sheet: BalanceSheetInputs = Field(default_factory=BalanceSheetInputs)
    loans: List[Loan] = Field(default_factory=list)
    taxation: TaxationSettings = Field(default_factory=TaxationSettings)
    funding: FundingPlan = Field(default_factory=FundingPlan)
    valuation: ValuationInputs = Field(default_factory=ValuationInputs)
    assumptions: Assumptions = Field(default_factory=Assumptions)

    @model_validator(mode="after")
    def check_stream_names(self) -> "FinancialModel":
        # Receivables and direct costs are keyed by stream name.
        duplicates = sorted(name for name, count in Counter(s.name for s in self.revenue_streams).items() if count > 1)
        if duplicates:
            raise ValueError(f"Revenue stream names must be unique, duplicated: {', '.join(duplicates)}")
        return self

    @model_validator(mode="after")
    def check_finite(self) -> "FinancialModel":
        for path, value in _numbers(self.model_dump()):
            if not math.isfinite(value):
                raise ValueError(f"{path} must be a finite number, got {value}")
        return self
