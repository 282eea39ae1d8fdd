"""Immutable updates to a financial model.

Every edit is expressed as an action record and applied with
``apply_action``, which returns a new validated ``FinancialModel`` and leaves
the input snapshot untouched.
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter

from ..core.logging import get_logger
from ..models.balance_sheet import FixedAsset
from ..models.financial_model import FinancialModel
from ..models.financing import Loan
from ..models.headcount import Employee
from ..models.revenue import RevenueStream
from .errors import RecordNotFoundError

logger = get_logger(__name__)

Section = Literal[
    "company",
    "revenue_streams",
    "costs",
    "employees",
    "balance_sheet",
    "loans",
    "taxation",
    "funding",
    "valuation",
    "assumptions",
]


class UpdateSection(BaseModel):
    kind: Literal["update_section"] = "update_section"
    section: Section
    data: Any


class AddFixedAsset(BaseModel):
    kind: Literal["add_fixed_asset"] = "add_fixed_asset"
    asset: FixedAsset


class UpdateFixedAsset(BaseModel):
    kind: Literal["update_fixed_asset"] = "update_fixed_asset"
    asset_id: str
    field: Literal["name", "cost", "useful_life", "asset_class", "is_from_capitalized_payroll"]
    value: Any


class RemoveFixedAsset(BaseModel):
    kind: Literal["remove_fixed_asset"] = "remove_fixed_asset"
    asset_id: str


class AddRevenueStream(BaseModel):
    kind: Literal["add_revenue_stream"] = "add_revenue_stream"
    stream: RevenueStream


class RemoveRevenueStream(BaseModel):
    kind: Literal["remove_revenue_stream"] = "remove_revenue_stream"
    name: str


class AddEmployee(BaseModel):
    kind: Literal["add_employee"] = "add_employee"
    employee: Employee


class RemoveEmployee(BaseModel):
    kind: Literal["remove_employee"] = "remove_employee"
    index: int


class AddLoan(BaseModel):
    kind: Literal["add_loan"] = "add_loan"
    loan: Loan


class RemoveLoan(BaseModel):
    kind: Literal["remove_loan"] = "remove_loan"
    loan_id: str


ModelAction = Annotated[
    Union[
        UpdateSection,
        AddFixedAsset,
        UpdateFixedAsset,
        RemoveFixedAsset,
        AddRevenueStream,
        RemoveRevenueStream,
        AddEmployee,
        RemoveEmployee,
        AddLoan,
        RemoveLoan,
    ],
    Field(discriminator="kind"),
]

action_adapter: TypeAdapter[ModelAction] = TypeAdapter(ModelAction)


def parse_action(payload: Dict[str, Any]) -> ModelAction:
    return action_adapter.validate_python(payload)


def _revalidate(model: FinancialModel, update: Dict[str, Any]) -> FinancialModel:
    data = model.model_dump()
    data.update(update)
    return FinancialModel.model_validate(data)


def _with_fixed_assets(model: FinancialModel, assets: list) -> FinancialModel:
    balance_sheet = model.balance_sheet.model_dump()
    balance_sheet["fixed_assets"] = assets
    return _revalidate(model, {"balance_sheet": balance_sheet})


def apply_action(model: FinancialModel, action: ModelAction) -> FinancialModel:
    logger.debug("Applying %s", action.kind)
    if isinstance(action, UpdateSection):
        data = action.data.model_dump() if isinstance(action.data, BaseModel) else action.data
        return _revalidate(model, {action.section: data})

    if isinstance(action, AddFixedAsset):
        return _with_fixed_assets(model, [*model.balance_sheet.fixed_assets, action.asset])

    if isinstance(action, UpdateFixedAsset):
        assets = []
        found = False
        for asset in model.balance_sheet.fixed_assets:
            if asset.id == action.asset_id:
                found = True
                asset = FixedAsset.model_validate({**asset.model_dump(), action.field: action.value})
            assets.append(asset)
        if not found:
            raise RecordNotFoundError(f"Fixed asset {action.asset_id} not found")
        return _with_fixed_assets(model, assets)

    if isinstance(action, RemoveFixedAsset):
        return _with_fixed_assets(model, [a for a in model.balance_sheet.fixed_assets if a.id != action.asset_id])

    if isinstance(action, AddRevenueStream):
        return _revalidate(model, {"revenue_streams": [*model.revenue_streams, action.stream]})

    if isinstance(action, RemoveRevenueStream):
        streams = [s for s in model.revenue_streams if s.name != action.name]
        costs = model.costs.model_dump()
        costs["revenue_stream_costs"].pop(action.name, None)
        return _revalidate(model, {"revenue_streams": streams, "costs": costs})

    if isinstance(action, AddEmployee):
        return _revalidate(model, {"employees": [*model.employees, action.employee]})

    if isinstance(action, RemoveEmployee):
        employees = [e for i, e in enumerate(model.employees) if i != action.index]
        return _revalidate(model, {"employees": employees})

    if isinstance(action, AddLoan):
        return _revalidate(model, {"loans": [*model.loans, action.loan]})

    if isinstance(action, RemoveLoan):
        return _revalidate(model, {"loans": [loan for loan in model.loans if loan.id != action.loan_id]})

    raise TypeError(f"Unsupported action: {action!r}")
