from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models.common import Assumptions
from .models.financial_model import FinancialModel
from .models.results import ModelResult
from .models.valuation import RiskLevel, ValuationInputs, ValuationResult
from .services.ai import GeneratedFinancialModel
from .services.auth import SessionInfo
from .services.errors import ErrorDetails
from .services.state import ModelAction


class ModelCreateRequest(BaseModel):
    model: Optional[FinancialModel] = None
    clone_from: Optional[str] = Field(default=None, description="Model ID to clone from")
    use_sample: bool = Field(default=False, description="Start from the demo company")


class ModelCreateResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str


class ModelListResponse(BaseModel):
    models: List[str]


class ModelDetailResponse(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: str
    model: FinancialModel
    result: ModelResult


class ModelRunRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: Optional[str] = None
    model: Optional[FinancialModel] = None


class ModelActionRequest(BaseModel):
    action: ModelAction


class ModelRunResponse(BaseModel):
    result: ModelResult


class ValuationRequest(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    latest_revenue: float
    latest_ebitda: float
    inputs: ValuationInputs = Field(default_factory=ValuationInputs)
    assumptions: Assumptions = Field(default_factory=Assumptions)
    risk_level: Optional[RiskLevel] = Field(default=None, description="Adds a risk-adjusted industry valuation")


class ValuationResponse(BaseModel):
    valuation: ValuationResult


class GenerateRequest(BaseModel):
    prompt: str


class GenerateResponse(BaseModel):
    financial_data: GeneratedFinancialModel
    model: FinancialModel


class AnalyzeRequest(BaseModel):
    model_config = ConfigDict(protected_namespaces=())

    model_id: Optional[str] = None
    model: Optional[FinancialModel] = None


class AnalyzeResponse(BaseModel):
    insights: str


class CredentialsRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)


class SessionResponse(BaseModel):
    session: Optional[SessionInfo] = None


class ErrorResponse(BaseModel):
    error: str
    details: ErrorDetails
