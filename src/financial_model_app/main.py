from __future__ import annotations

from typing import Dict
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .core.config import settings
from .core.logging import configure_logging, get_logger
from .models.financial_model import FinancialModel
from .sample_data import build_sample_model
from .schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    CredentialsRequest,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    ModelActionRequest,
    ModelCreateRequest,
    ModelCreateResponse,
    ModelDetailResponse,
    ModelListResponse,
    ModelRunRequest,
    ModelRunResponse,
    SessionResponse,
    ValuationRequest,
    ValuationResponse,
)
from .services.ai import FinancialAnalyst, FinancialModelGenerator
from .services.auth import AuthService, SessionInfo
from .services.calculator import ModelCalculator
from .services.errors import AuthServiceError, FinancialModelError, RecordNotFoundError, classify_error
from .services.repository import FinancialModelRepository
from .services.state import apply_action
from .services.valuation import build_valuation

configure_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(title="Financial Model Engine", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)

MODELS: Dict[str, FinancialModel] = {}
calculator = ModelCalculator()


def get_generator() -> FinancialModelGenerator:
    return FinancialModelGenerator()


def get_analyst() -> FinancialAnalyst:
    return FinancialAnalyst()


def get_auth_service() -> AuthService:
    return AuthService()


def get_repository() -> FinancialModelRepository:
    return FinancialModelRepository()


@app.exception_handler(FinancialModelError)
def handle_model_error(request: Request, exc: FinancialModelError) -> JSONResponse:
    logger.warning("%s %s failed: %s", request.method, request.url.path, exc.message)
    body = ErrorResponse(error=exc.message, details=classify_error(exc.message))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(ValidationError)
def handle_invalid_model(request: Request, exc: ValidationError) -> JSONResponse:
    message = "; ".join(error["msg"] for error in exc.errors())
    logger.warning("%s %s rejected: %s", request.method, request.url.path, message)
    body = ErrorResponse(error=message, details=classify_error(message))
    return JSONResponse(status_code=422, content=body.model_dump(mode="json"))


def _get_model(model_id: str) -> FinancialModel:
    model = MODELS.get(model_id)
    if model is None:
        raise RecordNotFoundError(f"Model {model_id} not found")
    return model


def _resolve_model(model: FinancialModel | None, model_id: str | None) -> FinancialModel:
    if model is not None:
        return model
    if model_id:
        return _get_model(model_id)
    raise HTTPException(status_code=422, detail="Provide either model or model_id")


@app.post("/models", response_model=ModelCreateResponse)
def create_model(payload: ModelCreateRequest) -> ModelCreateResponse:
    if payload.model is not None:
        model = payload.model
    elif payload.clone_from:
        model = _get_model(payload.clone_from).model_copy(deep=True)
    elif payload.use_sample:
        model = build_sample_model()
    else:
        model = FinancialModel()
    model_id = uuid4().hex
    MODELS[model_id] = model
    logger.info("Created model %s for %s", model_id, model.company.name)
    return ModelCreateResponse(model_id=model_id)


@app.get("/models", response_model=ModelListResponse)
def list_models() -> ModelListResponse:
    return ModelListResponse(models=list(MODELS.keys()))


@app.get("/models/{model_id}", response_model=ModelDetailResponse)
def get_model(model_id: str) -> ModelDetailResponse:
    model = _get_model(model_id)
    return ModelDetailResponse(model_id=model_id, model=model, result=calculator.run(model))


@app.post("/models/{model_id}/actions", response_model=ModelDetailResponse)
def apply_model_action(model_id: str, payload: ModelActionRequest) -> ModelDetailResponse:
    model = apply_action(_get_model(model_id), payload.action)
    MODELS[model_id] = model
    return ModelDetailResponse(model_id=model_id, model=model, result=calculator.run(model))


@app.post("/run", response_model=ModelRunResponse)
def run_model(payload: ModelRunRequest) -> ModelRunResponse:
    model = _resolve_model(payload.model, payload.model_id)
    return ModelRunResponse(result=calculator.run(model))


@app.post("/valuation", response_model=ValuationResponse)
def value_company(payload: ValuationRequest) -> ValuationResponse:
    valuation = build_valuation(
        payload.latest_revenue, payload.latest_ebitda, payload.inputs, payload.assumptions, payload.risk_level
    )
    return ValuationResponse(valuation=valuation)


@app.post("/generate-financial-model", response_model=GenerateResponse)
def generate_financial_model(
    payload: GenerateRequest, generator: FinancialModelGenerator = Depends(get_generator)
) -> GenerateResponse:
    generated = generator.generate(payload.prompt)
    return GenerateResponse(financial_data=generated, model=generated.to_financial_model())


@app.post("/analyze-financial-data", response_model=AnalyzeResponse)
def analyze_financial_data(payload: AnalyzeRequest, analyst: FinancialAnalyst = Depends(get_analyst)) -> AnalyzeResponse:
    model = _resolve_model(payload.model, payload.model_id)
    return AnalyzeResponse(insights=analyst.analyze(model))


@app.post("/auth/sign-in", response_model=SessionResponse)
def sign_in(payload: CredentialsRequest, auth: AuthService = Depends(get_auth_service)) -> SessionResponse:
    return SessionResponse(session=auth.sign_in(payload.email, payload.password))


@app.post("/auth/sign-up", response_model=SessionResponse)
def sign_up(payload: CredentialsRequest, auth: AuthService = Depends(get_auth_service)) -> SessionResponse:
    return SessionResponse(session=auth.sign_up(payload.email, payload.password))


@app.post("/auth/sign-out")
def sign_out(auth: AuthService = Depends(get_auth_service)) -> Dict[str, str]:
    auth.sign_out()
    return {"status": "signed_out"}


@app.get("/auth/session", response_model=SessionResponse)
def current_session(auth: AuthService = Depends(get_auth_service)) -> SessionResponse:
    return SessionResponse(session=auth.get_current_session())


def _require_session(auth: AuthService) -> SessionInfo:
    session = auth.get_current_session()
    if session is None:
        raise AuthServiceError("Unauthorized: sign in required")
    return session


@app.get("/me/model", response_model=ModelDetailResponse)
def load_my_model(
    auth: AuthService = Depends(get_auth_service),
    repository: FinancialModelRepository = Depends(get_repository),
) -> ModelDetailResponse:
    session = _require_session(auth)
    model_id, model = repository.load(session.user_id)
    return ModelDetailResponse(model_id=model_id, model=model, result=calculator.run(model))


@app.put("/me/model", response_model=ModelDetailResponse)
def save_my_model(
    model: FinancialModel,
    auth: AuthService = Depends(get_auth_service),
    repository: FinancialModelRepository = Depends(get_repository),
) -> ModelDetailResponse:
    session = _require_session(auth)
    model_id = repository.get_or_create_model_id(session.user_id)
    repository.save(model_id, model)
    return ModelDetailResponse(model_id=model_id, model=model, result=calculator.run(model))


@app.get("/health")
def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}
