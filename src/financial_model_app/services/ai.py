"""Chat-completion backed model generation and analysis.

``FinancialModelGenerator`` turns a free-text company description into a
validated ``FinancialModel``. ``FinancialAnalyst`` produces a few bullet
points of strategic insight for an existing model. Both make exactly one
request per call; retries are left to the user.
"""

from __future__ import annotations

import json
from typing import Any, List, Optional

import openai
from openai import OpenAI
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from ..core.config import Settings, get_settings
from ..core.logging import get_logger
from ..models.common import CompanyProfile, YearlySeries
from ..models.costs import CostLine, CostStructure, DirectCosts
from ..models.financial_model import FinancialModel
from ..models.financing import IncomeTaxSettings, TaxationSettings, ZakatSettings
from ..models.headcount import Employee
from ..models.revenue import RevenueStream
from .errors import AnalysisError, GenerationError

logger = get_logger(__name__)

# Rate applied when the generator enables zakat without naming one.
DEFAULT_ZAKAT_RATE = 2.5

GENERATION_SYSTEM_PROMPT = """You are a financial modeling expert. Based on the user's description, generate a comprehensive financial model with realistic data. Return ONLY a valid JSON object with the following structure:

{
  "companyData": {"companyName": "string", "industry": "string"},
  "revenueStreams": [{"name": "string", "year1": number, "year2": number, "year3": number}],
  "costStructures": [{"name": "string", "year1": number, "year2": number, "year3": number}],
  "operationalExpenses": [{"name": "string", "year1": number, "year2": number, "year3": number}],
  "employeePlanning": [{"role": "string", "year1": number, "year2": number, "year3": number, "salary_per_employee": number}],
  "taxation": {"corporate_tax_rate": number, "income_tax_enabled": boolean, "zakat_enabled": boolean}
}

revenueStreams and costStructures hold annual currency amounts. employeePlanning holds the headcount for each role in each year.
Make sure all numbers are realistic and consistent. Use growth rates that make sense for the industry and company stage."""

ANALYSIS_SYSTEM_PROMPT = (
    "You are a financial advisor and business analyst. Provide concise, actionable insights about this "
    "financial model. Focus on key risks, opportunities, and strategic recommendations. "
    "Limit your response to 3-4 bullet points."
)


class GeneratedCompany(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    company_name: str = Field(alias="companyName")
    industry: str


class GeneratedLine(YearlySeries):
    model_config = ConfigDict(allow_inf_nan=False)

    year1: float
    year2: float
    year3: float
    name: str


class GeneratedRole(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    role: str
    year1: float = Field(ge=0)
    year2: float = Field(ge=0)
    year3: float = Field(ge=0)
    salary_per_employee: float = Field(ge=0)


class GeneratedTaxation(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    corporate_tax_rate: float = Field(ge=0)
    income_tax_enabled: bool
    zakat_enabled: bool = False
    zakat_rate: Optional[float] = Field(default=None, ge=0)


class GeneratedFinancialModel(BaseModel):
    """Payload the generator must return; every section is required."""

    model_config = ConfigDict(populate_by_name=True)

    company: GeneratedCompany = Field(alias="companyData")
    revenue_streams: List[GeneratedLine] = Field(alias="revenueStreams", min_length=1)
    cost_structures: List[GeneratedLine] = Field(alias="costStructures")
    operational_expenses: List[GeneratedLine] = Field(alias="operationalExpenses")
    employee_planning: List[GeneratedRole] = Field(alias="employeePlanning")
    taxation: GeneratedTaxation

    @model_validator(mode="after")
    def check_stream_names(self) -> "GeneratedFinancialModel":
        names = [line.name for line in self.revenue_streams]
        if len(names) != len(set(names)):
            raise ValueError("revenueStreams must have unique names")
        return self

    def to_financial_model(self) -> FinancialModel:
        employees: List[Employee] = []
        for role in self.employee_planning:
            previous = 0
            for year, headcount in enumerate((role.year1, role.year2, role.year3), start=1):
                hires = round(headcount) - previous
                if hires > 0:
                    employees.append(Employee(role=role.role, count=hires, salary=role.salary_per_employee, year=year))
                previous = max(previous, round(headcount))

        return FinancialModel(
            company=CompanyProfile(name=self.company.company_name, industry=self.company.industry),
            revenue_streams=[
                RevenueStream(name=line.name, year1=line.year1, year2=line.year2, year3=line.year3)
                for line in self.revenue_streams
            ],
            costs=CostStructure(
                revenue_stream_costs={
                    line.name: DirectCosts(cogs=YearlySeries.from_values(line.values()))
                    for line in self.cost_structures
                },
                admin=[
                    CostLine(name=line.name, year1=line.year1, year2=line.year2, year3=line.year3)
                    for line in self.operational_expenses
                ],
            ),
            employees=employees,
            taxation=TaxationSettings(
                income_tax=IncomeTaxSettings(
                    enabled=self.taxation.income_tax_enabled,
                    corporate_rate=self.taxation.corporate_tax_rate,
                ),
                zakat=ZakatSettings(
                    enabled=self.taxation.zakat_enabled,
                    rate=self.taxation.zakat_rate if self.taxation.zakat_rate is not None else DEFAULT_ZAKAT_RATE,
                ),
            ),
        )


def build_model_summary(model: FinancialModel) -> str:
    revenue = [sum(stream.value_for(year) for stream in model.revenue_streams) for year in (1, 2, 3)]
    headcount = sum(employee.count for employee in model.employees)
    return (
        "Financial Model Analysis:\n"
        f"- Company: {model.company.name or 'Not specified'}\n"
        f"- Industry: {model.company.industry or 'Not specified'}\n"
        f"- Revenue Streams: {len(model.revenue_streams)} streams\n"
        f"- Total Year 1 Revenue: ${revenue[0]:,.0f}\n"
        f"- Total Year 2 Revenue: ${revenue[1]:,.0f}\n"
        f"- Total Year 3 Revenue: ${revenue[2]:,.0f}\n"
        "\n"
        "Key Financial Metrics:\n"
        f"- Employee Count: {headcount}\n"
        f"- Team Cost Lines: {len(model.costs.team)}\n"
        f"- Fixed Assets: {len(model.balance_sheet.fixed_assets)} assets\n"
        f"- Loans: {len(model.loans)}\n"
        f"- Total Funding: ${model.funding.total_funding:,.0f}\n"
    )


class _ChatService:
    error_cls = GenerationError

    def __init__(self, client: Any = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.settings.OPENAI_API_KEY:
                raise self.error_cls("OpenAI API key not configured")
            self._client = OpenAI(
                api_key=self.settings.OPENAI_API_KEY,
                timeout=self.settings.LLM_TIMEOUT_SECONDS,
                max_retries=0,
            )
        return self._client

    def _complete(self, messages: List[dict], **kwargs: Any) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.settings.OPENAI_MODEL,
                messages=messages,
                **kwargs,
            )
        except openai.APIError as exc:
            logger.error("OpenAI API error: %s", exc)
            raise self.error_cls(f"OpenAI API error: {exc}") from exc

        if not response.choices:
            raise self.error_cls("Empty response from OpenAI")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise self.error_cls("Empty response from OpenAI")
        return content


class FinancialModelGenerator(_ChatService):
    error_cls = GenerationError

    def generate(self, prompt: str) -> GeneratedFinancialModel:
        if not prompt or not prompt.strip():
            raise GenerationError("Prompt is required", status_code=400)

        logger.info("Generating financial model for prompt: %s", prompt)
        content = self._complete(
            [
                {"role": "system", "content": GENERATION_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=self.settings.GENERATION_TEMPERATURE,
            max_tokens=self.settings.GENERATION_MAX_TOKENS,
            response_format={"type": "json_object"},
        )

        try:
            payload = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.error("Content that failed to parse: %s", content)
            raise GenerationError("Failed to parse generated financial data") from exc

        try:
            return GeneratedFinancialModel.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in error["loc"]) or error["msg"] for error in exc.errors()})
            logger.error("Generated financial data failed validation: %s", fields)
            raise GenerationError(f"Generated financial data is missing or has invalid fields: {', '.join(fields)}") from exc


class FinancialAnalyst(_ChatService):
    error_cls = AnalysisError

    def analyze(self, model: FinancialModel) -> str:
        summary = build_model_summary(model)
        logger.info("Requesting insights for %s", model.company.name)
        return self._complete(
            [
                {"role": "system", "content": ANALYSIS_SYSTEM_PROMPT},
                {"role": "user", "content": f"Analyze this financial model and provide strategic insights:\n\n{summary}"},
            ],
            temperature=0.7,
            max_tokens=self.settings.ANALYSIS_MAX_TOKENS,
        ).strip()
