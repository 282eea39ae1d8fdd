"""Persistence of financial models in the hosted Supabase store.

Only three sections are stored remotely: revenue streams, taxation and loans.
Everything else starts from defaults when a model is loaded. Saves replace
each stored section wholesale: the new rows are inserted first and the
previous rows are then deleted by id.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import Client

from ..core.logging import get_logger
from ..models.common import CompanyProfile
from ..models.financial_model import FinancialModel
from ..models.financing import IncomeTaxSettings, Loan, LoanType, TaxationSettings, ZakatSettings
from ..models.revenue import RevenueStream
from .auth import create_supabase_client
from .errors import DataAccessError

logger = get_logger(__name__)

MODELS_TABLE = "financial_models"
REVENUE_TABLE = "revenue_streams"
TAXATION_TABLE = "taxation"
LOANS_TABLE = "loans_financing"


def revenue_stream_from_row(row: Dict[str, Any]) -> RevenueStream:
    # Stream type, growth and AR days are not stored.
    return RevenueStream(
        name=row.get("name") or "",
        year1=row.get("year1") or 0,
        year2=row.get("year2") or 0,
        year3=row.get("year3") or 0,
    )


def taxation_from_row(row: Dict[str, Any]) -> TaxationSettings:
    corporate_rate = row.get("corporate_tax_rate") or 0
    zakat_rate = row.get("vat_rate") or 0
    return TaxationSettings(
        income_tax=IncomeTaxSettings(enabled=corporate_rate > 0, corporate_rate=corporate_rate),
        zakat=ZakatSettings(enabled=zakat_rate > 0, rate=zakat_rate),
    )


def loan_from_row(row: Dict[str, Any]) -> Loan:
    loan_type = row.get("type") or LoanType.TERM.value
    return Loan(
        id=str(row["id"]),
        name=loan_type,
        type=loan_type,
        principal_amount=row.get("amount") or 0,
        interest_rate=row.get("interest_rate") or 0,
        term_months=(row.get("term_years") or 0) * 12,
        start_year=1,
        is_interest_only=False,
    )


class FinancialModelRepository:
    def __init__(self, client: Optional[Client] = None):
        self._client = client or create_supabase_client()

    def get_or_create_model_id(self, user_id: str) -> str:
        try:
            response = self._client.table(MODELS_TABLE).select("*").eq("user_id", user_id).limit(1).execute()
            rows = response.data or []
            if rows:
                return str(rows[0]["id"])

            defaults = CompanyProfile()
            logger.info("Creating financial model row for user %s", user_id)
            created = (
                self._client.table(MODELS_TABLE)
                .insert(
                    {
                        "user_id": user_id,
                        "company_name": defaults.name,
                        "industry": defaults.industry,
                        "currency": defaults.currency,
                        "language": defaults.language,
                    }
                )
                .execute()
            )
        except Exception as e:
            raise DataAccessError(f"Failed to load financial model from database: {e}") from e

        if not created.data:
            raise DataAccessError("Failed to create financial model in database")
        return str(created.data[0]["id"])

    def _select(self, table: str, model_id: str) -> List[Dict[str, Any]]:
        try:
            response = self._client.table(table).select("*").eq("financial_model_id", model_id).execute()
        except Exception as e:
            raise DataAccessError(f"Failed to read {table} from database: {e}") from e
        return response.data or []

    def _replace(self, table: str, model_id: str, rows: List[Dict[str, Any]]) -> None:
        # Insert before delete: a failed insert must leave the stored rows in place.
        old_ids = [row["id"] for row in self._select(table, model_id) if "id" in row]
        try:
            self._client.table(table).insert(rows).execute()
        except Exception as e:
            raise DataAccessError(f"Failed to save {table} to database: {e}") from e
        if not old_ids:
            return
        try:
            self._client.table(table).delete().in_("id", old_ids).execute()
        except Exception as e:
            raise DataAccessError(f"Failed to remove stale {table} rows from database: {e}") from e

    def load(self, user_id: str) -> tuple[str, FinancialModel]:
        """Return ``(model_id, model)`` for the user, creating the row if needed."""
        model_id = self.get_or_create_model_id(user_id)
        streams = self._select(REVENUE_TABLE, model_id)
        taxation = self._select(TAXATION_TABLE, model_id)
        loans = self._select(LOANS_TABLE, model_id)

        sections: Dict[str, Any] = {}
        try:
            if streams:
                sections["revenue_streams"] = [revenue_stream_from_row(row) for row in streams]
            if taxation:
                sections["taxation"] = taxation_from_row(taxation[0])
            if loans:
                sections["loans"] = [loan_from_row(row) for row in loans]
            model = FinancialModel(**sections)
        except ValidationError as e:
            raise DataAccessError(f"Stored financial model {model_id} in database is invalid: {e}") from e

        logger.info(
            "Loaded model %s: %d revenue streams, %d loans", model_id, len(model.revenue_streams), len(model.loans)
        )
        return model_id, model

    def save(self, model_id: str, model: FinancialModel) -> None:
        # Empty sections are left as stored.
        if model.revenue_streams:
            self._replace(
                REVENUE_TABLE,
                model_id,
                [
                    {
                        "financial_model_id": model_id,
                        "name": stream.name,
                        "year1": stream.year1,
                        "year2": stream.year2,
                        "year3": stream.year3,
                    }
                    for stream in model.revenue_streams
                ],
            )

        self._replace(
            TAXATION_TABLE,
            model_id,
            [
                {
                    "financial_model_id": model_id,
                    "corporate_tax_rate": model.taxation.income_tax.corporate_rate,
                    "vat_rate": model.taxation.zakat.rate,
                    "other_taxes": 0,
                }
            ],
        )

        if model.loans:
            self._replace(
                LOANS_TABLE,
                model_id,
                [
                    {
                        "financial_model_id": model_id,
                        "type": loan.type.value,
                        "amount": loan.principal_amount,
                        "interest_rate": loan.interest_rate,
                        "term_years": loan.term_months // 12,
                    }
                    for loan in model.loans
                ],
            )
        logger.info("Saved model %s", model_id)
