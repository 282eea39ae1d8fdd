from __future__ import annotations

from types import SimpleNamespace

import pytest

from financial_model_app.models.financial_model import FinancialModel
from financial_model_app.models.financing import (
    IncomeTaxSettings,
    Loan,
    LoanType,
    TaxationSettings,
    ZakatSettings,
)
from financial_model_app.models.revenue import RevenueStream
from financial_model_app.services.errors import DataAccessError
from financial_model_app.services.repository import FinancialModelRepository


class FakeQuery:
    def __init__(self, store, table):
        self.store = store
        self.table = table
        self.filters = []
        self.action = "select"
        self.payload = None

    def select(self, *_):
        self.action = "select"
        return self

    def insert(self, payload):
        self.action = "insert"
        self.payload = payload if isinstance(payload, list) else [payload]
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, lambda cell: cell == value))
        return self

    def in_(self, column, values):
        self.filters.append((column, lambda cell: cell in values))
        return self

    def limit(self, _):
        return self

    def _matches(self, row):
        return all(matches(row.get(column)) for column, matches in self.filters)

    def execute(self):
        if self.store.fail or self.action in self.store.fail_on:
            raise RuntimeError("database unavailable")
        rows = self.store.tables.setdefault(self.table, [])
        if self.action == "insert":
            inserted = []
            for row in self.payload:
                row = {"id": f"{self.table}-{len(rows) + 1}", **row}
                rows.append(row)
                inserted.append(row)
            return SimpleNamespace(data=inserted)
        if self.action == "delete":
            self.store.tables[self.table] = [row for row in rows if not self._matches(row)]
            return SimpleNamespace(data=[])
        return SimpleNamespace(data=[row for row in rows if self._matches(row)])


class FakeSupabase:
    def __init__(self, tables=None, fail=False, fail_on=()):
        self.tables = tables or {}
        self.fail = fail
        self.fail_on = set(fail_on)

    def table(self, name):
        return FakeQuery(self, name)


def test_creates_model_row_for_new_user():
    client = FakeSupabase()
    model_id, model = FinancialModelRepository(client).load("user-1")

    assert client.tables["financial_models"][0]["user_id"] == "user-1"
    assert client.tables["financial_models"][0]["company_name"] == "My Company"
    assert model_id == "financial_models-1"
    assert model == FinancialModel()


def test_loads_stored_sections():
    client = FakeSupabase(
        {
            "financial_models": [{"id": "m1", "user_id": "user-1"}],
            "revenue_streams": [{"financial_model_id": "m1", "name": "SaaS", "year1": 10, "year2": None, "year3": 30}],
            "taxation": [{"financial_model_id": "m1", "corporate_tax_rate": 20, "vat_rate": 0}],
            "loans_financing": [
                {"id": "loan-1", "financial_model_id": "m1", "type": "term", "amount": 5_000, "interest_rate": 8, "term_years": 2}
            ],
        }
    )
    model_id, model = FinancialModelRepository(client).load("user-1")

    assert model_id == "m1"
    assert model.revenue_streams[0].values() == (10, 0, 30)
    assert model.taxation.income_tax.enabled
    assert not model.taxation.zakat.enabled
    assert model.loans[0].term_months == 24
    assert model.loans[0].type == LoanType.TERM


def test_save_replaces_sections():
    client = FakeSupabase(
        {
            "financial_models": [{"id": "m1", "user_id": "user-1"}],
            "revenue_streams": [
                {"id": "rs-1", "financial_model_id": "m1", "name": "Old", "year1": 1, "year2": 1, "year3": 1}
            ],
        }
    )
    model = FinancialModel(
        revenue_streams=[RevenueStream(name="New", year1=100)],
        loans=[Loan(name="Bank", principal_amount=1_000, interest_rate=5, term_months=30)],
        taxation=TaxationSettings(
            income_tax=IncomeTaxSettings(enabled=True, corporate_rate=15),
            zakat=ZakatSettings(enabled=True, rate=2.5),
        ),
    )
    FinancialModelRepository(client).save("m1", model)

    assert [row["name"] for row in client.tables["revenue_streams"]] == ["New"]
    assert client.tables["taxation"][0]["vat_rate"] == 2.5
    assert client.tables["loans_financing"][0]["term_years"] == 2


def test_failures_raise_data_access_error():
    with pytest.raises(DataAccessError, match="database"):
        FinancialModelRepository(FakeSupabase(fail=True)).load("user-1")


def test_failed_insert_keeps_existing_rows():
    client = FakeSupabase(
        {
            "financial_models": [{"id": "m1", "user_id": "user-1"}],
            "revenue_streams": [
                {"id": "rs-1", "financial_model_id": "m1", "name": "Old", "year1": 1, "year2": 1, "year3": 1}
            ],
        },
        fail_on={"insert"},
    )
    model = FinancialModel(revenue_streams=[RevenueStream(name="New", year1=100)])

    with pytest.raises(DataAccessError, match="Failed to save revenue_streams"):
        FinancialModelRepository(client).save("m1", model)
    assert [row["name"] for row in client.tables["revenue_streams"]] == ["Old"]


def test_save_only_removes_previous_rows():
    client = FakeSupabase(
        {
            "financial_models": [{"id": "m1", "user_id": "user-1"}],
            "taxation": [
                {"id": "tax-1", "financial_model_id": "m1", "corporate_tax_rate": 10, "vat_rate": 0},
                {"id": "tax-2", "financial_model_id": "m2", "corporate_tax_rate": 30, "vat_rate": 0},
            ],
        }
    )
    FinancialModelRepository(client).save("m1", FinancialModel())

    rows = client.tables["taxation"]
    assert [row["financial_model_id"] for row in rows] == ["m2", "m1"]
    assert rows[1]["corporate_tax_rate"] == 0


def test_invalid_stored_rows_raise_data_access_error():
    client = FakeSupabase(
        {
            "financial_models": [{"id": "m1", "user_id": "user-1"}],
            "revenue_streams": [
                {"id": "a", "financial_model_id": "m1", "name": "SaaS", "year1": 1},
                {"id": "b", "financial_model_id": "m1", "name": "SaaS", "year1": 2},
            ],
        }
    )

    with pytest.raises(DataAccessError, match="invalid"):
        FinancialModelRepository(client).load("user-1")
