from __future__ import annotations

import copy

import pytest

GENERATED_MODEL = {
    "companyData": {"companyName": "Brew Co", "industry": "food"},
    "revenueStreams": [{"name": "Coffee", "year1": 100_000, "year2": 150_000, "year3": 200_000}],
    "costStructures": [{"name": "Coffee", "year1": 30_000, "year2": 45_000, "year3": 60_000}],
    "operationalExpenses": [{"name": "Rent", "year1": 24_000, "year2": 24_000, "year3": 26_000}],
    "employeePlanning": [
        {"role": "Barista", "year1": 2, "year2": 3, "year3": 3, "salary_per_employee": 30_000},
    ],
    "taxation": {"corporate_tax_rate": 20, "income_tax_enabled": True, "zakat_enabled": True},
}


@pytest.fixture
def generated_payload():
    """JSON object a well-behaved generator returns for a coffee shop prompt."""
    return copy.deepcopy(GENERATED_MODEL)
