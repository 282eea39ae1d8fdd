from __future__ import annotations

from pydantic import BaseModel, conint, confloat


class Employee(BaseModel):
    role: str
    count: conint(ge=1) = 1
    salary: confloat(ge=0)
    year: conint(ge=1, le=3) = 1
