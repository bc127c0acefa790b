from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    coffee: str = "All"
    month_min: int = Field(default=1, ge=1, le=12)
    month_max: int = Field(default=12, ge=1, le=12)


class MetaCoffeesResponse(BaseModel):
    coffees: List[str]


class MetaMonthsResponse(BaseModel):
    months: List[int]
