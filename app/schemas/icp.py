"""
schemas/icp.py — Pydantic models for the ICP profile endpoints

Business Rules:
- Weights are whole numbers >= 0 and must add to 100
- Size and revenue buckets must come from the known ordinal scales
- Industry/location lists are trimmed and de-duplicated

Called by: routers/icp.py
Depends on: pydantic, scoring.py
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from app.scoring import COMPANY_SIZE_RANGES, REVENUE_RANGES, IcpWeights, validate_weights


def _clean_list(v: list[str] | None) -> list[str]:
    seen: list[str] = []
    for item in v or []:
        cleaned = str(item).strip()
        if cleaned and cleaned not in seen:
            seen.append(cleaned)
    return seen


class IcpWeightsIn(BaseModel):
    industry: int = Field(default=50, ge=0, le=100)
    location: int = Field(default=25, ge=0, le=100)
    employee_size: int = Field(default=15, ge=0, le=100)
    revenue: int = Field(default=10, ge=0, le=100)

    @model_validator(mode="after")
    def adds_to_100(self):
        validate_weights(IcpWeights(**self.model_dump()))
        return self


class IcpProfileIn(BaseModel):
    industries: list[str] = []
    locations: list[str] = []
    is_nationwide: bool = False
    company_sizes: list[str] = []
    revenue_ranges: list[str] = []
    weights: IcpWeightsIn = IcpWeightsIn()

    @field_validator("industries", "locations", mode="before")
    @classmethod
    def clean(cls, v):
        return _clean_list(v)

    @field_validator("company_sizes")
    @classmethod
    def known_sizes(cls, v: list[str]) -> list[str]:
        unknown = [s for s in v if s not in COMPANY_SIZE_RANGES]
        if unknown:
            raise ValueError(f"Unknown company size range: {', '.join(unknown)}")
        return _clean_list(v)

    @field_validator("revenue_ranges")
    @classmethod
    def known_revenue(cls, v: list[str]) -> list[str]:
        unknown = [s for s in v if s not in REVENUE_RANGES]
        if unknown:
            raise ValueError(f"Unknown revenue range: {', '.join(unknown)}")
        return _clean_list(v)


class IcpProfileOut(BaseModel):
    industries: list[str] = []
    locations: list[str] = []
    is_nationwide: bool = False
    company_sizes: list[str] = []
    revenue_ranges: list[str] = []
    weights: dict[str, int]
    last_rescored_at: str | None = None
    rescored: int | None = None
