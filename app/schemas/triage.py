"""schemas/triage.py — Pydantic models for triage and candidate review."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class DecideRequest(BaseModel):
    direction: Literal["accept", "reject"]


class CandidateIn(BaseModel):
    provider_id: str = Field(..., min_length=1, max_length=100)
    name: str | None = None
    domain: str | None = None
    industry: str | None = None
    location: str | None = None
    employee_size_range: str | None = None
    revenue_range: str | None = None


class RefillRequest(BaseModel):
    candidates: list[CandidateIn] = Field(..., max_length=500)


class CandidateOut(BaseModel):
    id: int
    provider_id: str
    name: str | None = None
    domain: str | None = None
    industry: str | None = None
    location: str | None = None
    employee_size_range: str | None = None
    revenue_range: str | None = None
    status: str
    fit_score: int
    decided_at: str | None = None
    archived_at: str | None = None


class QuotaOut(BaseModel):
    date: str
    accepted_today: int
    daily_limit: int
    remaining: int
    limit_reached: bool
