"""schemas/enrichment.py — Pydantic models for cached enrichment responses."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class EnrichmentOut(BaseModel):
    entity_type: Literal["company", "contact"]
    entity_id: int
    outcome: Literal["hit", "fresh", "stale_fallback", "cold_fallback"]
    degraded: bool
    payload: dict | None = None
    fetched_at: str | None = None
    source_id: str | None = None
    local: dict = {}
    error: str | None = None
    viability: dict | None = None
