"""Apollo.io client — enrichment provider for companies and contacts.

Two providers, one HTTP call per fetch:
  1. ApolloCompanyProvider — organizations/enrich by domain, or the
     organization record by Apollo id once it is known
  2. ApolloContactProvider — people/match by Apollo id, LinkedIn URL,
     name + company, or name + email

Both return ProviderResult(payload, source_id) or raise ProviderFailure
(missing API key, not enough identity, timeout, non-200, empty body).
Timeouts are handled here; callers only ever see ProviderFailure.

API docs: https://docs.apollo.io/reference/organization-enrichment
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app.config import settings
from app.http_client import http

log = logging.getLogger("scout.apollo")

APOLLO_BASE = "https://api.apollo.io/api/v1"

# Tech categories shown first in the company tech stack
_PRIORITY_TECH = (
    "crm",
    "customer relationship management",
    "marketing automation",
    "email marketing",
    "analytics",
    "data",
    "business intelligence",
)

# Job posting keywords that signal a go-to-market hiring push
_GTM_KEYWORDS = (
    "sales",
    "revenue",
    "business development",
    "account executive",
    "marketing",
    "demand gen",
    "growth",
    "revops",
    "sales ops",
    "revenue operations",
    "operations manager",
    "ops",
)


class ProviderFailure(Exception):
    """The provider could not return data for this entity."""


@dataclass(frozen=True)
class ProviderResult:
    payload: dict
    source_id: str | None


def _api_key() -> str:
    key = getattr(settings, "apollo_api_key", "")
    if not key:
        raise ProviderFailure("Apollo API key not configured")
    return key


async def _request(method: str, path: str, **kwargs) -> dict:
    try:
        resp = await http.request(
            method,
            f"{APOLLO_BASE}{path}",
            timeout=settings.provider_timeout_seconds,
            **kwargs,
        )
    except httpx.HTTPError as e:
        raise ProviderFailure(f"Apollo request failed: {e.__class__.__name__}") from e

    if resp.status_code != 200:
        log.warning("Apollo %s failed: %s %s", path, resp.status_code, resp.text[:200])
        raise ProviderFailure(f"Apollo returned {resp.status_code}")
    try:
        return resp.json()
    except ValueError as e:
        raise ProviderFailure("Apollo returned invalid JSON") from e


# ── Companies ────────────────────────────────────────────────────────


def hiring_velocity(job_count: int) -> str:
    if job_count >= 20:
        return "High"
    if job_count >= 5:
        return "Medium"
    return "Low"


def _format_location(org: dict) -> str:
    loc = org.get("primary_location") or {}
    city = loc.get("city") or org.get("city")
    state = loc.get("state") or org.get("state")
    country = loc.get("country") or org.get("country")
    parts = [p for p in (city, state) if p]
    if country and country != "United States":
        parts.append(country)
    return ", ".join(parts) if parts else "Unknown"


def _gtm_job_postings(postings: list[dict]) -> list[dict]:
    relevant = [
        p for p in postings
        if any(k in (p.get("title") or "").lower() for k in _GTM_KEYWORDS)
    ]
    return relevant[:5]


def _tech_stack(technologies: list[dict]) -> list[dict]:
    def is_priority(tech: dict) -> bool:
        name = (tech.get("name") or "").lower()
        category = (tech.get("category") or "").lower()
        return any(p in name or p in category for p in _PRIORITY_TECH)

    # sorted() is stable, so non-priority tools keep provider order
    ranked = sorted(technologies, key=lambda t: not is_priority(t))
    return [
        {"name": t.get("name"), "category": t.get("category"), "uid": t.get("uid")}
        for t in ranked[:6]
    ]


def shape_company_payload(org: dict) -> dict:
    """Group an Apollo organization into the sections the company view shows."""
    headcounts = org.get("department_headcounts") or {}
    job_count = org.get("total_job_openings") or org.get("job_postings_count") or 0
    return {
        "snapshot": {
            "name": org.get("name"),
            "website_url": org.get("website_url"),
            "domain": org.get("primary_domain"),
            "industry": org.get("industry"),
            "description": org.get("short_description") or org.get("description"),
            "keywords": org.get("keywords") or [],
            "phone": org.get("phone") or org.get("sanitized_phone"),
            "estimated_num_employees": org.get("estimated_num_employees"),
            "annual_revenue": org.get("annual_revenue"),
            "revenue_range": org.get("estimated_annual_revenue"),
            "founded_year": org.get("founded_year"),
            "location": _format_location(org),
        },
        "growth": {
            "employee_growth_6mo": org.get("employee_growth_6mo"),
            "employee_growth_12mo": org.get("employee_growth_12mo"),
            "job_postings_count": job_count,
            "job_postings": _gtm_job_postings(org.get("job_postings") or []),
            "hiring_velocity": hiring_velocity(job_count),
        },
        "departments": {
            dept: headcounts.get(dept)
            for dept in ("sales", "marketing", "engineering", "operations", "finance")
        },
        "tech_stack": _tech_stack(org.get("current_technologies") or []),
        "data_quality": {
            "organization_status": org.get("organization_status") or "active",
            "linkedin_url": org.get("linkedin_url"),
            "data_source": "Apollo",
            "confidence": "high" if org.get("sanitized_phone") else "medium",
        },
    }


class ApolloCompanyProvider:
    """Company enrichment. Identity: {"domain": ...}."""

    entity_type = "company"

    async def fetch(self, identity: dict, source_id: str | None = None) -> ProviderResult:
        api_key = _api_key()
        headers = {"X-Api-Key": api_key, "Cache-Control": "no-cache"}

        if source_id:
            data = await _request("GET", f"/organizations/{source_id}", headers=headers)
        else:
            domain = (identity.get("domain") or "").strip()
            if not domain:
                raise ProviderFailure("Company has no domain to enrich by")
            data = await _request(
                "GET", "/organizations/enrich", params={"domain": domain}, headers=headers
            )

        org = data.get("organization")
        if not org:
            raise ProviderFailure("Organization data not found")
        return ProviderResult(payload=shape_company_payload(org), source_id=org.get("id") or source_id)


# ── Contacts ─────────────────────────────────────────────────────────


def assess_enrichment_viability(contact: dict) -> dict:
    """Whether a contact carries enough identifiers for a reliable match."""
    has_linkedin = "linkedin.com" in (contact.get("linkedin_url") or "")
    has_apollo_id = bool(contact.get("apollo_person_id"))
    has_name = bool((contact.get("name") or "").strip())
    has_company = bool(contact.get("company_name"))
    has_email = "@" in (contact.get("email") or "")

    if has_apollo_id:
        return {"can_enrich": True, "quality": "high", "reason": "Has Apollo ID"}
    if has_linkedin:
        return {"can_enrich": True, "quality": "high", "reason": "Has LinkedIn URL"}
    if has_name and has_company:
        return {"can_enrich": True, "quality": "medium", "reason": "Has name + company"}
    if has_name and has_email:
        return {"can_enrich": True, "quality": "medium", "reason": "Has name + email"}
    if has_name:
        return {"can_enrich": False, "quality": "low", "reason": "Name only - needs LinkedIn or company"}
    return {"can_enrich": False, "quality": "none", "reason": "Insufficient data for enrichment"}


def enrichment_status(payload: dict | None, local: dict) -> str:
    """enriched (email + LinkedIn), partial (something found), or failed."""
    if not payload:
        return "failed"
    has_email = bool(payload.get("email") or local.get("email"))
    has_linkedin = bool(payload.get("linkedin_url") or local.get("linkedin_url"))
    if has_email and has_linkedin:
        return "enriched"
    found = [k for k, v in payload.items() if v not in (None, "", [], {})]
    return "partial" if found else "failed"


def _best_phone(person: dict) -> str | None:
    phones = person.get("phone_numbers") or []
    for p in phones:
        if p.get("sanitized_number"):
            return p["sanitized_number"]
    return phones[0].get("raw_number") if phones else None


def shape_contact_payload(person: dict) -> dict:
    return {
        "email": person.get("email"),
        "email_status": person.get("email_status"),
        "phone": _best_phone(person),
        "linkedin_url": person.get("linkedin_url"),
        "twitter_url": person.get("twitter_url"),
        "title": person.get("title"),
        "headline": person.get("headline"),
        "seniority": person.get("seniority"),
        "departments": person.get("departments") or [],
        "employment_history": person.get("employment_history") or [],
        "city": person.get("city"),
        "state": person.get("state"),
        "country": person.get("country"),
        "photo_url": person.get("photo_url"),
    }


class ApolloContactProvider:
    """Contact enrichment. Identity: name, email, linkedin_url,
    apollo_person_id, company_name, domain."""

    entity_type = "contact"

    async def fetch(self, identity: dict, source_id: str | None = None) -> ProviderResult:
        api_key = _api_key()
        apollo_id = source_id or identity.get("apollo_person_id")
        if not apollo_id:
            viability = assess_enrichment_viability(identity)
            if not viability["can_enrich"]:
                raise ProviderFailure(viability["reason"])

        payload: dict[str, Any] = {}
        if apollo_id:
            payload["id"] = apollo_id
        else:
            for src, dest in (
                ("linkedin_url", "linkedin_url"),
                ("name", "name"),
                ("email", "email"),
                ("company_name", "organization_name"),
                ("domain", "domain"),
            ):
                if identity.get(src):
                    payload[dest] = identity[src]

        data = await _request(
            "POST",
            "/people/match",
            json=payload,
            headers={"Content-Type": "application/json", "X-Api-Key": api_key},
        )
        person = data.get("person")
        if not person:
            raise ProviderFailure("Person data not found")

        shaped = shape_contact_payload(person)
        shaped["enrichment_status"] = enrichment_status(shaped, identity)
        return ProviderResult(payload=shaped, source_id=person.get("id") or apollo_id)


# ── Identities ───────────────────────────────────────────────────────


def company_identity(candidate) -> dict:
    return {
        "name": candidate.name,
        "domain": candidate.domain,
        "industry": candidate.industry,
        "location": candidate.location,
    }


def contact_identity(contact) -> dict:
    candidate = contact.candidate
    return {
        "name": contact.name,
        "title": contact.title,
        "email": contact.email,
        "linkedin_url": contact.linkedin_url,
        "apollo_person_id": contact.apollo_person_id,
        "company_name": candidate.name if candidate else None,
        "domain": candidate.domain if candidate else None,
    }
