"""Enrichment router — cached company and contact enrichment.

Provider failures never become HTTP errors here: the response carries
`outcome` and `degraded` so the UI can show "data may be outdated".
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from ..cache.enrichment_cache import EnrichmentCache
from ..config import settings
from ..connectors.apollo_client import (
    ApolloCompanyProvider,
    ApolloContactProvider,
    assess_enrichment_viability,
    company_identity,
    contact_identity,
)
from ..dependencies import get_store, require_user
from ..models import User
from ..rate_limit import limiter
from ..services.candidate_store import CandidateStore

router = APIRouter(tags=["enrichment"])
log = logging.getLogger("scout.routers.enrichment")

company_provider = ApolloCompanyProvider()
contact_provider = ApolloContactProvider()


@router.get("/api/enrichment/company/{candidate_id}")
@limiter.limit(settings.rate_limit_enrichment)
async def api_enrich_company(
    candidate_id: int,
    request: Request,
    user: User = Depends(require_user),
    store: CandidateStore = Depends(get_store),
):
    candidate = store.get_candidate(user.id, candidate_id)
    if candidate is None:
        raise HTTPException(404, "Candidate not found")
    if candidate.status not in ("accepted", "archived"):
        raise HTTPException(409, "Only accepted companies can be enriched")

    cache = EnrichmentCache("company", company_provider, store)
    result = await cache.get(user.id, candidate.id, company_identity(candidate))
    return result.to_dict()


@router.get("/api/enrichment/contact/{contact_id}")
@limiter.limit(settings.rate_limit_enrichment)
async def api_enrich_contact(
    contact_id: int,
    request: Request,
    user: User = Depends(require_user),
    store: CandidateStore = Depends(get_store),
):
    contact = store.get_contact(user.id, contact_id)
    if contact is None:
        raise HTTPException(404, "Contact not found")

    identity = contact_identity(contact)
    cache = EnrichmentCache("contact", contact_provider, store)
    result = await cache.get(user.id, contact.id, identity)
    return {**result.to_dict(), "viability": assess_enrichment_viability(identity)}
