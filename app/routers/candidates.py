"""Candidates router — review list and archive/unarchive of accepted companies."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from ..dependencies import get_store, require_user
from ..models import Candidate, User
from ..schemas.triage import CandidateOut
from ..services.candidate_store import CandidateStore

router = APIRouter(tags=["candidates"])
log = logging.getLogger("scout.routers.candidates")

# Allowed manual transitions: from -> to
_ARCHIVE_MOVES = {"archive": ("accepted", "archived"), "unarchive": ("archived", "accepted")}


def candidate_out(c: Candidate) -> dict:
    return CandidateOut(
        id=c.id,
        provider_id=c.provider_id,
        name=c.name,
        domain=c.domain,
        industry=c.industry,
        location=c.location,
        employee_size_range=c.employee_size_range,
        revenue_range=c.revenue_range,
        status=c.status,
        fit_score=c.fit_score or 0,
        decided_at=c.decided_at.isoformat() if c.decided_at else None,
        archived_at=c.archived_at.isoformat() if c.archived_at else None,
    ).model_dump()


@router.get("/api/candidates")
def api_list_candidates(
    status: str = Query("accepted", pattern="^(pending|accepted|rejected|archived)$"),
    user: User = Depends(require_user),
    store: CandidateStore = Depends(get_store),
):
    """List a user's candidates by status, best fit first."""
    rows = store.list_by_status(user.id, status)
    return {"items": [candidate_out(c) for c in rows], "total": len(rows)}


def _move(action: str, candidate_id: int, user: User, store: CandidateStore) -> dict:
    source, target = _ARCHIVE_MOVES[action]
    candidate = store.get_candidate(user.id, candidate_id)
    if candidate is None:
        raise HTTPException(404, "Candidate not found")
    if candidate.status != source:
        raise HTTPException(409, f"Only {source} candidates can be {target}")
    archived_at = datetime.now(timezone.utc) if target == "archived" else None
    store.set_status(candidate, target, archived_at=archived_at)
    log.info("User %s %sd candidate %s", user.id, action, candidate_id)
    return candidate_out(candidate)


@router.post("/api/candidates/{candidate_id}/archive")
def api_archive(
    candidate_id: int,
    user: User = Depends(require_user),
    store: CandidateStore = Depends(get_store),
):
    return _move("archive", candidate_id, user, store)


@router.post("/api/candidates/{candidate_id}/unarchive")
def api_unarchive(
    candidate_id: int,
    user: User = Depends(require_user),
    store: CandidateStore = Depends(get_store),
):
    return _move("unarchive", candidate_id, user, store)
