"""ICP router — read/save targeting criteria and explain a candidate's score.

Saving rescores every stored candidate in the same transaction and drops
the user's live triage queue so its order reloads with the new scores.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_user
from ..models import User
from ..schemas.icp import IcpProfileIn, IcpProfileOut
from ..scoring import DEFAULT_WEIGHTS, IcpWeights, score_breakdown
from ..services.candidate_store import CandidateStore
from ..services.icp_service import get_profile, save_profile
from ..services.triage_service import registry

router = APIRouter(tags=["icp"])
log = logging.getLogger("scout.routers.icp")


def _profile_out(profile, rescored: int | None = None) -> dict:
    if profile is None:
        return IcpProfileOut(weights=DEFAULT_WEIGHTS.as_dict()).model_dump()
    return IcpProfileOut(
        industries=profile.industries or [],
        locations=profile.locations or [],
        is_nationwide=bool(profile.is_nationwide),
        company_sizes=profile.company_sizes or [],
        revenue_ranges=profile.revenue_ranges or [],
        weights=IcpWeights.from_profile(profile).as_dict(),
        last_rescored_at=profile.last_rescored_at.isoformat() if profile.last_rescored_at else None,
        rescored=rescored,
    ).model_dump()


@router.get("/api/icp")
def api_get_icp(user: User = Depends(require_user), db: Session = Depends(get_db)):
    return _profile_out(get_profile(db, user.id))


@router.put("/api/icp")
def api_save_icp(
    body: IcpProfileIn,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Save the ICP; every candidate is rescored before this returns."""
    profile, rescored = save_profile(db, user.id, body.model_dump())
    registry.drop(user.id)
    return _profile_out(profile, rescored)


@router.get("/api/icp/breakdown/{candidate_id}")
def api_score_breakdown(
    candidate_id: int,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    candidate = CandidateStore(db).get_candidate(user.id, candidate_id)
    if candidate is None:
        raise HTTPException(404, "Candidate not found")
    profile = get_profile(db, user.id)
    if profile is None:
        raise HTTPException(404, "No ICP profile saved yet")
    breakdown = score_breakdown(candidate, profile, IcpWeights.from_profile(profile))
    return {"candidate_id": candidate.id, **breakdown.to_dict()}
