"""
dependencies.py — Shared FastAPI Dependencies

Session-based user resolution and per-request service wiring. Routers
import from here instead of building stores or queues themselves.

Business Rules:
- get_user returns None if not logged in (non-throwing)
- require_user raises 401 if not logged in, 403 if deactivated
- get_queue hands back a handle on the user's live triage queue that
  carries this request's session, ICP profile and first-accept hook

Called by: all routers
Depends on: models, database, services
"""

import logging

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .scoring import DEFAULT_WEIGHTS, IcpWeights
from .services.candidate_store import CandidateStore
from .services.icp_service import get_profile, seed_contact_titles
from .services.triage_service import QueueHandle, registry

log = logging.getLogger("scout.deps")


# ── Authentication ────────────────────────────────────────────────────


def get_user(request: Request, db: Session) -> User | None:
    """Return current user from session, or None if not logged in."""
    uid = request.session.get("user_id")
    if not uid:
        return None
    try:
        return db.get(User, uid)
    except SQLAlchemyError:
        db.rollback()
        request.session.clear()
        return None


def require_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Dependency: raises 401 if no authenticated user, 403 if deactivated."""
    user = get_user(request, db)
    if not user:
        raise HTTPException(401, "Not authenticated")
    if not getattr(user, "is_active", True):
        request.session.clear()
        raise HTTPException(403, "Account deactivated")
    return user


# ── Services ──────────────────────────────────────────────────────────


def get_store(db: Session = Depends(get_db)) -> CandidateStore:
    return CandidateStore(db)


def get_queue(
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
) -> QueueHandle:
    """Dependency: this request's handle on the user's triage queue."""
    profile = get_profile(db, user.id)
    weights = IcpWeights.from_profile(profile) if profile else DEFAULT_WEIGHTS

    def _first_accept(candidate):
        seed_contact_titles(db, user.id)

    return registry.checkout(
        user.id,
        CandidateStore(db),
        profile=profile,
        weights=weights,
        on_first_accept=_first_accept,
    )
