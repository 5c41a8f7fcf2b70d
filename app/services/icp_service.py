"""ICP service — save targeting criteria and rescore every stored candidate.

Saving a profile validates the weights first (InvalidWeights, nothing
written), then writes the profile and every candidate's new fit_score in a
single commit. If anything fails the whole pass rolls back, so candidates
keep the scores from the previous weight set.

Also owns the one-time contact-title seeding that runs on a user's first
accept.

Called by: routers/icp.py, routers/triage.py
Depends on: scoring.py, services/candidate_store.py, models
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Candidate, IcpProfile, User
from app.scoring import IcpWeights, score, validate_weights

from .candidate_store import PersistenceFailure

log = logging.getLogger("scout.icp")

PROFILE_FIELDS = ("industries", "locations", "is_nationwide", "company_sizes", "revenue_ranges")

# Seeded into User.contact_titles the first time a user accepts a company
DEFAULT_CONTACT_TITLES = [
    "CEO",
    "Founder",
    "VP Sales",
    "VP Marketing",
    "Chief Revenue Officer",
    "Director of Sales",
    "Head of Growth",
]


def get_profile(db: Session, user_id: int) -> IcpProfile | None:
    try:
        return db.query(IcpProfile).filter_by(user_id=user_id).first()
    except SQLAlchemyError as e:
        db.rollback()
        raise PersistenceFailure("Could not load ICP profile") from e


def rescore_candidates(db: Session, profile, weights: IcpWeights) -> int:
    """Recompute fit_score for all of the profile owner's candidates.

    Does not commit; the caller owns the transaction. Returns how many
    scores changed.
    """
    changed = 0
    for candidate in db.query(Candidate).filter(Candidate.user_id == profile.user_id):
        new_score = score(candidate, profile, weights)
        if candidate.fit_score != new_score:
            candidate.fit_score = new_score
            changed += 1
    return changed


def save_profile(db: Session, user_id: int, data: dict) -> tuple[IcpProfile, int]:
    """Upsert the user's ICP and rescore their candidates atomically.

    `data` holds the PROFILE_FIELDS plus a "weights" dict keyed
    industry/location/employee_size/revenue. Returns (profile, rescored).
    """
    weights = validate_weights(IcpWeights(**data["weights"]))

    try:
        profile = db.query(IcpProfile).filter_by(user_id=user_id).first()
        if profile is None:
            profile = IcpProfile(user_id=user_id)
            db.add(profile)
        for field in PROFILE_FIELDS:
            if field in data:
                value = data[field]
                setattr(profile, field, list(value) if isinstance(value, (set, tuple)) else value)
        profile.weight_industry = weights.industry
        profile.weight_location = weights.location
        profile.weight_employee_size = weights.employee_size
        profile.weight_revenue = weights.revenue

        rescored = rescore_candidates(db, profile, weights)
        profile.last_rescored_at = datetime.now(timezone.utc)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log.warning("ICP save/rescore failed for user %s: %s", user_id, e)
        raise PersistenceFailure("Could not save ICP profile") from e

    log.info("Saved ICP for user %s; %d candidate scores changed", user_id, rescored)
    return profile, rescored


def seed_contact_titles(db: Session, user_id: int) -> bool:
    """Give the user default target titles if they have none. Idempotent."""
    user = db.get(User, user_id)
    if user is None or user.contact_titles:
        return False
    user.contact_titles = list(DEFAULT_CONTACT_TITLES)
    db.commit()
    log.info("Seeded default contact titles for user %s", user_id)
    return True
