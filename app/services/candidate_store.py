"""Candidate store — persistence for candidates, quota and enrichment records.

Thin wrapper over a SQLAlchemy Session. Every write commits on its own so
decide/undo/refill are all-or-nothing; any SQLAlchemyError (including a
StaleDataError from a version-token conflict) rolls back and surfaces as
PersistenceFailure, which callers treat as retryable.

Called by: services/triage_service.py, services/icp_service.py,
           cache/enrichment_cache.py, routers/*
Depends on: models (Candidate, QuotaRecord, EnrichmentRecord)
"""

import logging
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models import Candidate, EnrichmentRecord, ProspectContact, QuotaRecord

from .quota import QuotaState

log = logging.getLogger("scout.store")


class PersistenceFailure(Exception):
    """A store read or write failed; nothing was applied. Safe to retry."""


class CandidateStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _guard(self, action: str):
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            log.warning("Store %s failed: %s", action, e)
            raise PersistenceFailure(f"Could not {action}") from e

    # ── Candidates ────────────────────────────────────────────────────

    def get_candidate(
        self, user_id: int, candidate_id: int, *, refresh: bool = False
    ) -> Candidate | None:
        """Load one candidate. refresh=True overwrites any copy this session
        already holds with the committed row."""
        with self._guard("load candidate"):
            query = self.db.query(Candidate).filter(
                Candidate.id == candidate_id, Candidate.user_id == user_id
            )
            if refresh:
                query = query.populate_existing()
            return query.first()

    def list_by_status(self, user_id: int, status: str) -> list[Candidate]:
        """Candidates with a status, best fit first, then oldest first."""
        with self._guard("list candidates"):
            return (
                self.db.query(Candidate)
                .filter(Candidate.user_id == user_id, Candidate.status == status)
                .order_by(Candidate.fit_score.desc(), Candidate.created_at, Candidate.id)
                .all()
            )

    def list_all(self, user_id: int) -> list[Candidate]:
        with self._guard("list candidates"):
            return self.db.query(Candidate).filter(Candidate.user_id == user_id).all()

    def known_provider_ids(self, user_id: int) -> set[str]:
        with self._guard("load known candidates"):
            rows = (
                self.db.query(Candidate.provider_id)
                .filter(Candidate.user_id == user_id)
                .all()
            )
        return {r[0] for r in rows}

    def create_candidates(self, user_id: int, drafts: list[dict]) -> list[Candidate]:
        """Insert pending candidates in one transaction, in the given order."""
        created = [Candidate(user_id=user_id, status="pending", **d) for d in drafts]
        with self._guard("save new candidates"):
            self.db.add_all(created)
            self.db.commit()
        return created

    def record_decision(
        self,
        candidate: Candidate,
        status: str,
        decided_at: datetime,
        quota: QuotaRecord,
        new_quota: QuotaState,
    ) -> None:
        """Write a triage decision and the resulting quota together."""
        with self._guard("save decision"):
            candidate.status = status
            candidate.decided_at = decided_at
            _write_quota(quota, new_quota)
            self.db.commit()

    def revert_decision(
        self,
        candidate: Candidate,
        status: str,
        quota: QuotaRecord,
        prior_quota: QuotaState,
    ) -> None:
        with self._guard("undo decision"):
            candidate.status = status
            candidate.decided_at = None
            quota.daily_accept_count = prior_quota.daily_accept_count
            quota.quota_date = prior_quota.quota_date
            self.db.commit()

    def set_status(self, candidate: Candidate, status: str, **fields) -> None:
        with self._guard(f"mark candidate {status}"):
            candidate.status = status
            for k, v in fields.items():
                setattr(candidate, k, v)
            self.db.commit()

    def get_contact(self, user_id: int, contact_id: int) -> ProspectContact | None:
        with self._guard("load contact"):
            return (
                self.db.query(ProspectContact)
                .join(Candidate, ProspectContact.candidate_id == Candidate.id)
                .filter(ProspectContact.id == contact_id, Candidate.user_id == user_id)
                .first()
            )

    # ── Quota ─────────────────────────────────────────────────────────

    def get_quota(self, user_id: int, *, refresh: bool = False) -> QuotaRecord:
        """Load the user's quota record, creating an empty one on first use."""
        with self._guard("load quota"):
            query = self.db.query(QuotaRecord).filter_by(user_id=user_id)
            if refresh:
                query = query.populate_existing()
            quota = query.first()
            if quota is None:
                quota = QuotaRecord(user_id=user_id, daily_accept_count=0, quota_date="")
                self.db.add(quota)
                self.db.commit()
        return quota

    # ── Enrichment ────────────────────────────────────────────────────

    def get_enrichment(
        self, user_id: int, entity_type: str, entity_id: int
    ) -> EnrichmentRecord | None:
        with self._guard("load enrichment"):
            return (
                self.db.query(EnrichmentRecord)
                .filter_by(user_id=user_id, entity_type=entity_type, entity_id=entity_id)
                .first()
            )

    def save_enrichment(
        self,
        user_id: int,
        entity_type: str,
        entity_id: int,
        payload: dict,
        fetched_at: datetime,
        source_id: str | None,
    ) -> EnrichmentRecord:
        """Upsert the record; an older or equal fetched_at never replaces it."""
        with self._guard("save enrichment"):
            record = (
                self.db.query(EnrichmentRecord)
                .filter_by(user_id=user_id, entity_type=entity_type, entity_id=entity_id)
                .first()
            )
            if record is None:
                record = EnrichmentRecord(
                    user_id=user_id, entity_type=entity_type, entity_id=entity_id
                )
                self.db.add(record)
            elif record.fetched_at and fetched_at <= record.fetched_at:
                log.info(
                    "Skipping enrichment write for %s:%s, stored copy is newer",
                    entity_type,
                    entity_id,
                )
                return record
            record.payload = payload
            record.fetched_at = fetched_at
            if source_id:
                record.source_id = source_id
            self.db.commit()
        return record


def _write_quota(quota: QuotaRecord, state: QuotaState) -> None:
    quota.daily_accept_count = state.daily_accept_count
    quota.quota_date = state.quota_date
    quota.has_seen_followup_prompt = state.has_seen_followup_prompt
