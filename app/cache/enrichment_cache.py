"""Enrichment cache — time-boxed provider data with degraded-mode fallback.

Used for: company enrichment (7-day window), contact enrichment (14-day
window). Records live in the enrichment_records table via CandidateStore.

get() does at most one provider fetch and always returns an
EnrichmentResult whose `outcome` says where the data came from:

    HIT             stored record inside the staleness window, no fetch
    FRESH           fetched now, persisted, returned
    STALE_FALLBACK  fetch failed, previous record returned unchanged
    COLD_FALLBACK   fetch failed, nothing stored; local fields only

The two fallbacks are `degraded`. ProviderFailure never escapes; a failed
save after a successful fetch does (PersistenceFailure).

Called by: routers/enrichment.py
Depends on: services/candidate_store.py, connectors/apollo_client.py
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable

from app.config import settings
from app.connectors.apollo_client import ProviderFailure
from app.services.candidate_store import CandidateStore

log = logging.getLogger("scout.cache")


class CacheOutcome(str, Enum):
    HIT = "hit"
    FRESH = "fresh"
    STALE_FALLBACK = "stale_fallback"
    COLD_FALLBACK = "cold_fallback"


@dataclass
class EnrichmentResult:
    entity_type: str
    entity_id: int
    outcome: CacheOutcome
    payload: dict | None
    fetched_at: datetime | None
    source_id: str | None = None
    local: dict = field(default_factory=dict)
    error: str | None = None

    @property
    def degraded(self) -> bool:
        return self.outcome in (CacheOutcome.STALE_FALLBACK, CacheOutcome.COLD_FALLBACK)

    def to_dict(self) -> dict:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "outcome": self.outcome.value,
            "degraded": self.degraded,
            "payload": self.payload,
            "fetched_at": self.fetched_at.isoformat() if self.fetched_at else None,
            "source_id": self.source_id,
            "local": self.local,
            "error": self.error,
        }


def default_staleness(entity_type: str) -> timedelta:
    days = {
        "company": settings.company_enrichment_ttl_days,
        "contact": settings.contact_enrichment_ttl_days,
    }[entity_type]
    return timedelta(days=days)


def _aware(ts: datetime) -> datetime:
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


class EnrichmentCache:
    """One cache per entity type, bound to a provider and a store."""

    def __init__(
        self,
        entity_type: str,
        provider,
        store: CandidateStore,
        clock: Callable[[], datetime] | None = None,
    ):
        self.entity_type = entity_type
        self.provider = provider
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def get(
        self,
        user_id: int,
        entity_id: int,
        identity: dict,
        staleness: timedelta | None = None,
    ) -> EnrichmentResult:
        """Serve enrichment for one entity.

        `identity` carries the locally known fields (name, domain, ...). They
        go to the provider when no source_id is stored yet, and make up the
        whole result on a cold fallback.
        """
        staleness = staleness if staleness is not None else default_staleness(self.entity_type)
        now = self._clock()
        record = self.store.get_enrichment(user_id, self.entity_type, entity_id)

        if record is not None and record.fetched_at is not None:
            if now - _aware(record.fetched_at) < staleness:
                return self._from_record(record, CacheOutcome.HIT, identity)

        source_id = record.source_id if record is not None else None
        try:
            fetched = await self.provider.fetch(identity, source_id)
        except ProviderFailure as e:
            log.warning(
                "Enrichment fetch failed for %s %s: %s", self.entity_type, entity_id, e
            )
            if record is not None and record.payload is not None:
                return self._from_record(record, CacheOutcome.STALE_FALLBACK, identity, error=str(e))
            return EnrichmentResult(
                entity_type=self.entity_type,
                entity_id=entity_id,
                outcome=CacheOutcome.COLD_FALLBACK,
                payload=None,
                fetched_at=None,
                source_id=source_id,
                local=dict(identity),
                error=str(e),
            )

        saved = self.store.save_enrichment(
            user_id,
            self.entity_type,
            entity_id,
            fetched.payload,
            now,
            fetched.source_id,
        )
        log.info("Enriched %s %s (source %s)", self.entity_type, entity_id, saved.source_id)
        # A concurrent writer may have stored a newer copy; serve what is stored
        return self._from_record(saved, CacheOutcome.FRESH, identity)

    def _from_record(self, record, outcome: CacheOutcome, identity: dict, error=None):
        return EnrichmentResult(
            entity_type=self.entity_type,
            entity_id=record.entity_id,
            outcome=outcome,
            payload=record.payload,
            fetched_at=_aware(record.fetched_at),
            source_id=record.source_id,
            local=dict(identity),
            error=error,
        )
