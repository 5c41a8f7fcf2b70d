"""Triage queue — one-at-a-time accept/reject with a daily accept quota.

State machine per user:
    idle ──refill──▶ presenting ──decide──▶ presenting(next) | exhausted
    exhausted ──refill(new)──▶ presenting

decide() re-reads the presented candidate and the quota row, enforces the
accept quota against the stored count, persists the decision and the quota
in one write, and keeps a single undo slot. undo() restores the candidate's
previous status and the quota counter/date verbatim. The followup-prompt
flag is not restored, so the first-accept hook fires once per user, ever.

In-memory state (pending order, cursor, undo slot) only changes after the
store write succeeds; a PersistenceFailure leaves the presented candidate in
place for a retry. Operations on one queue are serialized by its lock.

The registry's queues outlive requests, so they never keep a request's
session: each call takes the caller's store, and QueueHandle carries it.

Usage:
    handle = registry.checkout(user_id, CandidateStore(db), profile=profile)
    result = handle.decide("accept")
    handle.undo()

Called by: dependencies.py, routers/triage.py
Depends on: services/candidate_store.py, services/quota.py, scoring.py
"""

import itertools
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable, Optional

from app.config import settings
from app.models import Candidate
from app.scoring import DEFAULT_WEIGHTS, IcpWeights, score

from .candidate_store import CandidateStore
from .quota import (
    QuotaState,
    apply_accept,
    is_exhausted,
    quota_status,
    quota_today,
    reference_tz,
)

log = logging.getLogger("scout.triage")

DIRECTIONS = {"accept": "accepted", "reject": "rejected"}

FirstAcceptHook = Callable[[Candidate], None]


class QuotaExceeded(Exception):
    """Accept attempted after today's limit. Reject and review still work."""

    def __init__(self, limit: int, accepted_today: int):
        self.limit = limit
        self.accepted_today = accepted_today
        super().__init__(f"Daily limit reached: {accepted_today}/{limit} accepts today")


class NothingToDecide(Exception):
    """decide() called while no candidate is presented, or the presented
    one was already decided elsewhere."""


class QueueState(str, Enum):
    IDLE = "idle"
    PRESENTING = "presenting"
    DECIDING = "deciding"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class _Entry:
    candidate_id: int
    provider_id: str
    fit_score: int
    seq: int  # insertion order, breaks fit_score ties

    @property
    def sort_key(self):
        return (-self.fit_score, self.seq)


@dataclass(frozen=True)
class UndoSlot:
    entry: _Entry
    previous_status: str
    decided_status: str
    previous_quota: QuotaState
    cursor: int


@dataclass(frozen=True)
class DecisionResult:
    candidate_id: int
    status: str
    quota: QuotaState
    first_accept: bool
    next_candidate_id: Optional[int]


class TriageQueue:
    def __init__(
        self,
        user_id: int,
        store: CandidateStore | None = None,
        *,
        profile=None,
        weights: IcpWeights | None = None,
        daily_limit: int | None = None,
        tz=None,
        on_first_accept: FirstAcceptHook | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.user_id = user_id
        # Defaults for callers that own the queue outright; shared queues get
        # everything per call.
        self.store = store
        self.profile = profile
        self.weights = weights or DEFAULT_WEIGHTS
        self.daily_limit = daily_limit if daily_limit is not None else settings.daily_accept_limit
        self.tz = tz or reference_tz()
        self.on_first_accept = on_first_accept
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self.state = QueueState.IDLE
        self.quota = QuotaState()
        self._pending: list[_Entry] = []
        self._cursor = 0
        self._undo: UndoSlot | None = None
        self._seq = itertools.count()
        self._lock = threading.Lock()

    def _store(self, store: CandidateStore | None) -> CandidateStore:
        store = store or self.store
        if store is None:
            raise RuntimeError(f"Triage queue for user {self.user_id} has no store")
        return store

    # ── Loading ───────────────────────────────────────────────────────

    def load(self, store: CandidateStore | None = None) -> "TriageQueue":
        """Read pending candidates and the quota record from the store."""
        with self._lock:
            store = self._store(store)
            rows = store.list_by_status(self.user_id, "pending")
            quota = QuotaState.from_record(store.get_quota(self.user_id))
            # seq follows discovery order, the list itself follows fit
            by_age = sorted(rows, key=lambda c: (c.created_at or datetime.min.replace(tzinfo=timezone.utc), c.id))
            self._pending = sorted(
                (self._entry_for(c) for c in by_age), key=lambda e: e.sort_key
            )
            self.quota = quota
            self._cursor = 0
            self._undo = None
            self.state = QueueState.PRESENTING if self._pending else QueueState.IDLE
        return self

    def _entry_for(self, candidate: Candidate) -> _Entry:
        return _Entry(
            candidate_id=candidate.id,
            provider_id=candidate.provider_id,
            fit_score=candidate.fit_score or 0,
            seq=next(self._seq),
        )

    # ── Views ─────────────────────────────────────────────────────────

    @property
    def today(self) -> str:
        return quota_today(self._clock(), self.tz)

    @property
    def current_id(self) -> Optional[int]:
        if self.state != QueueState.PRESENTING or not self._pending:
            return None
        return self._pending[self._cursor].candidate_id

    @property
    def pending_ids(self) -> list[int]:
        return [e.candidate_id for e in self._pending]

    @property
    def can_undo(self) -> bool:
        return self._undo is not None

    def current(self, store: CandidateStore | None = None) -> Optional[Candidate]:
        cid = self.current_id
        return self._store(store).get_candidate(self.user_id, cid) if cid is not None else None

    def status(self) -> dict:
        with self._lock:
            return {
                "state": self.state.value,
                "current_id": self.current_id,
                "pending": len(self._pending),
                "can_undo": self.can_undo,
                "quota": quota_status(self.quota, self.today, self.daily_limit),
            }

    # ── Operations ────────────────────────────────────────────────────

    def decide(
        self,
        direction: str,
        *,
        store: CandidateStore | None = None,
        on_first_accept: FirstAcceptHook | None = None,
    ) -> DecisionResult:
        """Apply accept/reject to the presented candidate and advance."""
        if direction not in DIRECTIONS:
            raise ValueError(f"Unknown direction: {direction!r}")
        hook = on_first_accept or self.on_first_accept

        with self._lock:
            store = self._store(store)
            if self.state != QueueState.PRESENTING or not self._pending:
                raise NothingToDecide("No candidate is being presented")

            entry = self._pending[self._cursor]
            candidate = store.get_candidate(self.user_id, entry.candidate_id, refresh=True)
            if candidate is None or candidate.status != "pending":
                self._drop_presented()
                log.info(
                    "Candidate %s for user %s was already decided elsewhere",
                    entry.candidate_id,
                    self.user_id,
                )
                raise NothingToDecide(f"Candidate {entry.candidate_id} is no longer pending")

            quota_row = store.get_quota(self.user_id, refresh=True)
            stored_quota = QuotaState.from_record(quota_row)
            self.quota = stored_quota

            today = self.today
            accept = direction == "accept"
            if accept and is_exhausted(stored_quota, today, self.daily_limit):
                log.info(
                    "User %s hit daily accept limit (%d)", self.user_id, self.daily_limit
                )
                raise QuotaExceeded(self.daily_limit, stored_quota.daily_accept_count)

            new_quota = apply_accept(stored_quota, today) if accept else stored_quota
            first_accept = accept and not stored_quota.has_seen_followup_prompt
            new_status = DIRECTIONS[direction]
            previous_status = candidate.status

            self.state = QueueState.DECIDING
            try:
                store.record_decision(candidate, new_status, self._clock(), quota_row, new_quota)
            except Exception:
                self.state = QueueState.PRESENTING
                raise

            self._undo = UndoSlot(
                entry=entry,
                previous_status=previous_status,
                decided_status=new_status,
                previous_quota=stored_quota,
                cursor=self._cursor,
            )
            self.quota = new_quota
            del self._pending[self._cursor]
            self._advance()
            next_id = self.current_id
            log.info(
                "User %s %s candidate %s (%d/%d today)",
                self.user_id,
                new_status,
                entry.candidate_id,
                new_quota.daily_accept_count if new_quota.quota_date == today else 0,
                self.daily_limit,
            )

        if first_accept and hook:
            # Decision is already committed; a failed hook must not undo it
            try:
                hook(candidate)
            except Exception as e:
                log.warning("First-accept hook failed for user %s: %s", self.user_id, e)

        return DecisionResult(
            candidate_id=entry.candidate_id,
            status=new_status,
            quota=new_quota,
            first_accept=first_accept,
            next_candidate_id=next_id,
        )

    def _drop_presented(self) -> None:
        del self._pending[self._cursor]
        self._advance()

    def _advance(self) -> None:
        # The entry after the decided one now sits at the same index
        if not self._pending:
            self._cursor = 0
            self.state = QueueState.EXHAUSTED
            return
        if self._cursor >= len(self._pending):
            self._cursor = 0
        self.state = QueueState.PRESENTING

    def undo(self, *, store: CandidateStore | None = None) -> Optional[int]:
        """Revert the last decision. Returns the re-presented candidate id,
        or None when there was nothing to undo."""
        with self._lock:
            store = self._store(store)
            slot = self._undo
            if slot is None:
                return None

            candidate = store.get_candidate(self.user_id, slot.entry.candidate_id, refresh=True)
            if candidate is None or candidate.status != slot.decided_status:
                # Moved on since (archived, or undone by another queue)
                self._undo = None
                return None
            quota_row = store.get_quota(self.user_id, refresh=True)
            store.revert_decision(candidate, slot.previous_status, quota_row, slot.previous_quota)

            # Counter and date come back verbatim; the prompt flag stays set
            self.quota = QuotaState(
                daily_accept_count=slot.previous_quota.daily_accept_count,
                quota_date=slot.previous_quota.quota_date,
                has_seen_followup_prompt=bool(quota_row.has_seen_followup_prompt),
            )
            self._pending.append(slot.entry)
            self._pending.sort(key=lambda e: e.sort_key)
            self._cursor = self._pending.index(slot.entry)
            self.state = QueueState.PRESENTING
            self._undo = None
            log.info("User %s undid decision on candidate %s", self.user_id, slot.entry.candidate_id)
            return slot.entry.candidate_id

    def refill(
        self,
        new_candidates: Iterable[dict],
        *,
        store: CandidateStore | None = None,
        profile=None,
        weights: IcpWeights | None = None,
    ) -> list[int]:
        """Add newly discovered candidates; returns ids of the ones added.

        Known provider ids (any status) and repeats within the batch are
        skipped. Scores come from the ICP profile when there is one.
        """
        profile = profile if profile is not None else self.profile
        weights = weights or self.weights
        with self._lock:
            store = self._store(store)
            known = store.known_provider_ids(self.user_id)
            known.update(e.provider_id for e in self._pending)

            drafts = []
            for raw in new_candidates:
                draft = dict(raw)
                pid = str(draft.get("provider_id") or "")
                if not pid or pid in known:
                    continue
                known.add(pid)
                draft["provider_id"] = pid
                if profile is not None:
                    draft["fit_score"] = score(_Attrs(draft), profile, weights)
                else:
                    draft["fit_score"] = int(draft.get("fit_score") or 0)
                drafts.append(draft)

            if not drafts:
                return []

            created = store.create_candidates(self.user_id, drafts)

            presented = self._pending[self._cursor] if self.state == QueueState.PRESENTING else None
            self._pending.extend(self._entry_for(c) for c in created)
            self._pending.sort(key=lambda e: e.sort_key)
            if presented is not None:
                self._cursor = self._pending.index(presented)
            else:
                self._cursor = 0
                self.state = QueueState.PRESENTING
            log.info("Refilled triage queue for user %s with %d candidates", self.user_id, len(created))
            return [c.id for c in created]


class _Attrs:
    """Attribute view over a draft dict so score() can read it."""

    def __init__(self, data: dict):
        self._data = data

    def __getattr__(self, name):
        return self._data.get(name)


# ── Per-request handle ──────────────────────────────────────────────────


class QueueHandle:
    """One request's view of a user's shared queue.

    Holds the request's store, ICP profile and first-accept hook and passes
    them into every queue call, so concurrent requests never see each
    other's session.
    """

    def __init__(
        self,
        queue: TriageQueue,
        store: CandidateStore,
        *,
        profile=None,
        weights: IcpWeights | None = None,
        on_first_accept: FirstAcceptHook | None = None,
    ):
        self.queue = queue
        self.store = store
        self.profile = profile
        self.weights = weights or DEFAULT_WEIGHTS
        self.on_first_accept = on_first_accept

    @property
    def current_id(self) -> Optional[int]:
        return self.queue.current_id

    @property
    def pending_ids(self) -> list[int]:
        return self.queue.pending_ids

    def current(self) -> Optional[Candidate]:
        return self.queue.current(self.store)

    def status(self) -> dict:
        return self.queue.status()

    def decide(self, direction: str) -> DecisionResult:
        return self.queue.decide(
            direction, store=self.store, on_first_accept=self.on_first_accept
        )

    def undo(self) -> Optional[int]:
        return self.queue.undo(store=self.store)

    def refill(self, new_candidates: Iterable[dict]) -> list[int]:
        return self.queue.refill(
            new_candidates, store=self.store, profile=self.profile, weights=self.weights
        )


# ── Per-user registry ───────────────────────────────────────────────────


class TriageRegistry:
    """Holds one live queue per user so cursor and undo survive requests.

    Queues idle for longer than idle_seconds are evicted on the next
    checkout, and at most max_queues are kept (least recently used go first).
    An evicted user's next checkout reloads from the store and loses only
    the undo slot.
    """

    def __init__(
        self,
        *,
        idle_seconds: float | None = None,
        max_queues: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.idle_seconds = idle_seconds if idle_seconds is not None else settings.triage_queue_idle_seconds
        self.max_queues = max_queues if max_queues is not None else settings.triage_queue_max
        self._clock = clock
        # user_id -> (last_used, queue), oldest use first
        self._queues: OrderedDict[int, tuple[float, TriageQueue]] = OrderedDict()
        self._lock = threading.Lock()

    def checkout(
        self,
        user_id: int,
        store: CandidateStore,
        *,
        profile=None,
        weights: IcpWeights | None = None,
        on_first_accept: FirstAcceptHook | None = None,
        **queue_kwargs,
    ) -> QueueHandle:
        """Return a handle on the user's queue, loading it on first use.

        queue_kwargs (daily_limit, tz, clock) only apply when a queue is
        created.
        """
        with self._lock:
            now = self._clock()
            self._prune(now)
            found = self._queues.pop(user_id, None)
            if found is None:
                queue = TriageQueue(user_id, **queue_kwargs).load(store)
            else:
                queue = found[1]
            self._queues[user_id] = (now, queue)
            while len(self._queues) > self.max_queues:
                evicted, _ = self._queues.popitem(last=False)
                log.info("Evicted triage queue for user %s (registry full)", evicted)
        return QueueHandle(
            queue, store, profile=profile, weights=weights, on_first_accept=on_first_accept
        )

    def _prune(self, now: float) -> None:
        cutoff = now - self.idle_seconds
        expired = [uid for uid, (used, _) in self._queues.items() if used < cutoff]
        for uid in expired:
            del self._queues[uid]
        if expired:
            log.info("Evicted %d idle triage queues", len(expired))

    def __contains__(self, user_id: int) -> bool:
        with self._lock:
            return user_id in self._queues

    def __len__(self) -> int:
        with self._lock:
            return len(self._queues)

    def drop(self, user_id: int) -> None:
        with self._lock:
            self._queues.pop(user_id, None)

    def clear(self) -> None:
        with self._lock:
            self._queues.clear()


registry = TriageRegistry()
