"""Daily accept quota — day boundary and counter arithmetic.

The quota is accept-only: rejects never touch it. The "day" is the calendar
date in one fixed reference timezone (settings.quota_timezone), not the
user's local zone, so near midnight an accept can count toward the
reference day rather than the user's.

Called by: services/triage_service.py, routers/triage.py
"""

from dataclasses import dataclass, replace
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo

from app.config import settings


@dataclass(frozen=True)
class QuotaState:
    """Snapshot of a QuotaRecord; what the undo slot restores."""

    daily_accept_count: int = 0
    quota_date: str = ""
    has_seen_followup_prompt: bool = False

    @classmethod
    def from_record(cls, record) -> "QuotaState":
        return cls(
            daily_accept_count=record.daily_accept_count or 0,
            quota_date=record.quota_date or "",
            has_seen_followup_prompt=bool(record.has_seen_followup_prompt),
        )


def reference_tz(name: str | None = None) -> tzinfo:
    name = name or settings.quota_timezone
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def quota_today(now: datetime, tz: tzinfo | None = None) -> str:
    """ISO date of `now` in the reference timezone."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz or reference_tz()).date().isoformat()


def effective_accept_count(quota: QuotaState, today: str) -> int:
    """Accepts that count toward today's limit; a stale date counts as zero."""
    return quota.daily_accept_count if quota.quota_date == today else 0


def is_exhausted(quota: QuotaState, today: str, limit: int) -> bool:
    return quota.quota_date == today and quota.daily_accept_count >= limit


def apply_accept(quota: QuotaState, today: str) -> QuotaState:
    """Quota after one more accept: +1 today, or restart at 1 on a new day."""
    count = quota.daily_accept_count + 1 if quota.quota_date == today else 1
    return replace(
        quota,
        daily_accept_count=count,
        quota_date=today,
        has_seen_followup_prompt=True,
    )


def quota_status(quota: QuotaState, today: str, limit: int) -> dict:
    used = effective_accept_count(quota, today)
    return {
        "date": today,
        "accepted_today": used,
        "daily_limit": limit,
        "remaining": max(0, limit - used),
        "limit_reached": used >= limit,
    }
