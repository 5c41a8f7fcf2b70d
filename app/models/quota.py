"""Per-user daily accept quota."""

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String

from .base import Base


class QuotaRecord(Base):
    """Accept counter for one calendar day in the reference timezone.

    quota_date is an ISO date string; a stored date other than today means
    the effective count is zero until the next accept rewrites it.
    """

    __tablename__ = "quota_records"
    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    daily_accept_count = Column(Integer, nullable=False, default=0)
    quota_date = Column(String(10), nullable=False, default="")
    has_seen_followup_prompt = Column(Boolean, nullable=False, default=False)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
