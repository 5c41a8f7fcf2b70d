"""Cached third-party enrichment, one record per (user, entity)."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Column, ForeignKey, Integer, String, UniqueConstraint

from ..database import UTCDateTime
from .base import Base

ENTITY_TYPES = ("company", "contact")


class EnrichmentRecord(Base):
    """Last successful provider payload for a company or contact.

    Never deleted automatically and never overwritten by a failed fetch.
    """

    __tablename__ = "enrichment_records"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    entity_type = Column(String(20), nullable=False)  # company | contact
    entity_id = Column(Integer, nullable=False)

    payload = Column(JSON)
    fetched_at = Column(UTCDateTime, nullable=False)
    source_id = Column(String(100))  # provider's id for deterministic re-requests
    source = Column(String(50), default="apollo")

    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_enrichment_entity"),
    )
