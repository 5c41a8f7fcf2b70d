"""Prospect models — candidate companies under triage and their contacts."""

from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base

CANDIDATE_STATUSES = ("pending", "accepted", "rejected", "archived")


class Candidate(Base):
    """A discovered company, scored against the owner's ICP."""

    __tablename__ = "candidates"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    provider_id = Column(String(100), nullable=False)  # dedup key from discovery

    name = Column(String(255))
    domain = Column(String(255))
    industry = Column(String(255))
    location = Column(String(100))
    employee_size_range = Column(String(50))  # "1-10", "11-20", ..., "10,001+"
    revenue_range = Column(String(50))  # "Less than $1M", ..., "$1B+"

    status = Column(String(20), nullable=False, default="pending")
    fit_score = Column(Integer, nullable=False, default=0)
    decided_at = Column(UTCDateTime)
    archived_at = Column(UTCDateTime)

    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    user = relationship("User", back_populates="candidates")
    contacts = relationship(
        "ProspectContact", back_populates="candidate", cascade="all, delete-orphan"
    )

    __mapper_args__ = {"version_id_col": version}
    __table_args__ = (
        UniqueConstraint("user_id", "provider_id", name="uq_candidates_user_provider"),
        Index("ix_candidates_user_status", "user_id", "status"),
        Index("ix_candidates_user_score", "user_id", "fit_score"),
    )


class ProspectContact(Base):
    """A person at a candidate company."""

    __tablename__ = "prospect_contacts"
    id = Column(Integer, primary_key=True)
    candidate_id = Column(
        Integer, ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(String(255))
    title = Column(String(255))
    email = Column(String(255))
    linkedin_url = Column(String(500))
    apollo_person_id = Column(String(100))
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    candidate = relationship("Candidate", back_populates="contacts")

    __table_args__ = (Index("ix_prospect_contacts_candidate", "candidate_id"),)
