"""Auth & user models."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, Integer, String
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, nullable=False)
    name = Column(String(255))
    is_active = Column(Boolean, default=True)
    # Target job titles for contact discovery; seeded on first accept
    contact_titles = Column(JSON, default=list)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))

    icp_profile = relationship("IcpProfile", back_populates="user", uselist=False)
    candidates = relationship("Candidate", back_populates="user")
