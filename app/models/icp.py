"""ICP profile model — one targeting profile per user."""

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer
from sqlalchemy.orm import relationship

from ..database import UTCDateTime
from .base import Base


class IcpProfile(Base):
    """Ideal-customer criteria plus the four factor weights (sum to 100)."""

    __tablename__ = "icp_profiles"
    id = Column(Integer, primary_key=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    industries = Column(JSON, default=list)
    locations = Column(JSON, default=list)
    is_nationwide = Column(Boolean, default=False)
    company_sizes = Column(JSON, default=list)  # ordinal buckets, e.g. ["1-10", "11-20"]
    revenue_ranges = Column(JSON, default=list)

    weight_industry = Column(Integer, nullable=False, default=50)
    weight_location = Column(Integer, nullable=False, default=25)
    weight_employee_size = Column(Integer, nullable=False, default=15)
    weight_revenue = Column(Integer, nullable=False, default=10)

    last_rescored_at = Column(UTCDateTime)
    created_at = Column(UTCDateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        UTCDateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user = relationship("User", back_populates="icp_profile")
