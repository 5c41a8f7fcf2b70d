"""Database models — re-exports all models.

Import from here:  from app.models import User, Candidate, ...
Or from submodules: from app.models.prospects import Candidate
"""

from .base import Base  # noqa: F401

# Auth & Users
from .auth import User  # noqa: F401

# Targeting
from .icp import IcpProfile  # noqa: F401

# Prospects: Candidates & Contacts
from .prospects import CANDIDATE_STATUSES, Candidate, ProspectContact  # noqa: F401

# Triage quota
from .quota import QuotaRecord  # noqa: F401

# Enrichment cache
from .enrichment import ENTITY_TYPES, EnrichmentRecord  # noqa: F401
