"""initial schema - users, ICP profiles, candidates, quota, enrichment cache

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("name", sa.String(255)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("contact_titles", sa.JSON()),
        sa.Column("created_at", sa.DateTime()),
    )

    op.create_table(
        "icp_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("industries", sa.JSON()),
        sa.Column("locations", sa.JSON()),
        sa.Column("is_nationwide", sa.Boolean(), server_default=sa.false()),
        sa.Column("company_sizes", sa.JSON()),
        sa.Column("revenue_ranges", sa.JSON()),
        sa.Column("weight_industry", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("weight_location", sa.Integer(), nullable=False, server_default="25"),
        sa.Column("weight_employee_size", sa.Integer(), nullable=False, server_default="15"),
        sa.Column("weight_revenue", sa.Integer(), nullable=False, server_default="10"),
        sa.Column("last_rescored_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime()),
        sa.Column("updated_at", sa.DateTime()),
    )

    op.create_table(
        "candidates",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("provider_id", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255)),
        sa.Column("domain", sa.String(255)),
        sa.Column("industry", sa.String(255)),
        sa.Column("location", sa.String(100)),
        sa.Column("employee_size_range", sa.String(50)),
        sa.Column("revenue_range", sa.String(50)),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("fit_score", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("decided_at", sa.DateTime()),
        sa.Column("archived_at", sa.DateTime()),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("user_id", "provider_id", name="uq_candidates_user_provider"),
    )
    op.create_index("ix_candidates_user_status", "candidates", ["user_id", "status"])
    op.create_index("ix_candidates_user_score", "candidates", ["user_id", "fit_score"])

    op.create_table(
        "prospect_contacts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "candidate_id",
            sa.Integer(),
            sa.ForeignKey("candidates.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255)),
        sa.Column("title", sa.String(255)),
        sa.Column("email", sa.String(255)),
        sa.Column("linkedin_url", sa.String(500)),
        sa.Column("apollo_person_id", sa.String(100)),
        sa.Column("created_at", sa.DateTime()),
    )
    op.create_index("ix_prospect_contacts_candidate", "prospect_contacts", ["candidate_id"])

    op.create_table(
        "quota_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("daily_accept_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quota_date", sa.String(10), nullable=False, server_default=""),
        sa.Column("has_seen_followup_prompt", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("version", sa.Integer(), nullable=False),
    )

    op.create_table(
        "enrichment_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON()),
        sa.Column("fetched_at", sa.DateTime(), nullable=False),
        sa.Column("source_id", sa.String(100)),
        sa.Column("source", sa.String(50), server_default="apollo"),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime()),
        sa.UniqueConstraint("user_id", "entity_type", "entity_id", name="uq_enrichment_entity"),
    )


def downgrade() -> None:
    """Drop everything. Dev/test only."""
    op.drop_table("enrichment_records")
    op.drop_table("quota_records")
    op.drop_index("ix_prospect_contacts_candidate", table_name="prospect_contacts")
    op.drop_table("prospect_contacts")
    op.drop_index("ix_candidates_user_score", table_name="candidates")
    op.drop_index("ix_candidates_user_status", table_name="candidates")
    op.drop_table("candidates")
    op.drop_table("icp_profiles")
    op.drop_table("users")
