"""SQLAlchemy table definitions for fedauth.

They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# USERS TABLE
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("login", String(64), nullable=False, unique=True),
    Column("display_name", String(255), nullable=False),
    Column("email", String(255), nullable=True),
    Column("password_hash", String(255), nullable=False, server_default=""),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
)

Index("idx_users_email", users_table.c.email)

# ============================================================================
# GROUPS TABLE
# ============================================================================
groups_table = Table(
    "groups",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("name", String(100), nullable=False, unique=True),
)

# ============================================================================
# USER_GROUPS TABLE (junction table for many-to-many relationship)
# ============================================================================
user_groups_table = Table(
    "user_groups",
    metadata,
    Column(
        "user_id",
        UUID,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "group_id",
        UUID,
        ForeignKey("groups.id", ondelete="RESTRICT"),
        primary_key=True,
    ),
)

# ============================================================================
# IDENTITY LINKS TABLE (provider identity -> user)
# ============================================================================
identity_links_table = Table(
    "identity_links",
    metadata,
    Column("id", UUID, primary_key=True, server_default="uuid_generate_v4()"),
    Column("user_id", UUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("provider", String(50), nullable=False),
    Column("external_id", String(255), nullable=False),
    Column("display_name", String(255), nullable=False),
    Column("avatar_url", Text, nullable=True),
    Column("profile_url", Text, nullable=True),
    Column(
        "created_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    Column(
        "updated_at", TIMESTAMP(timezone=True), nullable=False, server_default="NOW()"
    ),
    UniqueConstraint(
        "provider", "external_id", name="uq_identity_links_provider_external_id"
    ),
)

Index("idx_identity_links_user_id", identity_links_table.c.user_id)

PROVIDER_IDENTITY_CONSTRAINT = "uq_identity_links_provider_external_id"
