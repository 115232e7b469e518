"""initial_schema

Create the schema for federated identity login:
- Users (local accounts, login + display name, unusable password for SSO users)
- Groups (seeded with the default "Users" group)
- User Groups (membership)
- Identity Links (provider + external id -> user, unique per provider identity)

Revision ID: 3c1f7a9e2b40
Revises:
Create Date: 2026-10-17 09:12:44.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f7a9e2b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ========================================================================
    # USERS table
    # ========================================================================
    op.create_table(
        "users",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("login", sa.String(64), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=True),
        # Empty hash: account cannot log in with a password
        sa.Column("password_hash", sa.String(255), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("login", name="users_login_key"),
    )
    op.create_index("idx_users_email", "users", ["email"])

    # ========================================================================
    # GROUPS table
    # ========================================================================
    op.create_table(
        "groups",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name", name="groups_name_key"),
    )

    # ========================================================================
    # USER_GROUPS table (membership)
    # ========================================================================
    op.create_table(
        "user_groups",
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("group_id", sa.UUID(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("user_id", "group_id"),
    )

    # ========================================================================
    # IDENTITY_LINKS table (provider identity -> user)
    # ========================================================================
    op.create_table(
        "identity_links",
        sa.Column(
            "id",
            sa.UUID(),
            server_default=sa.text("uuid_generate_v4()"),
            nullable=False,
        ),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("external_id", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("avatar_url", sa.Text(), nullable=True),
        sa.Column("profile_url", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.Column(
            "updated_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        # Arbitrates concurrent first logins of the same identity
        sa.UniqueConstraint(
            "provider", "external_id", name="uq_identity_links_provider_external_id"
        ),
    )
    op.create_index("idx_identity_links_user_id", "identity_links", ["user_id"])

    # Default group for auto-registered users
    groups_table = sa.table("groups", sa.column("name", sa.String))
    op.bulk_insert(groups_table, [{"name": "Users"}])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("idx_identity_links_user_id", table_name="identity_links")
    op.drop_table("identity_links")
    op.drop_table("user_groups")
    op.drop_table("groups")
    op.drop_index("idx_users_email", table_name="users")
    op.drop_table("users")
