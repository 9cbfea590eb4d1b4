"""initial_schema

Create the hubauth schema:
- Accounts (internal identities, password hash, API key, ban flag)
- Passports (external identity links, unique per strategy and external id)
- Remember-me sessions (hashed session secrets)
- Server settings
- Account creation actions (queued per email address)
- Central log and sign-ins (activity)

Revision ID: 3c61d0f2a9b4
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c61d0f2a9b4"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # ACCOUNTS table
    # ========================================================================
    op.create_table(
        "accounts",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("first_name", sa.String(254), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(254), nullable=False, server_default=""),
        sa.Column("email_address", sa.String(254), nullable=True),
        sa.Column("password_hash", sa.String(512), nullable=True),
        sa.Column("api_key", sa.String(128), nullable=True),
        sa.Column("banned", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_accounts_email_address", "accounts", ["email_address"], unique=True
    )
    op.create_index("idx_accounts_api_key", "accounts", ["api_key"], unique=True)

    # ========================================================================
    # PASSPORTS table (external identity links)
    # ========================================================================
    op.create_table(
        "passports",
        sa.Column("strategy", sa.String(50), nullable=False),
        sa.Column("external_id", sa.String(255), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("profile", sa.JSON(), nullable=False),
        sa.Column("email_address", sa.String(254), nullable=True),
        sa.Column("first_name", sa.String(254), nullable=True),
        sa.Column("last_name", sa.String(254), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("strategy", "external_id", name="pk_passports"),
    )
    op.create_index("idx_passports_account_id", "passports", ["account_id"])

    # ========================================================================
    # REMEMBER_ME table
    # ========================================================================
    op.create_table(
        "remember_me",
        sa.Column("hash", sa.String(512), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("hash"),
    )
    op.create_index("idx_remember_me_account_id", "remember_me", ["account_id"])

    # ========================================================================
    # SERVER_SETTINGS table
    # ========================================================================
    op.create_table(
        "server_settings",
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("name"),
    )

    # ========================================================================
    # ACCOUNT_CREATION_ACTIONS table
    # ========================================================================
    op.create_table(
        "account_creation_actions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email_address", sa.String(254), nullable=False),
        sa.Column("action", sa.JSON(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("account_id", sa.Uuid(), nullable=True),
        sa.Column("applied_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_account_creation_actions_email_address",
        "account_creation_actions",
        ["email_address"],
    )

    # ========================================================================
    # Activity tables
    # ========================================================================
    op.create_table(
        "central_log",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("event", sa.String(100), nullable=False),
        sa.Column("value", sa.JSON(), nullable=False),
        sa.Column(
            "time",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_central_log_event", "central_log", ["event"])

    op.create_table(
        "sign_ins",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("account_id", sa.Uuid(), nullable=False),
        sa.Column("email_address", sa.String(254), nullable=True),
        sa.Column("remember_me", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column(
            "time",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_sign_ins_account_id", "sign_ins", ["account_id"])


def downgrade() -> None:
    """Downgrade schema."""
    # Drop tables (in reverse order of dependencies)
    op.drop_index("idx_sign_ins_account_id", table_name="sign_ins")
    op.drop_table("sign_ins")
    op.drop_index("idx_central_log_event", table_name="central_log")
    op.drop_table("central_log")
    op.drop_index(
        "idx_account_creation_actions_email_address",
        table_name="account_creation_actions",
    )
    op.drop_table("account_creation_actions")
    op.drop_table("server_settings")
    op.drop_index("idx_remember_me_account_id", table_name="remember_me")
    op.drop_table("remember_me")
    op.drop_index("idx_passports_account_id", table_name="passports")
    op.drop_table("passports")
    op.drop_index("idx_accounts_api_key", table_name="accounts")
    op.drop_index("idx_accounts_email_address", table_name="accounts")
    op.drop_table("accounts")
