"""SQLAlchemy table definitions for hubauth.

These table definitions are used with SQLAlchemy Core and match the schema
defined in Alembic migrations. Column types are portable so the same schema
runs on PostgreSQL and SQLite; ids and timestamps are always supplied by the
application.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    PrimaryKeyConstraint,
    String,
    Table,
    Text,
    Uuid,
)

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# ACCOUNTS TABLE
# ============================================================================
accounts_table = Table(
    "accounts",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("first_name", String(254), nullable=False, default=""),
    Column("last_name", String(254), nullable=False, default=""),
    Column("email_address", String(254), nullable=True),  # Stored lowercase
    Column("password_hash", String(512), nullable=True),
    Column("api_key", String(128), nullable=True),
    Column("banned", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Index("idx_accounts_email_address", accounts_table.c.email_address, unique=True)
Index("idx_accounts_api_key", accounts_table.c.api_key, unique=True)

# ============================================================================
# PASSPORTS TABLE (external identity links)
# ============================================================================
# The primary key on (strategy, external_id) is what guarantees an external
# identity is bound to at most one account.
passports_table = Table(
    "passports",
    metadata,
    Column("strategy", String(50), nullable=False),  # 'github', 'google', ...
    Column("external_id", String(255), nullable=False),  # Provider user id
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("profile", JSON, nullable=False),  # Profile as received from the provider
    Column("email_address", String(254), nullable=True),
    Column("first_name", String(254), nullable=True),
    Column("last_name", String(254), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    PrimaryKeyConstraint("strategy", "external_id", name="pk_passports"),
)

Index("idx_passports_account_id", passports_table.c.account_id)

# ============================================================================
# REMEMBER ME TABLE
# ============================================================================
remember_me_table = Table(
    "remember_me",
    metadata,
    Column("hash", String(512), primary_key=True),  # Hash of the session secret
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("payload", JSON, nullable=False),  # Signed-in message
    Column("expires_at", DateTime(timezone=True), nullable=False),
)

Index("idx_remember_me_account_id", remember_me_table.c.account_id)

# ============================================================================
# SERVER SETTINGS TABLE
# ============================================================================
server_settings_table = Table(
    "server_settings",
    metadata,
    Column("name", String(100), primary_key=True),
    Column("value", Text, nullable=True),
)

# ============================================================================
# ACCOUNT CREATION ACTIONS TABLE
# ============================================================================
# Actions queued for an email address before anyone signed up with it
# (e.g. an invitation). They are claimed by the account created for that email.
account_creation_actions_table = Table(
    "account_creation_actions",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("email_address", String(254), nullable=False),
    Column("action", JSON, nullable=False),
    Column("expires_at", DateTime(timezone=True), nullable=True),
    Column(
        "account_id",
        Uuid,
        ForeignKey("accounts.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("applied_at", DateTime(timezone=True), nullable=True),
)

Index(
    "idx_account_creation_actions_email_address",
    account_creation_actions_table.c.email_address,
)

# ============================================================================
# ACTIVITY TABLES
# ============================================================================
central_log_table = Table(
    "central_log",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("event", String(100), nullable=False),
    Column("value", JSON, nullable=False),
    Column("time", DateTime(timezone=True), nullable=False),
)

Index("idx_central_log_event", central_log_table.c.event)

sign_ins_table = Table(
    "sign_ins",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("account_id", Uuid, nullable=False),
    Column("email_address", String(254), nullable=True),
    Column("remember_me", Boolean, nullable=False, default=False),
    Column("ip_address", String(64), nullable=True),
    Column("time", DateTime(timezone=True), nullable=False),
)

Index("idx_sign_ins_account_id", sign_ins_table.c.account_id)
