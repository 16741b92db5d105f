"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("telegram_id", sa.BigInteger, nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("is_admin", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column(
            "status",
            sa.Enum("active", "disabled", "destroyed", name="userstatus"),
            nullable=False,
            server_default="active",
        ),
        sa.Column("disabled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=False)
    op.create_index("ix_users_status_admin", "users", ["status", "is_admin"], unique=False)

    op.create_table(
        "currencies",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("code", sa.String(16), nullable=False),
        sa.Column("name", sa.String(64), nullable=False),
        sa.Column("sign", sa.String(8), nullable=False),
        sa.Column("is_default", sa.Boolean, nullable=False, server_default=sa.text("false")),
        *_timestamps(),
    )
    op.create_index("ix_currencies_code", "currencies", ["code"], unique=True)
    op.create_index(
        "uq_currencies_single_default",
        "currencies",
        ["is_default"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("currency_id", sa.Integer, sa.ForeignKey("currencies.id"), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False, server_default="0"),
        sa.Column("version", sa.Integer, nullable=False, server_default="1"),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "currency_id", name="uq_accounts_user_currency"),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"], unique=False)

    op.create_table(
        "ledger_transactions",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("user_id", sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("account_id", sa.Integer, sa.ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False),
        sa.Column("amount", sa.Numeric(18, 2), nullable=False),
        sa.Column(
            "kind",
            sa.Enum("transfer_out", "transfer_in", "admin_set_balance", name="transactionkind"),
            nullable=False,
        ),
        sa.Column("from_user_id", sa.BigInteger, nullable=True),
        sa.Column("from_username", sa.String(64), nullable=True),
        sa.Column("to_user_id", sa.BigInteger, nullable=True),
        sa.Column("to_username", sa.String(64), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("balance_after", sa.Numeric(18, 2), nullable=False),
        *_timestamps(),
    )
    op.create_index(
        "ix_ledger_transactions_user_timestamp",
        "ledger_transactions",
        ["user_id", "timestamp"],
        unique=False,
    )


def downgrade():
    op.drop_table("ledger_transactions")
    op.drop_table("accounts")
    op.drop_table("currencies")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS transactionkind")
    op.execute("DROP TYPE IF EXISTS userstatus")
