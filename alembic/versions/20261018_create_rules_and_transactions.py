"""Create rules and transactions tables"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261018_create_rules_and_transactions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("rules"):
        op.create_table(
            "rules",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("1")),
            sa.Column("transaction_type", sa.String(), nullable=False, server_default="expense"),
            sa.Column("sender_match", sa.JSON(), nullable=False),
            sa.Column("subject_match", sa.JSON(), nullable=False),
            sa.Column("amount_regex", sa.JSON(), nullable=False),
            sa.Column("merchant_extractions", sa.JSON(), nullable=False),
            sa.Column("merchant_condition", sa.JSON(), nullable=False),
            sa.Column("merchant_common_patterns", sa.JSON(), nullable=False),
            sa.Column("skip_condition", sa.JSON(), nullable=False),
            sa.Column("date_regex", sa.JSON(), nullable=False),
            sa.Column("payment_method", sa.String(), nullable=False, server_default=""),
            sa.Column("currency", sa.String(length=3), nullable=True),
            sa.Column("priority", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("success_count", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_error", sa.Text(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_rules_id", "rules", ["id"])

    if not inspector.has_table("transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("merchant_name", sa.String(), nullable=False),
            sa.Column("amount", sa.Numeric(14, 2), nullable=False),
            sa.Column("currency", sa.String(length=3), nullable=False, server_default="INR"),
            sa.Column("transaction_type", sa.String(), nullable=False),
            sa.Column("category", sa.String(), nullable=True),
            sa.Column("notes", sa.Text(), nullable=True),
            sa.Column("description", sa.Text(), nullable=True),
            sa.Column("payment_method", sa.String(), nullable=True),
            sa.Column("source", sa.String(), nullable=False, server_default="manual"),
            sa.Column("external_id", sa.String(), nullable=True),
            sa.Column("rule_id", sa.Integer(), nullable=True),
            sa.Column("transaction_date", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.ForeignKeyConstraint(["rule_id"], ["rules.id"], ondelete="SET NULL"),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_transactions_id", "transactions", ["id"])
        op.create_index(
            "ix_transactions_merchant_date", "transactions", ["merchant_name", "transaction_date"]
        )
        op.create_index("ix_transactions_external_id", "transactions", ["external_id"])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("transactions"):
        op.drop_index("ix_transactions_external_id", table_name="transactions")
        op.drop_index("ix_transactions_merchant_date", table_name="transactions")
        op.drop_index("ix_transactions_id", table_name="transactions")
        op.drop_table("transactions")

    if inspector.has_table("rules"):
        op.drop_index("ix_rules_id", table_name="rules")
        op.drop_table("rules")
