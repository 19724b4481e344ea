"""Add merchant_notes table"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019_add_merchant_notes"
down_revision = "20261018_create_rules_and_transactions"
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("merchant_notes"):
        op.create_table(
            "merchant_notes",
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("merchant_name", sa.String(), nullable=False),
            sa.Column("category", sa.String(), nullable=False, server_default=""),
            sa.Column("notes", sa.Text(), nullable=False, server_default=""),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.Column("updated_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index("ix_merchant_notes_id", "merchant_notes", ["id"])
        op.create_index(
            "ix_merchant_notes_merchant_name", "merchant_notes", ["merchant_name"], unique=True
        )


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("merchant_notes"):
        op.drop_index("ix_merchant_notes_merchant_name", table_name="merchant_notes")
        op.drop_index("ix_merchant_notes_id", table_name="merchant_notes")
        op.drop_table("merchant_notes")
