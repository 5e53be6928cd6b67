"""create blueprints table

Revision ID: 5f1c2a7d9e30
Revises:
Create Date: 2026-10-18 09:12:44.318205

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "5f1c2a7d9e30"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
  """Upgrade schema."""
  op.create_table(
    "blueprints",
    sa.Column("id", sa.String(), nullable=False),
    sa.Column("user_id", sa.String(), nullable=False),
    sa.Column("intake", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("blueprint", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("title", sa.String(), nullable=False),
    sa.Column("role", sa.String(), nullable=False),
    sa.Column("group_name", sa.String(), nullable=False),
    sa.Column("schema_version", sa.String(), nullable=False),
    sa.Column("prompt_version", sa.String(), nullable=False),
    sa.Column("model", sa.String(), nullable=False),
    sa.Column("repaired", sa.Boolean(), server_default=sa.text("false"), nullable=False),
    sa.Column("latency_ms", sa.Integer(), server_default=sa.text("0"), nullable=False),
    sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    sa.PrimaryKeyConstraint("id"),
  )
  # Owner-scoped list queries sort newest first.
  op.create_index("ix_blueprints_user_id_created_at", "blueprints", ["user_id", "created_at"], unique=False)


def downgrade() -> None:
  """Downgrade schema."""
  op.drop_index("ix_blueprints_user_id_created_at", table_name="blueprints")
  op.drop_table("blueprints")
