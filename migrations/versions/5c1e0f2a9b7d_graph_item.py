"""graph item table

Revision ID: 5c1e0f2a9b7d
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5c1e0f2a9b7d"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the partitioned item table and its two index column pairs."""
    op.create_table(
        "graph_item",
        sa.Column("pk", sa.String(length=255), nullable=False),
        sa.Column("sk", sa.String(length=255), nullable=False),
        sa.Column("gsi1pk", sa.String(length=255), nullable=True),
        sa.Column("gsi1sk", sa.String(length=255), nullable=True),
        sa.Column("gsi2pk", sa.String(length=255), nullable=True),
        sa.Column("gsi2sk", sa.String(length=255), nullable=True),
        sa.Column("data", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("pk", "sk"),
    )
    op.create_index("ix_graph_item_gsi1", "graph_item", ["gsi1pk", "gsi1sk"])
    op.create_index("ix_graph_item_gsi2", "graph_item", ["gsi2pk", "gsi2sk"])


def downgrade() -> None:
    op.drop_index("ix_graph_item_gsi2", table_name="graph_item")
    op.drop_index("ix_graph_item_gsi1", table_name="graph_item")
    op.drop_table("graph_item")
