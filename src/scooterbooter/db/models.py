"""SQLAlchemy model for the partitioned item table."""

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from scooterbooter.db.session import Base


class GraphItem(Base):
    """One schemaless item addressed by partition key and sort key.

    Two optional index column pairs emulate secondary indexes: ``gsi1`` carries
    recency and reverse-edge lookups, ``gsi2`` carries id and handle lookups.
    """

    __tablename__ = "graph_item"

    pk: Mapped[str] = mapped_column(String(255), primary_key=True)
    sk: Mapped[str] = mapped_column(String(255), primary_key=True)
    gsi1pk: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gsi1sk: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gsi2pk: Mapped[str | None] = mapped_column(String(255), nullable=True)
    gsi2sk: Mapped[str | None] = mapped_column(String(255), nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_graph_item_gsi1", "gsi1pk", "gsi1sk"),
        Index("ix_graph_item_gsi2", "gsi2pk", "gsi2sk"),
    )
