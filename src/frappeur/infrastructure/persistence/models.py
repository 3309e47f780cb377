"""
SQLAlchemy models for Frappeur persistence.
"""

from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""


class MintOperationModel(Base):
    """
    Mint operation snapshot.

    Filterable attributes are columns; the full snapshot lives in payload.
    """

    __tablename__ = "mint_operations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), index=True, nullable=False)
    collection_id: Mapped[str] = mapped_column(
        String(64), index=True, nullable=False
    )
    indexing_status: Mapped[str] = mapped_column(String(20), nullable=False)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), index=True, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
