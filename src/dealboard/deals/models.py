"""Deal pipeline persistence models -- one table per record kind.

Three SQLAlchemy models on the shared declarative Base:
- OrganizationModel: Root of ownership, owns many accounts
- AccountModel: Customer account owned by exactly one organization
- DealModel: Deal owned by exactly one account, positioned in the stage pipeline

Ownership is tracked by plain integer columns without foreign key
constraints. Referential integrity is checked at the request boundary and
cascade removal is performed by CascadeDeleter.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.dealboard.core.database import Base
from src.dealboard.deals.schemas import DealStage


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


_STATUS_CHECK = "status IN ({})".format(", ".join(f"'{s.value}'" for s in DealStage))


class OrganizationModel(Base):
    """Organization that owns accounts (and, through them, deals)."""

    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


class AccountModel(Base):
    """Customer account belonging to one organization."""

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    organization_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )


class DealModel(Base):
    """Deal tracked through the sales pipeline.

    The status column is constrained to the seven pipeline stages; value is
    a non-negative amount in the organization's display currency.
    """

    __tablename__ = "deals"
    __table_args__ = (
        CheckConstraint(_STATUS_CHECK, name="ck_deals_status"),
        CheckConstraint("value >= 0", name="ck_deals_value_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    value: Mapped[float] = mapped_column(Float, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    year_of_creation: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
    )
