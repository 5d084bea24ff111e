"""SQLAlchemy 2.0 ORM models for the offer service.

Two tables:
    1. offers        — One row per offer, including its lifecycle timestamps.
    2. offer_events  — Append-only audit log of every status step.

Design decisions:
    - UUIDs as primary keys (no sequential leakage of marketplace volume).
    - Decimal for prices (no floating point rounding errors).
    - JSON columns for delivery options and payment terms (JSONB on PostgreSQL).
    - CHECK constraints on status and on the cancellation columns so the
      database rejects records the lifecycle planner could never produce.
    - offer_events is append-only: no UPDATE or DELETE at the application level.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal  # noqa: TC003 - needed at runtime by SQLAlchemy Mapped[]

from sqlalchemy import (
    JSON,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from farmgate_offers.domain.enums import OfferStatus

JSONType = JSON().with_variant(JSONB(), "postgresql")

_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in OfferStatus)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# ---------------------------------------------------------------------------
# 1. offers
# ---------------------------------------------------------------------------
class OfferRow(Base):
    """An offer made by a buyer against a seller's product."""

    __tablename__ = "offers"

    # --- Primary Key ---
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Parties (opaque references, not dereferenced here) ---
    product_id: Mapped[str] = mapped_column(String(64), nullable=False)
    buyer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    seller_id: Mapped[str] = mapped_column(String(64), nullable=False)

    # --- Commercial Terms ---
    price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Offered unit price",
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    delivery_options: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
        comment='Delivery tags chosen at creation, e.g. ["pickup", "delivery"]',
    )
    payment_terms: Mapped[list] = mapped_column(
        JSONType,
        nullable=False,
        default=list,
    )
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Status (guarded by OfferStateMachine) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=OfferStatus.PENDING.value,
    )
    status_updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # --- Transition Timestamps (set once, never reset) ---
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    shipped_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    received_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # --- Cancellation ---
    cancelled_by: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
        comment="Role that cancelled: buyer or seller",
    )
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Deadline (read-time expiry) ---
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # --- Bookkeeping ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # --- Relationships ---
    events: Mapped[list[OfferEventRow]] = relationship(
        "OfferEventRow",
        back_populates="offer",
        cascade="all, delete-orphan",
        order_by="OfferEventRow.created_at.asc()",
        lazy="noload",
    )

    # --- Table Constraints & Indexes ---
    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="ck_offer_valid_status"),
        CheckConstraint("price > 0", name="ck_offer_positive_price"),
        CheckConstraint("quantity > 0", name="ck_offer_positive_quantity"),
        CheckConstraint(
            "(status = 'cancelled' AND cancelled_by IN ('buyer', 'seller')) "
            "OR (status <> 'cancelled' AND cancelled_by IS NULL)",
            name="ck_offer_cancelled_by",
        ),
        CheckConstraint(
            "cancellation_reason IS NULL OR status = 'cancelled'",
            name="ck_offer_cancellation_reason",
        ),
        Index("idx_offer_status", "status"),
        Index("idx_offer_buyer", "buyer_id"),
        Index("idx_offer_seller", "seller_id"),
        Index("idx_offer_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<OfferRow id={self.id} status={self.status} price={self.price}>"


# ---------------------------------------------------------------------------
# 2. offer_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class OfferEventRow(Base):
    """Immutable audit record of one status step in an offer's lifecycle."""

    __tablename__ = "offer_events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    offer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("offers.id", ondelete="CASCADE"),
        nullable=False,
    )

    # --- Event Details ---
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    old_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Offer status before this event (null for creation)",
    )
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor_role: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        comment="buyer, seller or system",
    )
    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSONType,
        nullable=True,
        default=None,
    )
    # Orders events written in the same transaction
    sequence: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    offer: Mapped[OfferRow] = relationship("OfferRow", back_populates="events")

    __table_args__ = (
        Index("idx_offer_event_offer", "offer_id"),
        Index("idx_offer_event_type", "event_type"),
        Index("idx_offer_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<OfferEventRow id={self.id} type={self.event_type} "
            f"{self.old_status}->{self.new_status}>"
        )
