"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the store adapter. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update

from farmgate_offers.domain.enums import ActorRole, EventType, OfferStatus
from farmgate_offers.domain.offer import Offer, OfferEventRecord
from farmgate_offers.infrastructure.database.orm_models import OfferEventRow, OfferRow

if TYPE_CHECKING:
    import uuid

    from sqlalchemy.ext.asyncio import AsyncSession

# Columns a transition may write. Commercial terms are fixed at creation.
LIFECYCLE_COLUMNS = (
    "status_updated_at",
    "accepted_at",
    "shipped_at",
    "received_at",
    "completed_at",
    "cancelled_at",
    "cancellation_reason",
    "updated_at",
)


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def row_to_offer(row: OfferRow) -> Offer:
    """Convert an ORM row into the domain snapshot."""
    return Offer(
        id=row.id,
        product_id=row.product_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        price=row.price,
        quantity=row.quantity,
        delivery_options=tuple(row.delivery_options or ()),
        status=OfferStatus(row.status),
        status_updated_at=_as_utc(row.status_updated_at),
        accepted_at=_as_utc(row.accepted_at),
        shipped_at=_as_utc(row.shipped_at),
        received_at=_as_utc(row.received_at),
        completed_at=_as_utc(row.completed_at),
        cancelled_at=_as_utc(row.cancelled_at),
        cancelled_by=ActorRole(row.cancelled_by) if row.cancelled_by else None,
        cancellation_reason=row.cancellation_reason,
        expires_at=_as_utc(row.expires_at),
        message=row.message,
        payment_terms=tuple(row.payment_terms or ()),
        created_at=_as_utc(row.created_at),
        updated_at=_as_utc(row.updated_at),
    )


def row_to_event(row: OfferEventRow) -> OfferEventRecord:
    return OfferEventRecord(
        offer_id=row.offer_id,
        event_type=EventType(row.event_type),
        old_status=OfferStatus(row.old_status) if row.old_status else None,
        new_status=OfferStatus(row.new_status),
        actor_role=ActorRole(row.actor_role),
        actor_id=row.actor_id,
        metadata=dict(row.metadata_json or {}),
        created_at=_as_utc(row.created_at),
    )


class OfferRepository:
    """Data access for offers."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, offer: Offer) -> OfferRow:
        """Insert a new offer row from a domain snapshot."""
        row = OfferRow(
            id=offer.id,
            product_id=offer.product_id,
            buyer_id=offer.buyer_id,
            seller_id=offer.seller_id,
            price=offer.price,
            quantity=offer.quantity,
            delivery_options=list(offer.delivery_options),
            payment_terms=list(offer.payment_terms),
            message=offer.message,
            status=offer.status.value,
            cancelled_by=offer.cancelled_by.value if offer.cancelled_by else None,
            expires_at=offer.expires_at,
            created_at=offer.created_at,
            **{column: getattr(offer, column) for column in LIFECYCLE_COLUMNS},
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_id(self, offer_id: uuid.UUID) -> OfferRow | None:
        """Fetch an offer by its UUID, bypassing stale identity-map state."""
        result = await self._session.execute(
            select(OfferRow)
            .where(OfferRow.id == offer_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def exists(self, offer_id: uuid.UUID) -> bool:
        result = await self._session.execute(
            select(func.count()).select_from(OfferRow).where(OfferRow.id == offer_id)
        )
        return bool(result.scalar_one())

    async def get_by_buyer(self, buyer_id: str) -> list[OfferRow]:
        """Fetch all offers made by a buyer, newest first."""
        result = await self._session.execute(
            select(OfferRow)
            .where(OfferRow.buyer_id == buyer_id)
            .order_by(OfferRow.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_by_seller(self, seller_id: str) -> list[OfferRow]:
        """Fetch all offers received by a seller, newest first."""
        result = await self._session.execute(
            select(OfferRow)
            .where(OfferRow.seller_id == seller_id)
            .order_by(OfferRow.created_at.desc())
        )
        return list(result.scalars().all())

    async def compare_and_set_status(self, offer: Offer, expected_status: OfferStatus) -> bool:
        """Write the offer's lifecycle columns if the stored status still matches.

        Issues ``UPDATE offers SET ... WHERE id = :id AND status = :expected``.
        Returns False when no row matched (another transition won the race).
        """
        values = {column: getattr(offer, column) for column in LIFECYCLE_COLUMNS}
        values["status"] = offer.status.value
        values["cancelled_by"] = offer.cancelled_by.value if offer.cancelled_by else None

        result = await self._session.execute(
            update(OfferRow)
            .where(
                OfferRow.id == offer.id,
                OfferRow.status == expected_status.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, event: OfferEventRecord) -> OfferEventRow:
        """Append a new audit event. This is the ONLY write operation allowed."""
        sequence = await self._next_sequence(event.offer_id)
        row = OfferEventRow(
            offer_id=event.offer_id,
            event_type=event.event_type.value,
            old_status=event.old_status.value if event.old_status else None,
            new_status=event.new_status.value,
            actor_role=event.actor_role.value,
            actor_id=event.actor_id,
            metadata_json=event.metadata or None,
            sequence=sequence,
            created_at=event.created_at,
        )
        self._session.add(row)
        await self._session.flush()
        return row

    async def get_by_offer(self, offer_id: uuid.UUID) -> list[OfferEventRow]:
        """Fetch all events for an offer in chronological order."""
        result = await self._session.execute(
            select(OfferEventRow)
            .where(OfferEventRow.offer_id == offer_id)
            .order_by(OfferEventRow.created_at.asc(), OfferEventRow.sequence.asc())
        )
        return list(result.scalars().all())

    async def _next_sequence(self, offer_id: uuid.UUID) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(OfferEventRow).where(
                OfferEventRow.offer_id == offer_id
            )
        )
        return int(result.scalar_one())
