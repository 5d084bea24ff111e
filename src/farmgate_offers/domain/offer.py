"""Offer value objects.

The domain layer works on immutable snapshots. Adapters convert their
storage rows to and from these dataclasses; the lifecycle planner returns
a new snapshot instead of mutating the one it was given.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from farmgate_offers.domain.enums import ActorRole, EventType, OfferStatus

if TYPE_CHECKING:
    from collections.abc import Iterable
    from decimal import Decimal

PICKUP_OPTION = "pickup"


def utcnow() -> datetime:
    return datetime.now(UTC)


def is_pickup(delivery_options: Iterable[str]) -> bool:
    """Return True when the buyer chose to collect the goods themselves."""
    return any(option.strip().lower() == PICKUP_OPTION for option in delivery_options)


@dataclass(frozen=True)
class Offer:
    """A buyer's proposed terms against a seller's product.

    Attributes:
        id: Offer identifier.
        product_id: Catalog reference, never dereferenced here.
        buyer_id: User who made the offer.
        seller_id: Owner of the product.
        price: Offered unit price.
        quantity: Offered quantity.
        delivery_options: Delivery tags chosen at creation ("pickup", "delivery", ...).
        status: Stored lifecycle status.
        status_updated_at: When ``status`` last changed.
        expires_at: Deadline for a pending offer, or None.
    """

    id: uuid.UUID
    product_id: str
    buyer_id: str
    seller_id: str
    price: Decimal
    quantity: int
    delivery_options: tuple[str, ...] = ()
    status: OfferStatus = OfferStatus.PENDING
    status_updated_at: datetime = field(default_factory=utcnow)
    accepted_at: datetime | None = None
    shipped_at: datetime | None = None
    received_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancelled_by: ActorRole | None = None
    cancellation_reason: str | None = None
    expires_at: datetime | None = None
    message: str | None = None
    payment_terms: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_pickup(self) -> bool:
        return is_pickup(self.delivery_options)

    def role_of(self, actor_id: str) -> ActorRole | None:
        """Resolve which party ``actor_id`` plays on this offer, if any."""
        if actor_id == self.seller_id:
            return ActorRole.SELLER
        if actor_id == self.buyer_id:
            return ActorRole.BUYER
        return None

    def is_expired(self, now: datetime) -> bool:
        return (
            self.status == OfferStatus.PENDING
            and self.expires_at is not None
            and self.expires_at <= now
        )

    def effective_status(self, now: datetime) -> OfferStatus:
        """Status as observed at ``now``.

        A pending offer past its deadline reads as EXPIRED. Nothing is
        written; the stored status stays PENDING.
        """
        if self.is_expired(now):
            return OfferStatus.EXPIRED
        return self.status

    def as_of(self, now: datetime) -> Offer:
        """Return the snapshot a reader should see at ``now``."""
        effective = self.effective_status(now)
        if effective == self.status:
            return self
        return replace(self, status=effective)


@dataclass(frozen=True)
class OfferEventRecord:
    """One entry of the append-only audit trail.

    Attributes:
        event_type: What happened.
        old_status: Status before this step (None for creation).
        new_status: Status after this step.
        actor_role: buyer, seller or system.
        actor_id: User id, or None for system steps.
        metadata: Extra context (cancellation reason, delivery branch).
    """

    offer_id: uuid.UUID
    event_type: EventType
    old_status: OfferStatus | None
    new_status: OfferStatus
    actor_role: ActorRole
    actor_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
