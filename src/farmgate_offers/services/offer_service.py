"""Offer Service — creation and party-scoped reads.

Status changes are not made here; they go through OfferLifecycleEngine.
Reads return the offer as observed now, so a pending offer past its
deadline comes back as ``expired`` without anything being written.
"""

from __future__ import annotations

import uuid
from datetime import UTC
from decimal import Decimal
from typing import TYPE_CHECKING

from farmgate_offers.domain.enums import (
    ActorRole,
    EventType,
    OfferListType,
    OfferStatus,
)
from farmgate_offers.domain.exceptions import ForbiddenActionError, InvalidOfferError
from farmgate_offers.domain.offer import Offer, OfferEventRecord, utcnow
from farmgate_offers.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from datetime import datetime, timedelta

    from farmgate_offers.domain.store_protocol import OfferStore

logger = get_logger(__name__)

DEFAULT_PAYMENT_TERMS = ("Cash on Delivery",)


class OfferService:
    """Creates offers and serves them to the two parties."""

    def __init__(
        self,
        store: OfferStore,
        clock: Callable[[], datetime] = utcnow,
        default_ttl: timedelta | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._default_ttl = default_ttl

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_offer(
        self,
        buyer_id: str,
        seller_id: str,
        product_id: str,
        price: Decimal,
        quantity: int,
        delivery_options: Iterable[str] = (),
        payment_terms: Iterable[str] = (),
        message: str | None = None,
        expires_at: datetime | None = None,
    ) -> Offer:
        """Create a new offer in ``pending`` status with the caller as buyer."""
        if buyer_id == seller_id:
            raise InvalidOfferError("Cannot make an offer on your own product")
        if Decimal(price) <= 0:
            raise InvalidOfferError("Offer price must be positive")
        if quantity <= 0:
            raise InvalidOfferError("Offer quantity must be positive")

        now = self._clock()
        if expires_at is not None:
            # naive deadlines are taken as UTC; stored deadlines are always UTC
            if expires_at.tzinfo is None:
                expires_at = expires_at.replace(tzinfo=UTC)
            expires_at = expires_at.astimezone(UTC)
        if expires_at is None and self._default_ttl is not None:
            expires_at = now + self._default_ttl
        if expires_at is not None and expires_at <= now:
            raise InvalidOfferError("Offer deadline must be in the future")

        offer = Offer(
            id=uuid.uuid4(),
            product_id=product_id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            price=Decimal(price),
            quantity=quantity,
            delivery_options=_clean_tags(delivery_options),
            payment_terms=_clean_tags(payment_terms) or DEFAULT_PAYMENT_TERMS,
            message=message,
            status=OfferStatus.PENDING,
            status_updated_at=now,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        event = OfferEventRecord(
            offer_id=offer.id,
            event_type=EventType.OFFER_CREATED,
            old_status=None,
            new_status=OfferStatus.PENDING,
            actor_role=ActorRole.BUYER,
            actor_id=buyer_id,
            metadata={"product_id": product_id},
            created_at=now,
        )
        offer = await self._store.add(offer, event)

        logger.info(
            "offer.created",
            offer_id=str(offer.id),
            product_id=product_id,
            price=str(offer.price),
            quantity=quantity,
        )
        return offer

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    async def get_offer(self, offer_id: uuid.UUID, viewer_id: str) -> Offer:
        """Return the offer if ``viewer_id`` is its buyer or seller."""
        offer = await self._store.load(offer_id)
        if offer.role_of(viewer_id) is None:
            raise ForbiddenActionError(viewer_id, f"view offer {offer_id}")
        return offer.as_of(self._clock())

    async def list_offers(self, user_id: str, list_type: OfferListType) -> list[Offer]:
        """Offers the user sent (as buyer) or received (as seller), newest first."""
        if list_type == OfferListType.SENT:
            offers = await self._store.list_by_buyer(user_id)
        else:
            offers = await self._store.list_by_seller(user_id)
        now = self._clock()
        return [offer.as_of(now) for offer in offers]

    async def get_events(self, offer_id: uuid.UUID, viewer_id: str) -> list[OfferEventRecord]:
        """Audit trail for one of the viewer's offers."""
        await self.get_offer(offer_id, viewer_id)
        return await self._store.events_for(offer_id)


def _clean_tags(tags: Iterable[str]) -> tuple[str, ...]:
    return tuple(tag.strip() for tag in tags if tag and tag.strip())
