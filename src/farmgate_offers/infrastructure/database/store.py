"""SQLAlchemy-backed OfferStore.

Adapts OfferRepository and EventRepository to the OfferStore protocol the
lifecycle engine consumes. One store per AsyncSession; the session's
owner commits or rolls back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from farmgate_offers.domain.exceptions import (
    ConcurrentModificationError,
    OfferNotFoundError,
)
from farmgate_offers.infrastructure.database.repositories import (
    EventRepository,
    OfferRepository,
    row_to_event,
    row_to_offer,
)
from farmgate_offers.logging_config import get_logger

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from farmgate_offers.domain.enums import OfferStatus
    from farmgate_offers.domain.offer import Offer, OfferEventRecord

logger = get_logger(__name__)


class SqlOfferStore:
    """OfferStore over an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._offer_repo = OfferRepository(session)
        self._event_repo = EventRepository(session)

    async def load(self, offer_id: uuid.UUID) -> Offer:
        row = await self._offer_repo.get_by_id(offer_id)
        if row is None:
            raise OfferNotFoundError(str(offer_id))
        return row_to_offer(row)

    async def save(
        self,
        offer: Offer,
        expected_status: OfferStatus,
        events: Sequence[OfferEventRecord] = (),
    ) -> None:
        updated = await self._offer_repo.compare_and_set_status(offer, expected_status)
        if not updated:
            if not await self._offer_repo.exists(offer.id):
                raise OfferNotFoundError(str(offer.id))
            logger.info(
                "offer_store.conflict",
                offer_id=str(offer.id),
                expected=expected_status.value,
            )
            raise ConcurrentModificationError(str(offer.id), expected_status.value)

        for event in events:
            await self._event_repo.record(event)

    async def add(self, offer: Offer, event: OfferEventRecord | None = None) -> Offer:
        row = await self._offer_repo.create(offer)
        if event is not None:
            await self._event_repo.record(event)
        return row_to_offer(row)

    async def list_by_buyer(self, buyer_id: str) -> list[Offer]:
        return [row_to_offer(row) for row in await self._offer_repo.get_by_buyer(buyer_id)]

    async def list_by_seller(self, seller_id: str) -> list[Offer]:
        return [row_to_offer(row) for row in await self._offer_repo.get_by_seller(seller_id)]

    async def events_for(self, offer_id: uuid.UUID) -> list[OfferEventRecord]:
        return [row_to_event(row) for row in await self._event_repo.get_by_offer(offer_id)]
