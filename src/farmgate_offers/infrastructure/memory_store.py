"""In-memory offer store.

Dict-backed OfferStore used by the test suite and by ``simulation.py``
when no database is wanted. The compare-and-swap in ``save`` runs under an
asyncio.Lock, mirroring the ``UPDATE ... WHERE status = :expected`` of the
SQL adapter.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from farmgate_offers.domain.exceptions import (
    ConcurrentModificationError,
    InvalidOfferError,
    OfferNotFoundError,
)
from farmgate_offers.logging_config import get_logger

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from farmgate_offers.domain.enums import OfferStatus
    from farmgate_offers.domain.offer import Offer, OfferEventRecord

logger = get_logger(__name__)


class InMemoryOfferStore:
    """OfferStore backed by plain dicts."""

    def __init__(self) -> None:
        self._offers: dict[uuid.UUID, Offer] = {}
        self._events: dict[uuid.UUID, list[OfferEventRecord]] = {}
        self._lock = asyncio.Lock()
        self.save_count = 0

    async def load(self, offer_id: uuid.UUID) -> Offer:
        offer = self._offers.get(offer_id)
        if offer is None:
            raise OfferNotFoundError(str(offer_id))
        return offer

    async def save(
        self,
        offer: Offer,
        expected_status: OfferStatus,
        events: Sequence[OfferEventRecord] = (),
    ) -> None:
        async with self._lock:
            stored = self._offers.get(offer.id)
            if stored is None:
                raise OfferNotFoundError(str(offer.id))
            if stored.status != expected_status:
                logger.info(
                    "memory_store.conflict",
                    offer_id=str(offer.id),
                    expected=expected_status.value,
                    actual=stored.status.value,
                )
                raise ConcurrentModificationError(str(offer.id), expected_status.value)
            self._offers[offer.id] = offer
            self._events.setdefault(offer.id, []).extend(events)
            self.save_count += 1

    async def add(self, offer: Offer, event: OfferEventRecord | None = None) -> Offer:
        async with self._lock:
            if offer.id in self._offers:
                raise InvalidOfferError(f"Offer already exists: {offer.id}")
            self._offers[offer.id] = offer
            self._events[offer.id] = [event] if event is not None else []
        return offer

    async def list_by_buyer(self, buyer_id: str) -> list[Offer]:
        return self._newest_first(o for o in self._offers.values() if o.buyer_id == buyer_id)

    async def list_by_seller(self, seller_id: str) -> list[Offer]:
        return self._newest_first(o for o in self._offers.values() if o.seller_id == seller_id)

    async def events_for(self, offer_id: uuid.UUID) -> list[OfferEventRecord]:
        return list(self._events.get(offer_id, []))

    @staticmethod
    def _newest_first(offers) -> list[Offer]:  # noqa: ANN001
        return sorted(offers, key=lambda o: o.created_at, reverse=True)
