"""Offer Store Protocol.

Defines the storage interface the lifecycle engine depends on. This is a
Protocol (structural subtyping) so adapters don't need to inherit from a
base class; they just need to match the shape.

The domain layer has ZERO imports from SQLAlchemy or any database driver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import uuid
    from collections.abc import Sequence

    from farmgate_offers.domain.enums import OfferStatus
    from farmgate_offers.domain.offer import Offer, OfferEventRecord


@runtime_checkable
class OfferStore(Protocol):
    """Durable record of offers and their audit trail.

    Implementations:
        - SqlOfferStore:       SQLAlchemy async session (PostgreSQL / SQLite)
        - InMemoryOfferStore:  dict-backed, for tests and simulations
    """

    async def load(self, offer_id: uuid.UUID) -> Offer:
        """Return the stored offer.

        Raises:
            OfferNotFoundError: If the id does not resolve.
        """
        ...

    async def save(
        self,
        offer: Offer,
        expected_status: OfferStatus,
        events: Sequence[OfferEventRecord] = (),
    ) -> None:
        """Persist ``offer`` only if its stored status is still ``expected_status``.

        The status check, the write and the event append are atomic.

        Raises:
            ConcurrentModificationError: If another transition committed first.
            OfferNotFoundError: If the offer vanished.
        """
        ...

    async def add(self, offer: Offer, event: OfferEventRecord | None = None) -> Offer:
        """Insert a new offer."""
        ...

    async def list_by_buyer(self, buyer_id: str) -> list[Offer]:
        """Offers made by ``buyer_id``, newest first."""
        ...

    async def list_by_seller(self, seller_id: str) -> list[Offer]:
        """Offers received by ``seller_id``, newest first."""
        ...

    async def events_for(self, offer_id: uuid.UUID) -> list[OfferEventRecord]:
        """Audit events for an offer in chronological order."""
        ...
