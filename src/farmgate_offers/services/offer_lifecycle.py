"""Offer Lifecycle Engine — the only path that changes an offer's status.

Coordinates between:
    - The offer store (load, conditioned save, audit events)
    - The pure transition planner (domain/lifecycle.py)

The engine holds no offer state between calls. Every request re-reads the
offer, validates against the status it observed, and commits with a save
conditioned on that status still being current. A request that fails
validation never reaches the store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from farmgate_offers.domain.exceptions import (
    ConcurrentModificationError,
    ForbiddenActionError,
)
from farmgate_offers.domain.lifecycle import allowed_transitions, plan_transition
from farmgate_offers.domain.offer import utcnow
from farmgate_offers.logging_config import get_logger, offer_context

if TYPE_CHECKING:
    import uuid
    from collections.abc import Callable
    from datetime import datetime

    from farmgate_offers.domain.enums import OfferStatus
    from farmgate_offers.domain.offer import Offer
    from farmgate_offers.domain.store_protocol import OfferStore

logger = get_logger(__name__)


class OfferLifecycleEngine:
    """Applies buyer and seller transition requests to stored offers."""

    def __init__(
        self,
        store: OfferStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    async def request_transition(
        self,
        offer_id: uuid.UUID,
        actor_id: str,
        requested_status: str | OfferStatus,
        reason: str | None = None,
    ) -> Offer:
        """Move an offer to ``requested_status`` on behalf of ``actor_id``.

        Returns the persisted offer, already collapsed to ``completed`` when
        the buyer confirmed receipt or pickup.

        Raises:
            OfferNotFoundError: Unknown offer id.
            ForbiddenActionError: Caller is not a party or holds the wrong role.
            InvalidStateTransitionError: Status unknown or unreachable.
            ConcurrentModificationError: Another transition committed first.
        """
        with offer_context(offer_id, actor_id):
            offer = await self._store.load(offer_id)
            plan = plan_transition(
                offer, actor_id, requested_status, reason=reason, now=self._clock()
            )

            try:
                await self._store.save(plan.offer, plan.expected_status, plan.events)
            except ConcurrentModificationError:
                logger.warning(
                    "offer.conflict",
                    observed=plan.expected_status,
                    requested=str(requested_status),
                )
                raise

            logger.info(
                "offer.transitioned",
                old_status=plan.expected_status,
                requested=str(requested_status),
                new_status=plan.offer.status,
            )
        return plan.offer

    async def allowed_transitions(self, offer_id: uuid.UUID, actor_id: str) -> list[OfferStatus]:
        """Statuses ``actor_id`` may request on the offer right now."""
        offer = await self._store.load(offer_id)
        if offer.role_of(actor_id) is None:
            raise ForbiddenActionError(actor_id, f"view offer {offer_id}")
        return allowed_transitions(offer, actor_id, now=self._clock())
