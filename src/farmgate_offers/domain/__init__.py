"""Domain layer — pure business logic with zero framework dependencies."""

from farmgate_offers.domain.enums import (
    ActorRole,
    EventType,
    OfferListType,
    OfferStatus,
)
from farmgate_offers.domain.exceptions import (
    ConcurrentModificationError,
    ForbiddenActionError,
    InvalidOfferError,
    InvalidStateTransitionError,
    MarketplaceError,
    OfferNotFoundError,
)
from farmgate_offers.domain.lifecycle import (
    TransitionPlan,
    allowed_transitions,
    plan_transition,
)
from farmgate_offers.domain.offer import Offer, OfferEventRecord, is_pickup
from farmgate_offers.domain.state_machine import OfferStateMachine
from farmgate_offers.domain.store_protocol import OfferStore

__all__ = [
    "ActorRole",
    "EventType",
    "OfferListType",
    "OfferStatus",
    "ConcurrentModificationError",
    "ForbiddenActionError",
    "InvalidOfferError",
    "InvalidStateTransitionError",
    "MarketplaceError",
    "OfferNotFoundError",
    "TransitionPlan",
    "allowed_transitions",
    "plan_transition",
    "Offer",
    "OfferEventRecord",
    "is_pickup",
    "OfferStateMachine",
    "OfferStore",
]
