"""Domain enumerations for the offer lifecycle.

The string values are the wire contract shared with clients and the
database CHECK constraint. They are framework-agnostic (no SQLAlchemy,
no FastAPI imports).
"""

import enum


class OfferStatus(enum.StrEnum):
    """Lifecycle states of an offer.

    Transitions are enforced by the OfferStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    TO_SHIP = "to_ship"
    READY_TO_PICKUP = "ready_to_pickup"
    SHIPPED = "shipped"
    PICKED_UP = "picked_up"
    TO_RECEIVE = "to_receive"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_transient(self) -> bool:
        return self in TRANSIENT_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        OfferStatus.COMPLETED,
        OfferStatus.REJECTED,
        OfferStatus.CANCELLED,
        OfferStatus.EXPIRED,
    }
)

# Accepted as a request target, but always collapsed into COMPLETED
TRANSIENT_STATUSES = frozenset({OfferStatus.PICKED_UP, OfferStatus.TO_RECEIVE})


class ActorRole(enum.StrEnum):
    """The party an actor plays on a given offer."""

    BUYER = "buyer"
    SELLER = "seller"
    SYSTEM = "system"


class EventType(enum.StrEnum):
    """Types of audit events recorded in the offer_events table.

    Every persisted status step produces exactly one event. An
    auto-completing transition produces two: the buyer's confirmation
    and the system's completion.
    """

    OFFER_CREATED = "OFFER_CREATED"
    OFFER_ACCEPTED = "OFFER_ACCEPTED"
    OFFER_REJECTED = "OFFER_REJECTED"
    SHIPMENT_PREPARED = "SHIPMENT_PREPARED"
    PICKUP_READY = "PICKUP_READY"
    OFFER_SHIPPED = "OFFER_SHIPPED"
    RECEIPT_CONFIRMED = "RECEIPT_CONFIRMED"
    PICKUP_CONFIRMED = "PICKUP_CONFIRMED"
    OFFER_COMPLETED = "OFFER_COMPLETED"
    OFFER_CANCELLED = "OFFER_CANCELLED"


class OfferListType(enum.StrEnum):
    """Which side of a user's offers to list."""

    SENT = "sent"
    RECEIVED = "received"
