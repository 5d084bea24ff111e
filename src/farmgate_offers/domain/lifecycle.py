"""Offer transition planner.

Pure functions: given an offer snapshot, the acting user and a requested
status, decide whether the transition is legal, who may trigger it, and
what the offer looks like afterwards. Nothing here touches storage; the
lifecycle engine persists the resulting plan.

Validation order:
    1. Unknown status token            -> InvalidStateTransitionError
    2. Actor is not buyer or seller    -> ForbiddenActionError
    3. Offer is terminal (or expired)  -> InvalidStateTransitionError
    4. Edge not in the table           -> InvalidStateTransitionError
    5. Actor holds the wrong role      -> ForbiddenActionError
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from statemachine.exceptions import TransitionNotAllowed

from farmgate_offers.domain.enums import ActorRole, EventType, OfferStatus
from farmgate_offers.domain.exceptions import (
    ForbiddenActionError,
    InvalidStateTransitionError,
)
from farmgate_offers.domain.offer import Offer, OfferEventRecord, utcnow
from farmgate_offers.domain.state_machine import validate_transition

if TYPE_CHECKING:
    from datetime import datetime

SELLER_ONLY = frozenset({ActorRole.SELLER})
BUYER_ONLY = frozenset({ActorRole.BUYER})
EITHER_PARTY = frozenset({ActorRole.BUYER, ActorRole.SELLER})


@dataclass(frozen=True)
class TransitionRule:
    """How a requested status is reached and who may request it."""

    event: str
    roles: frozenset[ActorRole]
    event_type: EventType
    action: str


# Keyed by the requested status. The source statuses live in OfferStateMachine.
TRANSITION_RULES: dict[OfferStatus, TransitionRule] = {
    OfferStatus.ACCEPTED: TransitionRule(
        "accept", SELLER_ONLY, EventType.OFFER_ACCEPTED, "accept the offer"
    ),
    OfferStatus.REJECTED: TransitionRule(
        "reject", SELLER_ONLY, EventType.OFFER_REJECTED, "reject the offer"
    ),
    OfferStatus.TO_SHIP: TransitionRule(
        "prepare_shipment", SELLER_ONLY, EventType.SHIPMENT_PREPARED, "prepare the shipment"
    ),
    OfferStatus.READY_TO_PICKUP: TransitionRule(
        "mark_ready_for_pickup", SELLER_ONLY, EventType.PICKUP_READY, "mark the order ready for pickup"
    ),
    OfferStatus.SHIPPED: TransitionRule(
        "ship", SELLER_ONLY, EventType.OFFER_SHIPPED, "mark the order shipped"
    ),
    OfferStatus.TO_RECEIVE: TransitionRule(
        "confirm_receipt", BUYER_ONLY, EventType.RECEIPT_CONFIRMED, "confirm receipt"
    ),
    OfferStatus.PICKED_UP: TransitionRule(
        "confirm_pickup", BUYER_ONLY, EventType.PICKUP_CONFIRMED, "confirm pickup"
    ),
    OfferStatus.CANCELLED: TransitionRule(
        "cancel", EITHER_PARTY, EventType.OFFER_CANCELLED, "cancel the offer"
    ),
}

# Timestamp column stamped when the offer enters a status
TIMESTAMP_FIELDS: dict[OfferStatus, str] = {
    OfferStatus.ACCEPTED: "accepted_at",
    OfferStatus.SHIPPED: "shipped_at",
    OfferStatus.TO_RECEIVE: "received_at",
    OfferStatus.PICKED_UP: "received_at",
    OfferStatus.COMPLETED: "completed_at",
    OfferStatus.CANCELLED: "cancelled_at",
}


@dataclass(frozen=True)
class TransitionPlan:
    """The outcome of a validated transition, ready to persist.

    Attributes:
        offer: Snapshot after the transition (already collapsed to
            COMPLETED for the transient statuses).
        expected_status: Stored status observed before the transition;
            the save is conditioned on it.
        events: Audit events, one per status step.
    """

    offer: Offer
    expected_status: OfferStatus
    events: tuple[OfferEventRecord, ...]


def parse_status(token: str | OfferStatus, current: OfferStatus) -> OfferStatus:
    """Convert a wire token into an OfferStatus or reject it."""
    try:
        return OfferStatus(token)
    except ValueError as err:
        raise InvalidStateTransitionError(current, str(token), "unknown status") from err


def plan_transition(
    offer: Offer,
    actor_id: str,
    requested_status: str | OfferStatus,
    reason: str | None = None,
    now: datetime | None = None,
) -> TransitionPlan:
    """Validate a transition request and compute the resulting offer.

    Args:
        offer: The offer as loaded from the store.
        actor_id: The authenticated caller's user id.
        requested_status: Target status token (lower_snake_case).
        reason: Optional cancellation reason, ignored for other targets.
        now: Clock override for tests.

    Returns:
        A TransitionPlan whose offer is the final snapshot.

    Raises:
        ForbiddenActionError: Caller is not a party, or holds the wrong role.
        InvalidStateTransitionError: Target unknown or unreachable.
    """
    now = now or utcnow()
    current = offer.effective_status(now)
    target = parse_status(requested_status, current)

    role = offer.role_of(actor_id)
    if role is None:
        raise ForbiddenActionError(actor_id, f"update offer {offer.id}")

    if current.is_terminal:
        raise InvalidStateTransitionError(current, target, f"offer is {current}")

    rule = TRANSITION_RULES.get(target)
    if rule is None:
        raise InvalidStateTransitionError(current, target, "status cannot be requested")

    try:
        _fire(current, rule.event, offer.is_pickup)
    except TransitionNotAllowed as err:
        raise InvalidStateTransitionError(
            current, target, _branch_hint(current, target)
        ) from err

    if role not in rule.roles:
        required = " or ".join(sorted(r.value for r in rule.roles))
        raise ForbiddenActionError(actor_id, rule.action, required_role=required)

    updated = _enter(offer, target, role, reason, now)
    events = [
        OfferEventRecord(
            offer_id=offer.id,
            event_type=rule.event_type,
            old_status=current,
            new_status=target,
            actor_role=role,
            actor_id=actor_id,
            metadata=_event_metadata(offer, target, updated),
            created_at=now,
        )
    ]

    if target.is_transient:
        _fire(target, "complete", offer.is_pickup)
        updated = _enter(updated, OfferStatus.COMPLETED, ActorRole.SYSTEM, None, now)
        events.append(
            OfferEventRecord(
                offer_id=offer.id,
                event_type=EventType.OFFER_COMPLETED,
                old_status=target,
                new_status=OfferStatus.COMPLETED,
                actor_role=ActorRole.SYSTEM,
                metadata={"auto_completed_from": target.value},
                created_at=now,
            )
        )

    return TransitionPlan(offer=updated, expected_status=offer.status, events=tuple(events))


def allowed_transitions(
    offer: Offer,
    actor_id: str,
    now: datetime | None = None,
) -> list[OfferStatus]:
    """Return the statuses ``actor_id`` may request on ``offer`` right now."""
    now = now or utcnow()
    role = offer.role_of(actor_id)
    current = offer.effective_status(now)
    if role is None or current.is_terminal:
        return []

    allowed = []
    for target, rule in TRANSITION_RULES.items():
        if role not in rule.roles:
            continue
        try:
            _fire(current, rule.event, offer.is_pickup)
        except TransitionNotAllowed:
            continue
        allowed.append(target)
    return allowed


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _fire(current: OfferStatus, event: str, pickup: bool) -> OfferStatus:
    return OfferStatus(validate_transition(current.value, event, pickup=pickup))


def _enter(
    offer: Offer,
    status: OfferStatus,
    role: ActorRole,
    reason: str | None,
    now: datetime,
) -> Offer:
    """Return ``offer`` moved into ``status`` with its timestamp stamped."""
    changes: dict = {"status": status, "status_updated_at": now, "updated_at": now}

    field_name = TIMESTAMP_FIELDS.get(status)
    if field_name is not None and getattr(offer, field_name) is None:
        changes[field_name] = now

    if status == OfferStatus.CANCELLED:
        changes["cancelled_by"] = role
        changes["cancellation_reason"] = (reason or "").strip() or None

    return replace(offer, **changes)


def _event_metadata(offer: Offer, target: OfferStatus, updated: Offer) -> dict:
    if target == OfferStatus.CANCELLED and updated.cancellation_reason:
        return {"reason": updated.cancellation_reason}
    if target in (OfferStatus.TO_SHIP, OfferStatus.READY_TO_PICKUP):
        return {"delivery_options": list(offer.delivery_options)}
    return {}


def _branch_hint(current: OfferStatus, target: OfferStatus) -> str:
    if current == OfferStatus.ACCEPTED and target == OfferStatus.TO_SHIP:
        return "offer is set up for pickup"
    if current == OfferStatus.ACCEPTED and target == OfferStatus.READY_TO_PICKUP:
        return "offer does not include pickup"
    return ""
