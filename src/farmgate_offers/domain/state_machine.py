"""Offer State Machine Guard.

Uses python-statemachine to enforce legal offer transitions at the domain level.
No matter what the API or a script asks for, an illegal transition
(e.g., pending -> shipped) will raise TransitionNotAllowed.

The machine is instantiated per offer, at the offer's current status, and is
only used to validate a step before the planner builds the new snapshot.

Transition table:
    pending          -> accepted          (accept)
    pending          -> rejected          (reject)
    pending          -> expired           (expire)
    accepted         -> to_ship           (prepare_shipment, unless pickup)
    accepted         -> ready_to_pickup   (mark_ready_for_pickup, if pickup)
    to_ship          -> shipped           (ship)
    shipped          -> to_receive        (confirm_receipt)
    ready_to_pickup  -> picked_up         (confirm_pickup)
    to_receive       -> completed         (complete)
    picked_up        -> completed         (complete)
    pending, accepted, to_ship,
    shipped, ready_to_pickup -> cancelled (cancel)
"""

from __future__ import annotations

from statemachine import State, StateMachine


class OfferStateMachine(StateMachine):
    """State machine that guards the offer lifecycle.

    Usage:
        sm = OfferStateMachine(current_status="accepted", pickup=True)
        sm.send("mark_ready_for_pickup")
        sm.status  # "ready_to_pickup"
    """

    # --- States ---
    pending = State("Pending", value="pending", initial=True)
    accepted = State("Accepted", value="accepted")
    to_ship = State("To ship", value="to_ship")
    ready_to_pickup = State("Ready to pickup", value="ready_to_pickup")
    shipped = State("Shipped", value="shipped")
    picked_up = State("Picked up", value="picked_up")
    to_receive = State("To receive", value="to_receive")
    completed = State("Completed", value="completed", final=True)
    rejected = State("Rejected", value="rejected", final=True)
    cancelled = State("Cancelled", value="cancelled", final=True)
    expired = State("Expired", value="expired", final=True)

    # --- Events / Transitions ---

    # Seller's decision
    accept = pending.to(accepted)
    reject = pending.to(rejected)

    # Never fired: expiry is derived when a pending offer is read past its
    # deadline. The edge keeps `expired` connected to the graph.
    expire = pending.to(expired)

    # Delivery branch, chosen once on leaving accepted
    prepare_shipment = accepted.to(to_ship, unless="pickup_selected")
    mark_ready_for_pickup = accepted.to(ready_to_pickup, cond="pickup_selected")

    # Ship path
    ship = to_ship.to(shipped)
    confirm_receipt = shipped.to(to_receive)

    # Pickup path
    confirm_pickup = ready_to_pickup.to(picked_up)

    # Auto-completion of the buyer's "received" signal
    complete = to_receive.to(completed) | picked_up.to(completed)

    cancel = (
        pending.to(cancelled)
        | accepted.to(cancelled)
        | to_ship.to(cancelled)
        | shipped.to(cancelled)
        | ready_to_pickup.to(cancelled)
    )

    def __init__(self, current_status: str = "pending", pickup: bool = False) -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current OfferStatus value (e.g., "accepted").
                           Must match one of the State values exactly.
            pickup: Whether the offer's delivery options include pickup.
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        self._pickup = pickup
        super().__init__(start_value=current_status)

    def pickup_selected(self) -> bool:
        return self._pickup

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches OfferStatus)."""
        return str(self.current_state.value)


EVENT_NAMES = frozenset(
    {
        "accept",
        "reject",
        "expire",
        "prepare_shipment",
        "mark_ready_for_pickup",
        "ship",
        "confirm_receipt",
        "confirm_pickup",
        "complete",
        "cancel",
    }
)


def validate_transition(current_status: str, event_name: str, pickup: bool = False) -> str:
    """Validate a state transition and return the new status.

    Creates a temporary state machine, fires the named event and returns
    the resulting status string.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = OfferStateMachine(current_status=current_status, pickup=pickup)
    if event_name not in EVENT_NAMES:
        raise ValueError(
            f"Unknown event '{event_name}'. Known events: {', '.join(sorted(EVENT_NAMES))}"
        )
    sm.send(event_name)
    return sm.status
