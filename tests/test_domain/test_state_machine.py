"""Tests for the OfferStateMachine domain guard.

These tests verify that:
    1. Both delivery paths reach COMPLETED.
    2. The delivery branch is chosen by the pickup flag.
    3. Illegal transitions and terminal states are blocked.
    4. The convenience function validate_transition works.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from farmgate_offers.domain.state_machine import (
    EVENT_NAMES,
    OfferStateMachine,
    validate_transition,
)


class TestShipPath:
    """pending -> accepted -> to_ship -> shipped -> to_receive -> completed."""

    def test_full_lifecycle(self) -> None:
        sm = OfferStateMachine("pending")
        assert sm.status == "pending"

        sm.accept()
        assert sm.status == "accepted"

        sm.prepare_shipment()
        assert sm.status == "to_ship"

        sm.ship()
        assert sm.status == "shipped"

        sm.confirm_receipt()
        assert sm.status == "to_receive"

        sm.complete()
        assert sm.status == "completed"


class TestPickupPath:
    """pending -> accepted -> ready_to_pickup -> picked_up -> completed."""

    def test_full_lifecycle(self) -> None:
        sm = OfferStateMachine("pending", pickup=True)
        sm.accept()
        sm.mark_ready_for_pickup()
        assert sm.status == "ready_to_pickup"

        sm.confirm_pickup()
        assert sm.status == "picked_up"

        sm.complete()
        assert sm.status == "completed"


class TestDeliveryBranch:
    def test_pickup_offer_cannot_prepare_shipment(self) -> None:
        sm = OfferStateMachine("accepted", pickup=True)
        with pytest.raises(TransitionNotAllowed):
            sm.prepare_shipment()
        assert sm.status == "accepted"

    def test_delivery_offer_cannot_mark_ready_for_pickup(self) -> None:
        sm = OfferStateMachine("accepted", pickup=False)
        with pytest.raises(TransitionNotAllowed):
            sm.mark_ready_for_pickup()
        assert sm.status == "accepted"


class TestCancellation:
    @pytest.mark.parametrize(
        "status", ["pending", "accepted", "to_ship", "shipped", "ready_to_pickup"]
    )
    def test_cancel_from_open_status(self, status: str) -> None:
        sm = OfferStateMachine(status, pickup=status == "ready_to_pickup")
        sm.cancel()
        assert sm.status == "cancelled"

    @pytest.mark.parametrize("status", ["picked_up", "to_receive"])
    def test_cannot_cancel_transient_status(self, status: str) -> None:
        sm = OfferStateMachine(status)
        with pytest.raises(TransitionNotAllowed):
            sm.cancel()


class TestIllegalTransitions:
    """Verify that illegal transitions raise TransitionNotAllowed."""

    def test_pending_to_shipped(self) -> None:
        sm = OfferStateMachine("pending")
        with pytest.raises(TransitionNotAllowed):
            sm.ship()

    def test_accepted_cannot_be_accepted_again(self) -> None:
        sm = OfferStateMachine("accepted")
        with pytest.raises(TransitionNotAllowed):
            sm.accept()

    @pytest.mark.parametrize("status", ["completed", "rejected", "cancelled", "expired"])
    def test_terminal_status_is_final(self, status: str) -> None:
        sm = OfferStateMachine(status)
        for event in EVENT_NAMES:
            with pytest.raises(TransitionNotAllowed):
                sm.send(event)
        assert sm.status == status


class TestValidateTransitionFunction:
    """Test the convenience function."""

    def test_valid_transition(self) -> None:
        assert validate_transition("pending", "accept") == "accepted"

    def test_branch_uses_pickup_flag(self) -> None:
        assert validate_transition("accepted", "mark_ready_for_pickup", pickup=True) == (
            "ready_to_pickup"
        )

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            validate_transition("pending", "nonexistent_event")

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            OfferStateMachine("INVALID_STATUS")
