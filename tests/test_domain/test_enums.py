"""Tests for domain enumerations."""

from __future__ import annotations

from farmgate_offers.domain.enums import (
    TERMINAL_STATUSES,
    ActorRole,
    EventType,
    OfferListType,
    OfferStatus,
)


class TestOfferStatus:
    def test_all_statuses_exist(self) -> None:
        expected = {
            "pending", "accepted", "rejected", "to_ship", "ready_to_pickup",
            "shipped", "picked_up", "to_receive", "completed", "cancelled", "expired",
        }
        actual = {s.value for s in OfferStatus}
        assert actual == expected

    def test_status_is_str_enum(self) -> None:
        assert isinstance(OfferStatus.PENDING, str)
        assert OfferStatus.READY_TO_PICKUP == "ready_to_pickup"

    def test_terminal_statuses(self) -> None:
        assert {s.value for s in TERMINAL_STATUSES} == {
            "completed", "rejected", "cancelled", "expired",
        }
        assert OfferStatus.EXPIRED.is_terminal
        assert not OfferStatus.SHIPPED.is_terminal

    def test_transient_statuses(self) -> None:
        assert OfferStatus.PICKED_UP.is_transient
        assert OfferStatus.TO_RECEIVE.is_transient
        assert not OfferStatus.COMPLETED.is_transient


class TestEventType:
    def test_all_event_types_exist(self) -> None:
        # creation + 7 actor steps + completion + cancellation
        assert len(EventType) == 10

    def test_event_type_is_str_enum(self) -> None:
        assert isinstance(EventType.OFFER_CREATED, str)


class TestRolesAndListTypes:
    def test_actor_roles(self) -> None:
        assert ActorRole.BUYER == "buyer"
        assert ActorRole.SELLER == "seller"
        assert ActorRole.SYSTEM == "system"

    def test_list_types(self) -> None:
        assert OfferListType("sent") is OfferListType.SENT
        assert OfferListType("received") is OfferListType.RECEIVED
