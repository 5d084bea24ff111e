"""HTTP tests for the offer routes.

The app runs over httpx's ASGITransport with the database session
dependency pointed at in-memory SQLite, so requests go through the real
middleware, dependencies and SQL store.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from conftest import BUYER_ID, SELLER_ID, STRANGER_ID, InterleavingOfferStore, make_offer
from httpx import ASGITransport, AsyncClient

from farmgate_offers.api.deps import get_db_session, get_offer_store
from farmgate_offers.domain.enums import ActorRole, OfferStatus
from farmgate_offers.infrastructure.database.store import SqlOfferStore
from farmgate_offers.main import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from fastapi import FastAPI

pytestmark = pytest.mark.integration


def headers(user_id: str) -> dict[str, str]:
    return {"X-User-ID": user_id}


@pytest.fixture
def app(session_factory) -> FastAPI:
    app = create_app()

    async def override_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    return app


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def make_offer_via_api(client: AsyncClient, **overrides) -> dict:
    body = {
        "product_id": "eggs-crate",
        "seller_id": SELLER_ID,
        "price": "6.00",
        "quantity": 10,
        "delivery_options": ["Pickup"],
        **overrides,
    }
    resp = await client.post("/api/v1/offers", json=body, headers=headers(BUYER_ID))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def put_status(client: AsyncClient, offer_id: str, user_id: str, status: str, **extra):
    return await client.put(
        f"/api/v1/offers/{offer_id}",
        json={"status": status, **extra},
        headers=headers(user_id),
    )


# ---------------------------------------------------------------------------
# Create & read
# ---------------------------------------------------------------------------


class TestCreateAndRead:
    @pytest.mark.asyncio
    async def test_create_offer(self, client) -> None:
        offer = await make_offer_via_api(client, message="Saturday pickup")

        assert offer["status"] == "pending"
        assert offer["buyer_id"] == BUYER_ID
        assert offer["seller_id"] == SELLER_ID
        assert Decimal(offer["price"]) == Decimal("6.00")
        assert offer["payment_terms"] == ["Cash on Delivery"]
        assert offer["accepted_at"] is None

    @pytest.mark.asyncio
    async def test_offer_to_self_is_rejected(self, client) -> None:
        resp = await client.post(
            "/api/v1/offers",
            json={"product_id": "p", "seller_id": BUYER_ID, "price": "1.00", "quantity": 1},
            headers=headers(BUYER_ID),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_OFFER"

    @pytest.mark.asyncio
    async def test_non_positive_price_fails_validation(self, client) -> None:
        resp = await client.post(
            "/api/v1/offers",
            json={"product_id": "p", "seller_id": SELLER_ID, "price": "0", "quantity": 1},
            headers=headers(BUYER_ID),
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_caller_header(self, client) -> None:
        resp = await client.get("/api/v1/offers")
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_get_offer_parties_only(self, client) -> None:
        offer = await make_offer_via_api(client)

        resp = await client.get(f"/api/v1/offers/{offer['id']}", headers=headers(SELLER_ID))
        assert resp.status_code == 200
        assert resp.json()["id"] == offer["id"]

        resp = await client.get(f"/api/v1/offers/{offer['id']}", headers=headers(STRANGER_ID))
        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"

    @pytest.mark.asyncio
    async def test_unknown_offer(self, client) -> None:
        resp = await client.get(
            "/api/v1/offers/00000000-0000-0000-0000-000000000000",
            headers=headers(BUYER_ID),
        )
        assert resp.status_code == 404
        assert resp.json()["error"] == "OFFER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_list_sent_and_received(self, client) -> None:
        offer = await make_offer_via_api(client)

        sent = await client.get("/api/v1/offers?type=sent", headers=headers(BUYER_ID))
        received = await client.get("/api/v1/offers?type=received", headers=headers(SELLER_ID))
        default = await client.get("/api/v1/offers", headers=headers(BUYER_ID))

        assert [o["id"] for o in sent.json()] == [offer["id"]]
        assert [o["id"] for o in received.json()] == [offer["id"]]
        assert default.json() == []

    @pytest.mark.asyncio
    async def test_list_rejects_unknown_type(self, client) -> None:
        resp = await client.get("/api/v1/offers?type=everything", headers=headers(BUYER_ID))
        assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


class TestTransitions:
    @pytest.mark.asyncio
    async def test_pickup_path_auto_completes(self, client) -> None:
        offer = await make_offer_via_api(client, delivery_options=["pickup"])
        offer_id = offer["id"]

        assert (await put_status(client, offer_id, SELLER_ID, "accepted")).status_code == 200
        resp = await put_status(client, offer_id, SELLER_ID, "ready_to_pickup")
        assert resp.json()["status"] == "ready_to_pickup"

        resp = await put_status(client, offer_id, BUYER_ID, "picked_up")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "completed"
        assert body["received_at"] is not None
        assert body["received_at"] == body["completed_at"]

        events = await client.get(f"/api/v1/offers/{offer_id}/events", headers=headers(BUYER_ID))
        assert [e["event_type"] for e in events.json()] == [
            "OFFER_CREATED",
            "OFFER_ACCEPTED",
            "PICKUP_READY",
            "PICKUP_CONFIRMED",
            "OFFER_COMPLETED",
        ]

    @pytest.mark.asyncio
    async def test_wrong_actor_is_forbidden(self, client) -> None:
        offer = await make_offer_via_api(client, delivery_options=["delivery"])
        await put_status(client, offer["id"], SELLER_ID, "accepted")

        resp = await put_status(client, offer["id"], BUYER_ID, "to_ship")

        assert resp.status_code == 403
        assert resp.json()["error"] == "FORBIDDEN"
        current = await client.get(f"/api/v1/offers/{offer['id']}", headers=headers(BUYER_ID))
        assert current.json()["status"] == "accepted"

    @pytest.mark.asyncio
    async def test_wrong_branch_is_invalid(self, client) -> None:
        offer = await make_offer_via_api(client, delivery_options=["Pickup"])
        await put_status(client, offer["id"], SELLER_ID, "accepted")

        resp = await put_status(client, offer["id"], SELLER_ID, "to_ship")

        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_STATE_TRANSITION"

    @pytest.mark.asyncio
    async def test_terminal_offer_is_invalid(self, client) -> None:
        offer = await make_offer_via_api(client)
        await put_status(client, offer["id"], SELLER_ID, "rejected")

        resp = await put_status(client, offer["id"], BUYER_ID, "cancelled")

        assert resp.status_code == 400

    @pytest.mark.asyncio
    async def test_unknown_status_token(self, client) -> None:
        offer = await make_offer_via_api(client)
        resp = await put_status(client, offer["id"], SELLER_ID, "teleported")
        assert resp.status_code == 400
        assert "unknown status" in resp.json()["message"]

    @pytest.mark.asyncio
    async def test_cancel_with_reason(self, client) -> None:
        offer = await make_offer_via_api(client)

        resp = await put_status(
            client, offer["id"], SELLER_ID, "cancelled", cancellation_reason="Sold out"
        )

        body = resp.json()
        assert body["status"] == "cancelled"
        assert body["cancelled_by"] == "seller"
        assert body["cancellation_reason"] == "Sold out"
        assert body["cancelled_at"] is not None

    @pytest.mark.asyncio
    async def test_past_deadline_rejected_at_creation(self, client) -> None:
        resp = await client.post(
            "/api/v1/offers",
            json={
                "product_id": "p",
                "seller_id": SELLER_ID,
                "price": "1.00",
                "quantity": 1,
                "expires_at": "2001-01-01T00:00:00Z",
            },
            headers=headers(BUYER_ID),
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_OFFER"

    @pytest.mark.asyncio
    async def test_deadline_without_offset_fails_validation(self, client) -> None:
        resp = await client.post(
            "/api/v1/offers",
            json={
                "product_id": "p",
                "seller_id": SELLER_ID,
                "price": "1.00",
                "quantity": 1,
                "expires_at": "2099-01-01T00:00:00",
            },
            headers=headers(BUYER_ID),
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_deadline_with_offset_is_stored_in_utc(self, client) -> None:
        offer = await make_offer_via_api(client, expires_at="2099-01-01T02:00:00+02:00")

        resp = await client.get(f"/api/v1/offers/{offer['id']}", headers=headers(SELLER_ID))
        assert resp.status_code == 200
        assert resp.json()["status"] == "pending"
        assert datetime.fromisoformat(resp.json()["expires_at"]) == datetime(2099, 1, 1, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_expired_offer_reads_expired_and_rejects(self, client, session_factory) -> None:
        offer = make_offer(expires_at=datetime(2001, 1, 1, tzinfo=UTC))
        async with session_factory() as session:
            await SqlOfferStore(session).add(offer)
            await session.commit()

        resp = await client.get(f"/api/v1/offers/{offer.id}", headers=headers(SELLER_ID))
        assert resp.json()["status"] == "expired"

        resp = await put_status(client, str(offer.id), SELLER_ID, "accepted")
        assert resp.status_code == 400
        assert resp.json()["error"] == "INVALID_STATE_TRANSITION"

    @pytest.mark.asyncio
    async def test_allowed_transitions(self, client) -> None:
        offer = await make_offer_via_api(client, delivery_options=["pickup"])

        seller = await client.get(
            f"/api/v1/offers/{offer['id']}/transitions", headers=headers(SELLER_ID)
        )
        buyer = await client.get(
            f"/api/v1/offers/{offer['id']}/transitions", headers=headers(BUYER_ID)
        )

        assert seller.json()["status"] == "pending"
        assert set(seller.json()["allowed_statuses"]) == {"accepted", "rejected", "cancelled"}
        assert buyer.json()["allowed_statuses"] == ["cancelled"]


# ---------------------------------------------------------------------------
# Conflict and unexpected errors
# ---------------------------------------------------------------------------


class TestErrorMapping:
    @pytest.mark.asyncio
    async def test_concurrent_write_maps_to_409(self, app, client) -> None:
        def buyer_cancels(offer):
            return replace(offer, status=OfferStatus.CANCELLED, cancelled_by=ActorRole.BUYER)

        store = InterleavingOfferStore(buyer_cancels)
        offer = await store.add(make_offer())
        app.dependency_overrides[get_offer_store] = lambda: store

        resp = await put_status(client, str(offer.id), SELLER_ID, "accepted")

        assert resp.status_code == 409
        assert resp.json()["error"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_unexpected_error_maps_to_500(self, app, client) -> None:
        class BrokenStore:
            async def load(self, offer_id):
                raise RuntimeError("disk on fire")

        app.dependency_overrides[get_offer_store] = BrokenStore
        offer = make_offer()

        resp = await put_status(client, str(offer.id), SELLER_ID, "accepted")

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, client) -> None:
        resp = await client.get(
            "/api/v1/offers", headers={**headers(BUYER_ID), "X-Request-ID": "req-123"}
        )
        assert resp.headers["X-Request-ID"] == "req-123"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health_reports_database(self, client, db_engine, monkeypatch) -> None:
        monkeypatch.setattr(
            "farmgate_offers.infrastructure.database.engine._engine", db_engine
        )
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.json()["database"] == "healthy"
