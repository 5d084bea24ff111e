#!/usr/bin/env python3
"""Farmgate Offers — End-to-End Simulation.

Simulates four scenarios with a BuyerBot and a SellerBot:

    Scenario 1: Ship path
        - Buyer offers on 50 kg of tomatoes, delivery by courier
        - Seller accepts, prepares and ships
        - Buyer confirms receipt -> auto-completes to COMPLETED

    Scenario 2: Pickup path
        - Buyer offers on a crate of eggs, will pick up at the farm
        - Seller accepts and marks the order ready for pickup
        - Buyer confirms pickup -> auto-completes to COMPLETED

    Scenario 3: Cancellation and wrong actor
        - Buyer tries to prepare the shipment -> FORBIDDEN
        - Buyer cancels after acceptance with a reason

    Scenario 4: Race
        - Seller accepts and rejects the same pending offer concurrently
        - Exactly one wins, the other gets CONFLICT

Usage:
    # In-memory store (default, no database):
    uv run python simulation.py

    # SQLite in-memory through the SQLAlchemy store:
    uv run python simulation.py --sqlite

    # Run a specific scenario:
    uv run python simulation.py --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from farmgate_offers.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

from farmgate_offers.domain.exceptions import MarketplaceError  # noqa: E402
from farmgate_offers.infrastructure.memory_store import InMemoryOfferStore  # noqa: E402
from farmgate_offers.services.offer_lifecycle import OfferLifecycleEngine  # noqa: E402
from farmgate_offers.services.offer_service import OfferService  # noqa: E402

if TYPE_CHECKING:
    import uuid
    from collections.abc import AsyncIterator

    from farmgate_offers.domain.offer import Offer

# Module-level state
_memory_store: InMemoryOfferStore | None = None
_sqlite_engine = None
_sqlite_session_factory = None


# ---------------------------------------------------------------------------
# Store lifecycle helpers
# ---------------------------------------------------------------------------
async def init_backend(use_sqlite: bool = False) -> None:
    """Create the in-memory store or an SQLite database with the schema."""
    global _memory_store, _sqlite_engine, _sqlite_session_factory

    if not use_sqlite:
        _memory_store = InMemoryOfferStore()
        logger.info("store.memory_initialized")
        return

    from sqlalchemy.ext.asyncio import create_async_engine
    from sqlalchemy.pool import StaticPool

    from farmgate_offers.infrastructure.database.engine import create_session_factory
    from farmgate_offers.infrastructure.database.orm_models import Base

    _sqlite_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    _sqlite_session_factory = create_session_factory(_sqlite_engine)
    async with _sqlite_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database.sqlite_initialized")


@asynccontextmanager
async def open_store() -> AsyncIterator[Any]:
    """Yield a store for one unit of work, committing SQL sessions on success."""
    if _sqlite_session_factory is None:
        yield _memory_store
        return

    from farmgate_offers.infrastructure.database.store import SqlOfferStore

    async with _sqlite_session_factory() as session:
        try:
            yield SqlOfferStore(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def shutdown_backend() -> None:
    global _memory_store, _sqlite_engine, _sqlite_session_factory

    if _sqlite_engine is not None:
        await _sqlite_engine.dispose()
    _memory_store = None
    _sqlite_engine = None
    _sqlite_session_factory = None


# ---------------------------------------------------------------------------
# Bot Agents
# ---------------------------------------------------------------------------
@dataclass
class SellerBot:
    """Simulated farmer listing produce."""

    user_id: str = "seller-farm-001"

    async def move(self, offer_id: uuid.UUID, status: str, reason: str | None = None) -> Offer:
        async with open_store() as store:
            offer = await OfferLifecycleEngine(store).request_transition(
                offer_id, self.user_id, status, reason=reason
            )
        logger.info("🟢 SELLER: status updated", offer_id=str(offer_id), status=offer.status.value)
        return offer


@dataclass
class BuyerBot:
    """Simulated buyer making offers."""

    user_id: str = "buyer-coop-001"

    async def make_offer(
        self,
        seller: SellerBot,
        product_id: str,
        price: Decimal,
        quantity: int,
        delivery_options: list[str],
    ) -> uuid.UUID:
        async with open_store() as store:
            offer = await OfferService(store).create_offer(
                buyer_id=self.user_id,
                seller_id=seller.user_id,
                product_id=product_id,
                price=price,
                quantity=quantity,
                delivery_options=delivery_options,
            )
        logger.info("🔵 BUYER: offer made", offer_id=str(offer.id), price=str(price))
        return offer.id

    async def move(self, offer_id: uuid.UUID, status: str, reason: str | None = None) -> Offer:
        async with open_store() as store:
            offer = await OfferLifecycleEngine(store).request_transition(
                offer_id, self.user_id, status, reason=reason
            )
        logger.info("🔵 BUYER: status updated", offer_id=str(offer_id), status=offer.status.value)
        return offer


# ---------------------------------------------------------------------------
# Output helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    print(f"\n--- {text} ---\n")


def print_offer(offer: Offer) -> None:
    print(f"  Status:      {offer.status.value}")
    for name in ("accepted_at", "shipped_at", "received_at", "completed_at", "cancelled_at"):
        value = getattr(offer, name)
        if value is not None:
            print(f"  {name:<12} {value.isoformat()}")
    if offer.cancelled_by is not None:
        print(f"  Cancelled by {offer.cancelled_by.value}: {offer.cancellation_reason or '-'}")


async def print_audit_trail(offer_id: uuid.UUID) -> None:
    async with open_store() as store:
        events = await store.events_for(offer_id)
    print("\n  📜 Audit Trail:")
    for i, evt in enumerate(events, 1):
        old = evt.old_status.value if evt.old_status else "∅"
        print(
            f"    {i}. [{evt.event_type.value}] {old} → {evt.new_status.value} "
            f"(by {evt.actor_role.value})"
        )
    print()


# ===========================================================================
# Scenarios
# ===========================================================================
async def scenario_1_ship_path() -> None:
    banner("SCENARIO 1: Ship path (tomatoes by courier)")
    buyer, seller = BuyerBot(), SellerBot()

    offer_id = await buyer.make_offer(
        seller, "tomatoes-roma", Decimal("1.80"), 50, ["Delivery"]
    )
    section("Seller accepts, prepares, ships")
    await seller.move(offer_id, "accepted")
    await seller.move(offer_id, "to_ship")
    await seller.move(offer_id, "shipped")

    section("Buyer confirms receipt")
    offer = await buyer.move(offer_id, "to_receive")
    print_offer(offer)
    await print_audit_trail(offer_id)


async def scenario_2_pickup_path() -> None:
    banner("SCENARIO 2: Pickup path (eggs collected at the farm)")
    buyer, seller = BuyerBot(), SellerBot()

    offer_id = await buyer.make_offer(seller, "eggs-crate", Decimal("6.00"), 10, ["Pickup"])
    section("Seller accepts and marks ready for pickup")
    await seller.move(offer_id, "accepted")
    await seller.move(offer_id, "ready_to_pickup")

    section("Buyer confirms pickup")
    offer = await buyer.move(offer_id, "picked_up")
    print_offer(offer)
    await print_audit_trail(offer_id)


async def scenario_3_cancellation() -> None:
    banner("SCENARIO 3: Wrong actor, then cancellation")
    buyer, seller = BuyerBot(), SellerBot()

    offer_id = await buyer.make_offer(seller, "rice-sack", Decimal("42.00"), 3, ["delivery"])
    await seller.move(offer_id, "accepted")

    section("Buyer tries to prepare the shipment")
    try:
        await buyer.move(offer_id, "to_ship")
    except MarketplaceError as exc:
        print(f"  ⛔ {exc.code}: {exc.message}")

    section("Buyer cancels")
    offer = await buyer.move(offer_id, "cancelled", reason="Found a closer supplier")
    print_offer(offer)
    await print_audit_trail(offer_id)


async def scenario_4_race() -> None:
    banner("SCENARIO 4: Concurrent accept and reject")
    buyer, seller = BuyerBot(), SellerBot()

    offer_id = await buyer.make_offer(seller, "mangoes", Decimal("3.25"), 40, ["shipping"])
    results = await asyncio.gather(
        seller.move(offer_id, "accepted"),
        seller.move(offer_id, "rejected"),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, MarketplaceError):
            print(f"  ⚔️  lost the race: {result.code}")
        elif isinstance(result, BaseException):
            raise result
        else:
            print(f"  🏁 won the race: {result.status.value}")
    await print_audit_trail(offer_id)


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    1: scenario_1_ship_path,
    2: scenario_2_pickup_path,
    3: scenario_3_cancellation,
    4: scenario_4_race,
}


async def run(num: int = 0, use_sqlite: bool = False) -> None:
    """Run one scenario, or all of them when ``num`` is 0."""
    await init_backend(use_sqlite=use_sqlite)
    try:
        if num == 0:
            print("\n" + "🌾" * 35)
            print("  FARMGATE OFFERS — SIMULATION")
            print(f"  Store: {'SQLite (in-memory)' if use_sqlite else 'in-memory dict'}")
            print("🌾" * 35 + "\n")
            for scenario in SCENARIOS.values():
                await scenario()
            banner("✅ ALL SCENARIOS COMPLETED")
        elif num in SCENARIOS:
            await SCENARIOS[num]()
        else:
            print(f"Unknown scenario {num}. Available: {', '.join(map(str, SCENARIOS))}")
    finally:
        await shutdown_backend()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Farmgate Offers Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1-4). Default: run all.",
    )
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Use SQLite in-memory through the SQLAlchemy store.",
    )
    args = parser.parse_args()
    asyncio.run(run(args.scenario, use_sqlite=args.sqlite))
