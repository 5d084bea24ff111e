"""Shared test fixtures for the Farmgate Offers test suite.

Provides:
    - Party ids and a fixed clock
    - Factory functions for offers in any status
    - In-memory stores, including ones that force a race
    - An in-memory SQLite engine and session for the SQL store
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import TYPE_CHECKING

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from farmgate_offers.domain.enums import OfferStatus
from farmgate_offers.domain.offer import Offer
from farmgate_offers.infrastructure.database.engine import create_session_factory
from farmgate_offers.infrastructure.database.orm_models import Base
from farmgate_offers.infrastructure.memory_store import InMemoryOfferStore

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

BUYER_ID = "buyer-001"
SELLER_ID = "seller-001"
STRANGER_ID = "stranger-001"

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=UTC)


def make_offer(
    status: OfferStatus = OfferStatus.PENDING,
    delivery_options: tuple[str, ...] = ("delivery",),
    **overrides,
) -> Offer:
    """Build an offer snapshot created an hour before FIXED_NOW."""
    created = FIXED_NOW - timedelta(hours=1)
    offer = Offer(
        id=uuid.uuid4(),
        product_id="tomatoes-roma",
        buyer_id=BUYER_ID,
        seller_id=SELLER_ID,
        price=Decimal("1.80"),
        quantity=50,
        delivery_options=delivery_options,
        status=status,
        status_updated_at=created,
        payment_terms=("Cash on Delivery",),
        created_at=created,
        updated_at=created,
    )
    if status != OfferStatus.PENDING:
        offer = replace(offer, accepted_at=created)
    return replace(offer, **overrides)


# ---------------------------------------------------------------------------
# Stores that force interleavings
# ---------------------------------------------------------------------------


class BarrierOfferStore(InMemoryOfferStore):
    """Holds every ``load`` until ``parties`` callers have read the offer.

    Lets two requests observe the same starting status before either saves.
    """

    def __init__(self, parties: int = 2) -> None:
        super().__init__()
        self._parties = parties
        self._loaded = 0
        self._all_loaded = asyncio.Event()

    async def load(self, offer_id: uuid.UUID) -> Offer:
        offer = await super().load(offer_id)
        self._loaded += 1
        if self._loaded >= self._parties:
            self._all_loaded.set()
        await self._all_loaded.wait()
        return offer


class InterleavingOfferStore(InMemoryOfferStore):
    """Applies a competing write right after each ``load`` returns its snapshot."""

    def __init__(self, competing: Callable[[Offer], Offer]) -> None:
        super().__init__()
        self._competing = competing

    async def load(self, offer_id: uuid.UUID) -> Offer:
        offer = await super().load(offer_id)
        self._offers[offer_id] = self._competing(offer)
        return offer


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    """A clock frozen at FIXED_NOW."""
    return lambda: FIXED_NOW


@pytest.fixture
def memory_store() -> InMemoryOfferStore:
    return InMemoryOfferStore()


@pytest.fixture
def sample_offer_data() -> dict:
    """Return valid offer creation arguments (buyer id excluded)."""
    return {
        "seller_id": SELLER_ID,
        "product_id": "eggs-crate",
        "price": Decimal("6.00"),
        "quantity": 10,
        "delivery_options": ["Pickup"],
        "payment_terms": ["Cash on Delivery"],
        "message": "Can collect on Saturday morning",
    }


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with the schema created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
