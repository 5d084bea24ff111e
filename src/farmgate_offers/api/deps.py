"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
the offer store, services, the caller's identity and configuration.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request

from farmgate_offers.config import Settings, get_settings
from farmgate_offers.infrastructure.database.engine import get_async_session
from farmgate_offers.infrastructure.database.store import SqlOfferStore
from farmgate_offers.services.offer_lifecycle import OfferLifecycleEngine
from farmgate_offers.services.offer_service import OfferService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlalchemy.ext.asyncio import AsyncSession


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


async def get_offer_store(
    session: AsyncSession = Depends(get_db_session),
) -> SqlOfferStore:
    """Provide an OfferStore bound to the current session."""
    return SqlOfferStore(session)


async def get_lifecycle_engine(
    store: SqlOfferStore = Depends(get_offer_store),
) -> OfferLifecycleEngine:
    """Provide the lifecycle engine over the request's store."""
    return OfferLifecycleEngine(store)


async def get_offer_service(
    store: SqlOfferStore = Depends(get_offer_store),
    settings: Settings = Depends(get_app_settings),
) -> OfferService:
    """Provide the offer service over the request's store."""
    return OfferService(store, default_ttl=settings.offer_ttl)


def get_caller_id(
    request: Request,
    settings: Settings = Depends(get_app_settings),
) -> str:
    """Return the authenticated caller's user id.

    The authentication gateway in front of this service sets the header;
    a request without it never passed authentication.
    """
    caller_id = request.headers.get(settings.caller_id_header, "").strip()
    if not caller_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return caller_id
