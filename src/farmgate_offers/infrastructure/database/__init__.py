"""Database infrastructure — engine, ORM models, repositories and the store adapter."""

from farmgate_offers.infrastructure.database.engine import (
    close_db,
    create_session_factory,
    get_async_session,
    init_db,
)
from farmgate_offers.infrastructure.database.orm_models import (
    Base,
    OfferEventRow,
    OfferRow,
)
from farmgate_offers.infrastructure.database.repositories import (
    EventRepository,
    OfferRepository,
)
from farmgate_offers.infrastructure.database.store import SqlOfferStore

__all__ = [
    "Base",
    "OfferRow",
    "OfferEventRow",
    "OfferRepository",
    "EventRepository",
    "SqlOfferStore",
    "create_session_factory",
    "get_async_session",
    "init_db",
    "close_db",
]
