"""Pydantic API schemas."""

from farmgate_offers.schemas.offer import (
    CreateOfferRequest,
    HealthResponse,
    OfferEventResponse,
    OfferResponse,
    OfferTransitionsResponse,
    UpdateOfferStatusRequest,
)

__all__ = [
    "CreateOfferRequest",
    "HealthResponse",
    "OfferEventResponse",
    "OfferResponse",
    "OfferTransitionsResponse",
    "UpdateOfferStatusRequest",
]
