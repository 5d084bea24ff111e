"""Offer REST API routes.

Routes:
    POST   /api/v1/offers                    — Make an offer (caller is the buyer)
    GET    /api/v1/offers?type=sent|received — Caller's offers
    GET    /api/v1/offers/{id}               — Offer details (parties only)
    PUT    /api/v1/offers/{id}               — Request a status transition
    GET    /api/v1/offers/{id}/transitions   — Statuses the caller may request
    GET    /api/v1/offers/{id}/events        — Audit trail (parties only)
"""

from __future__ import annotations

import uuid  # noqa: TC003 - FastAPI resolves path parameter types at runtime

from fastapi import APIRouter, Depends, Query

from farmgate_offers.api.deps import (
    get_caller_id,
    get_lifecycle_engine,
    get_offer_service,
)
from farmgate_offers.domain.enums import OfferListType
from farmgate_offers.logging_config import get_logger
from farmgate_offers.schemas.offer import (
    CreateOfferRequest,
    OfferEventResponse,
    OfferResponse,
    OfferTransitionsResponse,
    UpdateOfferStatusRequest,
)
from farmgate_offers.services.offer_lifecycle import OfferLifecycleEngine
from farmgate_offers.services.offer_service import OfferService

router = APIRouter(prefix="/api/v1/offers", tags=["Offers"])
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=OfferResponse,
    status_code=201,
    summary="Make an offer",
)
async def create_offer(
    request: CreateOfferRequest,
    caller_id: str = Depends(get_caller_id),
    svc: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    """Create a new offer in pending status with the caller as buyer."""
    offer = await svc.create_offer(
        buyer_id=caller_id,
        seller_id=request.seller_id,
        product_id=request.product_id,
        price=request.price,
        quantity=request.quantity,
        delivery_options=request.delivery_options,
        payment_terms=request.payment_terms,
        message=request.message,
        expires_at=request.expires_at,
    )
    return OfferResponse.model_validate(offer)


# ---------------------------------------------------------------------------
# Transition
# ---------------------------------------------------------------------------


@router.put(
    "/{offer_id}",
    response_model=OfferResponse,
    summary="Request a status transition",
)
async def update_offer_status(
    offer_id: uuid.UUID,
    request: UpdateOfferStatusRequest,
    caller_id: str = Depends(get_caller_id),
    engine: OfferLifecycleEngine = Depends(get_lifecycle_engine),
) -> OfferResponse:
    """Move the offer to the requested status.

    Confirming receipt (``to_receive``) or pickup (``picked_up``) returns the
    offer already ``completed``.
    """
    offer = await engine.request_transition(
        offer_id=offer_id,
        actor_id=caller_id,
        requested_status=request.status,
        reason=request.cancellation_reason,
    )
    return OfferResponse.model_validate(offer)


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[OfferResponse],
    summary="List the caller's offers",
)
async def list_offers(
    list_type: OfferListType = Query(default=OfferListType.RECEIVED, alias="type"),
    caller_id: str = Depends(get_caller_id),
    svc: OfferService = Depends(get_offer_service),
) -> list[OfferResponse]:
    """Offers the caller sent as buyer, or received as seller."""
    offers = await svc.list_offers(caller_id, list_type)
    return [OfferResponse.model_validate(o) for o in offers]


@router.get(
    "/{offer_id}",
    response_model=OfferResponse,
    summary="Get offer details",
)
async def get_offer(
    offer_id: uuid.UUID,
    caller_id: str = Depends(get_caller_id),
    svc: OfferService = Depends(get_offer_service),
) -> OfferResponse:
    """Fetch an offer by its UUID."""
    offer = await svc.get_offer(offer_id, caller_id)
    return OfferResponse.model_validate(offer)


@router.get(
    "/{offer_id}/transitions",
    response_model=OfferTransitionsResponse,
    summary="Statuses the caller may request",
)
async def get_transitions(
    offer_id: uuid.UUID,
    caller_id: str = Depends(get_caller_id),
    svc: OfferService = Depends(get_offer_service),
    engine: OfferLifecycleEngine = Depends(get_lifecycle_engine),
) -> OfferTransitionsResponse:
    """Return the current status and the targets the caller may request."""
    offer = await svc.get_offer(offer_id, caller_id)
    allowed = await engine.allowed_transitions(offer_id, caller_id)
    return OfferTransitionsResponse(
        offer_id=offer.id,
        status=offer.status,
        allowed_statuses=[s.value for s in allowed],
    )


@router.get(
    "/{offer_id}/events",
    response_model=list[OfferEventResponse],
    summary="Get audit trail",
)
async def get_events(
    offer_id: uuid.UUID,
    caller_id: str = Depends(get_caller_id),
    svc: OfferService = Depends(get_offer_service),
) -> list[OfferEventResponse]:
    """Return the full audit trail for an offer."""
    events = await svc.get_events(offer_id, caller_id)
    return [OfferEventResponse.model_validate(e) for e in events]
