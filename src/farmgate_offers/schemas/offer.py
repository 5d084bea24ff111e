"""Pydantic schemas for the Offer API.

These schemas define the request/response shapes for the REST API. They
are separate from both the ORM rows and the domain dataclasses to keep
clean boundaries between the API, domain and database layers.
"""

from __future__ import annotations

import uuid  # noqa: TC003 - needed at runtime by pydantic
from datetime import datetime  # noqa: TC003 - needed at runtime by pydantic
from decimal import Decimal  # noqa: TC003 - needed at runtime by pydantic
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateOfferRequest(BaseModel):
    """Request body for making an offer. The caller becomes the buyer."""

    product_id: str = Field(..., min_length=1, max_length=64)
    seller_id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Owner of the product, resolved by the catalog before this call",
    )
    price: Decimal = Field(..., gt=0, decimal_places=2, examples=["120.50"])
    quantity: int = Field(..., gt=0, examples=[25])
    delivery_options: list[str] = Field(
        default_factory=list,
        description='Delivery tags, e.g. ["pickup"] or ["delivery", "shipping"]',
        examples=[["pickup"]],
    )
    payment_terms: list[str] = Field(default_factory=list, examples=[["Cash on Delivery"]])
    message: str | None = Field(default=None, max_length=2000)
    expires_at: AwareDatetime | None = Field(
        default=None,
        description=(
            "Deadline for the seller's answer, with a UTC offset; "
            "defaults to the configured TTL"
        ),
    )


class UpdateOfferStatusRequest(BaseModel):
    """Request body for ``PUT /offers/{id}``."""

    status: str = Field(
        ...,
        description="Requested target status (lower_snake_case token)",
        examples=["accepted"],
    )
    cancellation_reason: str | None = Field(
        default=None,
        max_length=2000,
        description="Free text recorded when the offer is cancelled",
    )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class OfferResponse(BaseModel):
    """Full offer record."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: str
    buyer_id: str
    seller_id: str
    price: Decimal
    quantity: int
    delivery_options: list[str]
    payment_terms: list[str]
    message: str | None
    status: str
    status_updated_at: datetime
    accepted_at: datetime | None
    shipped_at: datetime | None
    received_at: datetime | None
    completed_at: datetime | None
    cancelled_at: datetime | None
    cancelled_by: str | None
    cancellation_reason: str | None
    expires_at: datetime | None
    created_at: datetime
    updated_at: datetime


class OfferTransitionsResponse(BaseModel):
    """Statuses the caller may request next."""

    offer_id: uuid.UUID
    status: str
    allowed_statuses: list[str] = Field(
        description="Target statuses the caller may request from the current status"
    )


class OfferEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = ConfigDict(from_attributes=True)

    offer_id: uuid.UUID
    event_type: str
    old_status: str | None
    new_status: str
    actor_role: str
    actor_id: str | None
    metadata: dict[str, Any]
    created_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
