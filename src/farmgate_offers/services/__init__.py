"""Application services — use case orchestration."""

from farmgate_offers.services.offer_lifecycle import OfferLifecycleEngine
from farmgate_offers.services.offer_service import OfferService

__all__ = ["OfferLifecycleEngine", "OfferService"]
