"""Domain exceptions for the offer lifecycle.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
"""


class MarketplaceError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "MARKETPLACE_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Lookup Errors ---


class OfferNotFoundError(MarketplaceError):
    """Raised when an offer ID does not exist."""

    def __init__(self, offer_id: str) -> None:
        super().__init__(
            message=f"Offer not found: {offer_id}",
            code="OFFER_NOT_FOUND",
        )
        self.offer_id = offer_id


# --- Lifecycle Errors ---


class InvalidStateTransitionError(MarketplaceError):
    """Raised when the requested status is not reachable from the current one.

    Example: pending -> shipped (must be accepted and prepared first), or any
    request against a terminal offer.
    """

    def __init__(self, current_state: str, attempted_state: str, reason: str = "") -> None:
        message = f"Invalid state transition: {current_state} -> {attempted_state}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message=message, code="INVALID_STATE_TRANSITION")
        self.current_state = current_state
        self.attempted_state = attempted_state


class ForbiddenActionError(MarketplaceError):
    """Raised when the actor is not allowed to perform the action.

    Kept distinct from InvalidStateTransitionError so clients can tell
    "not your turn" apart from "wrong state".
    """

    def __init__(self, actor_id: str, action: str, required_role: str | None = None) -> None:
        if required_role:
            message = f"Only the {required_role} may {action}"
        else:
            message = f"User {actor_id} is not a party to this offer"
        super().__init__(message=message, code="FORBIDDEN")
        self.actor_id = actor_id
        self.action = action
        self.required_role = required_role


class ConcurrentModificationError(MarketplaceError):
    """Raised when the offer changed between load and save.

    The caller should reload the offer and retry.
    """

    def __init__(self, offer_id: str, expected_status: str) -> None:
        super().__init__(
            message=(
                f"Offer {offer_id} is no longer in status '{expected_status}'; "
                "reload and retry"
            ),
            code="CONFLICT",
        )
        self.offer_id = offer_id
        self.expected_status = expected_status


# --- Creation Errors ---


class InvalidOfferError(MarketplaceError):
    """Raised when a new offer violates a creation rule."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="INVALID_OFFER")
