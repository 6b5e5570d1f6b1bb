# whalemall/errors.py
"""Domain errors raised by the listing core.

Every error carries a stable ``code``, a user-safe ``message`` and the HTTP
status the API layer answers with. Messages never include stored values.
"""


class MarketplaceError(Exception):
    code = "MARKETPLACE_ERROR"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ValidationError(MarketplaceError):
    """Malformed or out-of-range input."""
    code = "VALIDATION_ERROR"
    status_code = 400


class UnauthorizedError(MarketplaceError):
    """Missing or unverifiable identity claim."""
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self, message: str = "Invalid or missing authentication"):
        super().__init__(message)


class ForbiddenError(MarketplaceError):
    code = "FORBIDDEN"
    status_code = 403


class NotFoundError(MarketplaceError):
    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, listing_id: str, message: str = "Listing not found"):
        super().__init__(message)
        self.listing_id = listing_id


class InvalidStateError(MarketplaceError):
    """Operation not valid for the listing's current status."""
    code = "INVALID_STATE"
    status_code = 409

    def __init__(self, message: str, current_status: str | None = None):
        super().__init__(message)
        self.current_status = current_status


class SelfContactError(MarketplaceError):
    code = "SELF_CONTACT"
    status_code = 400

    def __init__(self, message: str = "You cannot contact yourself about your own listing"):
        super().__init__(message)


class CorruptDataError(MarketplaceError):
    """Stored encrypted contact data could not be read.

    Signals a data-integrity incident rather than caller misuse, so the API
    answers with a 500 and a distinct code.
    """
    code = "CORRUPT_DATA"
    status_code = 500

    def __init__(self, message: str = "Contact information for this listing is unavailable"):
        super().__init__(message)
