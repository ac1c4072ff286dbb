class MarketplaceError(Exception):
    """Base class for failures reported back to the caller with a message."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(MarketplaceError):
    status_code = 404


class Unauthorized(MarketplaceError):
    status_code = 401


class Forbidden(MarketplaceError):
    status_code = 403


class BadRequest(MarketplaceError):
    status_code = 400


class Invalid(BadRequest):
    """Malformed input, e.g. an unknown status or an offer below the minimum."""


class Conflict(MarketplaceError):
    status_code = 409


class Internal(MarketplaceError):
    status_code = 500
