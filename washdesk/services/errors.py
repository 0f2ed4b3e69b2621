# washdesk/services/errors.py
"""
Domain errors raised by the fulfillment services.

Every error carries the HTTP status the API should answer with; the
exception handler in washdesk.main renders them as {"detail": message}.
Anything that is not a WashDeskError is treated as an internal failure.
"""


class WashDeskError(Exception):
    """Base class for all business errors."""

    status_code = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__


class Unauthorized(WashDeskError):
    """Missing or invalid session."""

    status_code = 401


class Forbidden(WashDeskError):
    """Role lacks permission for this operation."""

    status_code = 403


class NotFound(WashDeskError):
    """Entity does not exist for this tenant."""

    status_code = 404


class ValidationError(WashDeskError):
    """Malformed or unsupported input."""

    status_code = 422


class InvalidStatus(ValidationError):
    """Unsupported status value."""


class NoServicesSelected(ValidationError):
    """At least one service must be selected."""


class BusinessRuleError(WashDeskError):
    """Operation conflicts with the current state."""

    status_code = 409


class TenantUnavailable(BusinessRuleError):
    """The wash business is not active."""


class InsufficientPoints(BusinessRuleError):
    """Not enough loyalty points to redeem a reward."""


class LoyaltyDisabled(BusinessRuleError):
    """Loyalty program is not active for this customer."""


class ReferencedEntity(BusinessRuleError):
    """Entity is still referenced by orders or appointments."""


class StatusRace(BusinessRuleError):
    """Order status kept changing underneath this request."""
