"""
Domain exceptions for the matching core.

Services raise these at the seams where a caller can act on them; the
internal RPC layer maps them onto HTTP status codes.
"""


class MarketplaceError(Exception):
    """Base exception for marketplace core errors."""
    pass


class ProfessionalNotFoundError(MarketplaceError):
    """Raised when a professional record cannot be read."""

    def __init__(self, professional_id):
        self.professional_id = professional_id
        super().__init__(f"Professional {professional_id} not found")


class ServiceRequestNotFoundError(MarketplaceError):
    """Raised when a service request cannot be read."""

    def __init__(self, request_id):
        self.request_id = request_id
        super().__init__(f"Service request {request_id} not found")


class InvalidUrgencyError(MarketplaceError, ValueError):
    """Raised when an urgency value is not one of low/medium/high/emergency."""
    pass


class RequestAlreadyTakenError(MarketplaceError):
    """Raised when a professional tries to accept a request someone else won."""
    pass
