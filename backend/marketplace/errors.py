"""Domain errors. Each one refuses a single request and maps to one HTTP status."""


class MarketplaceError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(MarketplaceError):
    status_code = 404
    code = "not_found"


class PermissionDenied(MarketplaceError):
    status_code = 403
    code = "permission_denied"


class ValidationError(MarketplaceError):
    status_code = 422
    code = "validation_error"


class MissingDistance(ValidationError):
    code = "missing_distance"


class Conflict(MarketplaceError):
    status_code = 409
    code = "conflict"


class AlreadySelected(Conflict):
    code = "already_selected"


class InvalidTransition(Conflict):
    code = "invalid_transition"


class MissingProofOfDelivery(Conflict):
    code = "missing_proof_of_delivery"


class OfferExpired(MarketplaceError):
    status_code = 410
    code = "offer_expired"
