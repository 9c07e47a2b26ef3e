# ==============================================================================
# DOMAIN ERRORS - Failure taxonomy
# ==============================================================================
# Every failure a service can surface carries a `kind` discriminator and the
# HTTP status the API layer answers with. Routes never inspect messages to
# pick a status code.
# ==============================================================================

from typing import Any, Dict, List, Optional


class SweetShopError(Exception):
    """Base class for every failure scoped to a single request."""

    kind = 'error'
    status_code = 500
    default_message = 'Internal server error'

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {'success': False, 'message': self.message}


class ValidationError(SweetShopError):
    """
    Malformed or out-of-range input caught at the boundary.

    Attributes:
        errors: List of {'field': ..., 'message': ...} entries
    """

    kind = 'validation'
    status_code = 400
    default_message = 'Validation failed'

    def __init__(self, errors: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        self.errors = list(errors or [])
        if message is None and len(self.errors) == 1:
            message = self.errors[0]['message']
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload['errors'] = self.errors
        return payload


class ConflictError(SweetShopError):
    kind = 'conflict'
    status_code = 409
    default_message = 'Resource already exists'


class AuthenticationError(SweetShopError):
    kind = 'authentication'
    status_code = 401
    default_message = 'Authentication required'


class AuthorizationError(SweetShopError):
    kind = 'authorization'
    status_code = 403
    default_message = 'Admin access required'


class NotFoundError(SweetShopError):
    kind = 'not_found'
    status_code = 404
    default_message = 'Resource not found'


class InsufficientStockError(SweetShopError):
    """Purchase asked for more units than the sweet currently holds."""

    kind = 'insufficient_stock'
    status_code = 400
    default_message = 'Insufficient stock'

    def __init__(self, available: int = 0, requested: int = 0, message: Optional[str] = None):
        self.available = available
        self.requested = requested
        super().__init__(message)


class InvalidArgumentError(SweetShopError):
    kind = 'invalid_argument'
    status_code = 400
    default_message = 'Invalid argument'


class ConfigError(Exception):
    """Invalid configuration detected at startup."""
