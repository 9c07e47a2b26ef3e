# ==============================================================================
# ACCESS CONTROL - Authentication and role gates
# ==============================================================================
# Two independent gates, applied in order:
#   1. authenticate(header) → Identity   (401 on failure)
#   2. authorize(identity, role)         (403 on failure)
#
# Flask decorators:
#   @login_required   → gate 1, identity stored in flask.g.current_user
#   @role_required(r) → gates 1 and 2
#   @admin_required   → role_required(UserRole.ADMIN)
# ==============================================================================

from functools import wraps
from typing import Optional

from flask import current_app, g, request

from sweet_shop.errors import AuthenticationError, AuthorizationError
from sweet_shop.models import Identity, UserRole
from sweet_shop.services.auth_service import AuthService

BEARER_PREFIX = 'Bearer '


class AccessControl:
    """Turns an Authorization header into a verified Identity."""

    def __init__(self, auth_service: AuthService):
        self.auth_service = auth_service

    @staticmethod
    def extract_bearer_token(header: Optional[str]) -> Optional[str]:
        """
        Returns:
            The token of a "Bearer <token>" header, or None
        """
        if not header or not header.startswith(BEARER_PREFIX):
            return None
        token = header[len(BEARER_PREFIX):].strip()
        return token or None

    def authenticate(self, header: Optional[str]) -> Identity:
        """
        Raises:
            AuthenticationError: Missing header, bad scheme, or a token that
                does not verify against a live user
        """
        token = self.extract_bearer_token(header)
        if token is None:
            raise AuthenticationError('No authentication token provided')

        identity = self.auth_service.verify_token(token)
        if identity is None:
            raise AuthenticationError('Invalid or expired token')
        return identity

    @staticmethod
    def authorize(identity: Optional[Identity], required_role: UserRole = UserRole.ADMIN) -> Identity:
        """
        Raises:
            AuthenticationError: No identity at all
            AuthorizationError: The identity lacks the required role
        """
        if identity is None:
            raise AuthenticationError('Authentication required')
        if identity.role != required_role:
            raise AuthorizationError('Admin access required' if required_role == UserRole.ADMIN
                                     else f"Role '{required_role.value}' required")
        return identity


# ═══════════════════════════════════════════════════════════════════════════
# FLASK DECORATORS
# ═══════════════════════════════════════════════════════════════════════════

def _access_control() -> AccessControl:
    return current_app.extensions['sweet_shop'].access_control


def login_required(f):
    @wraps(f)
    def wrapper(*args, **kwargs):
        g.current_user = _access_control().authenticate(request.headers.get('Authorization'))
        return f(*args, **kwargs)
    return wrapper


def role_required(role: UserRole):
    def deco(f):
        @wraps(f)
        def wrapper(*args, **kwargs):
            identity = g.get('current_user')
            if identity is None:
                identity = _access_control().authenticate(request.headers.get('Authorization'))
                g.current_user = identity
            AccessControl.authorize(identity, role)
            return f(*args, **kwargs)
        return wrapper
    return deco


admin_required = role_required(UserRole.ADMIN)
