# ==============================================================================
# SECURITY PRIMITIVES - Password digests and signed tokens
# ==============================================================================
# Opaque capabilities used by AuthService:
#   PasswordHasher.hash / verify   -> werkzeug.security
#   TokenSigner.sign / verify      -> itsdangerous (HMAC, timestamped)
# ==============================================================================

import time
from typing import Any, Dict

from itsdangerous import BadData, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from sweet_shop.errors import AuthenticationError


class PasswordHasher:
    """One-way password digests (salted, method prefix embedded in the digest)."""

    def __init__(self, method: str = 'scrypt'):
        self.method = method

    def hash(self, plaintext: str) -> str:
        return generate_password_hash(plaintext, method=self.method)

    def verify(self, plaintext: str, digest: str) -> bool:
        if not digest:
            return False
        try:
            return check_password_hash(digest, plaintext)
        except ValueError:
            # Unknown or malformed digest format
            return False


class TokenSigner:
    """
    Issues and verifies bearer tokens.

    A token is the claim set {userId, email, role, iat, exp} serialized and
    signed with HMAC by itsdangerous. Validity depends only on the signature
    and the expiry; there is no server-side session table.
    """

    SALT = 'sweet-shop-auth-token'

    def __init__(self, secret_key: str, expires_in: int = 86400):
        """
        Args:
            secret_key: HMAC key
            expires_in: Token lifetime in seconds (24h by default)
        """
        self.expires_in = expires_in
        self._serializer = URLSafeTimedSerializer(secret_key, salt=self.SALT)

    def sign(self, claims: Dict[str, Any]) -> str:
        issued_at = int(time.time())
        payload = dict(claims)
        payload['iat'] = issued_at
        payload['exp'] = issued_at + self.expires_in
        return self._serializer.dumps(payload)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Returns the claims of a valid token.

        Raises:
            AuthenticationError: Malformed, tampered or expired token
        """
        try:
            claims = self._serializer.loads(token, max_age=self.expires_in)
        except SignatureExpired:
            raise AuthenticationError('Token expired')
        except BadData:
            raise AuthenticationError('Invalid token')

        if not isinstance(claims, dict) or 'userId' not in claims:
            raise AuthenticationError('Invalid token')
        if int(claims.get('exp', 0)) <= int(time.time()):
            raise AuthenticationError('Token expired')
        return claims
