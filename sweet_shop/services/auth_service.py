# ==============================================================================
# AUTH SERVICE
# ==============================================================================
# Centralizes the business logic for accounts: registration, login, token
# issuance and verification, role and password changes.
#
# - Depends only on the ICredentialStore interface (JSON or SQLite)
# - Password digests never leave this service: callers get public projections
# - Login failures are uniform: "no such user" and "wrong password" look alike
# ==============================================================================

import logging
import uuid
from typing import Any, Dict, Optional

from sweet_shop.errors import AuthenticationError, ConflictError, NotFoundError
from sweet_shop.models import AuthResult, Identity, User, UserRole, utcnow
from sweet_shop.repositories.interfaces import ICredentialStore
from sweet_shop.services.security import PasswordHasher, TokenSigner

logger = logging.getLogger(__name__)


INVALID_CREDENTIALS = 'Invalid email or password'


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


class AuthService:
    """
    Service for account management.

    Responsibilities:
    - Registration (digest computed before persistence)
    - Authentication (uniform failure message)
    - Bearer token issuance and verification
    - Role changes for trusted callers, password changes for owners
    """

    def __init__(
        self,
        user_repo: ICredentialStore,
        password_hasher: PasswordHasher,
        token_signer: TokenSigner
    ):
        """
        Args:
            user_repo: Credential store
            password_hasher: Digest capability
            token_signer: Token capability
        """
        self.user_repo = user_repo
        self.password_hasher = password_hasher
        self.token_signer = token_signer
        self._dummy_digest: Optional[str] = None

    # =========================================================================
    # REGISTRATION AND LOGIN
    # =========================================================================

    def register(
        self,
        email: str,
        username: str,
        password: str,
        role: UserRole = UserRole.USER
    ) -> AuthResult:
        """
        Registers a new account.

        Args:
            email: Address, unique case-insensitively
            username: Display name
            password: Plaintext, digested before storage
            role: Only trusted callers (CLI, seeding) pass anything but USER

        Returns:
            AuthResult with the public user and a fresh token

        Raises:
            ConflictError: If the e-mail is already registered
        """
        email = normalize_email(email)
        if self.user_repo.find_by_email(email) is not None:
            raise ConflictError('User with this email already exists')

        now = utcnow()
        user = User(
            id=str(uuid.uuid4()),
            email=email,
            username=username.strip(),
            password_hash=self.password_hasher.hash(password),
            role=UserRole(role),
            created_at=now,
            updated_at=now,
        )
        # The store enforces uniqueness too, for registrations racing each other
        self.user_repo.create(user)
        logger.info("User registered: %s (%s)", user.id, user.role.value)

        return AuthResult(user=user.to_public_dict(), token=self.issue_token(user))

    def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticates with e-mail and password.

        Raises:
            AuthenticationError: Unknown e-mail or wrong password (same message)
        """
        user = self.user_repo.find_by_email(normalize_email(email))
        if user is None:
            # Burn a digest check so both failure paths cost the same
            self.password_hasher.verify(password, self._get_dummy_digest())
            logger.warning("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        if not self.password_hasher.verify(password, user.password_hash):
            logger.warning("Failed login attempt")
            raise AuthenticationError(INVALID_CREDENTIALS)

        logger.info("User logged in: %s", user.id)
        return AuthResult(user=user.to_public_dict(), token=self.issue_token(user))

    def _get_dummy_digest(self) -> str:
        if self._dummy_digest is None:
            self._dummy_digest = self.password_hasher.hash(uuid.uuid4().hex)
        return self._dummy_digest

    # =========================================================================
    # TOKENS
    # =========================================================================

    def issue_token(self, user: User) -> str:
        return self.token_signer.sign({
            'userId': user.id,
            'email': user.email,
            'role': user.role.value,
        })

    def verify_token(self, token: str) -> Optional[Identity]:
        """
        Verifies a bearer token and resolves it to the live user.

        The identity is built from the current user record, not from the
        claims, so a deleted user or a changed role takes effect immediately.

        Returns:
            Identity, or None on any failure (malformed, tampered, expired,
            user no longer exists)
        """
        if not token:
            return None
        try:
            claims = self.token_signer.verify(token)
        except AuthenticationError as e:
            logger.debug("Token rejected: %s", e.message)
            return None

        user = self.user_repo.find_by_id(str(claims['userId']))
        if user is None:
            logger.debug("Token rejected: user %s no longer exists", claims['userId'])
            return None
        return Identity.from_user(user)

    # =========================================================================
    # USERS
    # =========================================================================

    def get_user_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        """
        Returns:
            Public user projection (no digest) or None
        """
        user = self.user_repo.find_by_id(user_id)
        return user.to_public_dict() if user else None

    def change_role(self, email: str, new_role: UserRole) -> Dict[str, Any]:
        """
        Changes the role of an account. Trusted callers only (CLI): no route
        exposes it.

        Raises:
            NotFoundError: If no account has this e-mail
        """
        user = self.user_repo.find_by_email(normalize_email(email))
        if user is None:
            raise NotFoundError('User not found')

        old_role = user.role
        user.role = UserRole(new_role)
        user.updated_at = utcnow()
        self.user_repo.save(user)
        logger.info("Role changed for %s: %s -> %s", user.id, old_role.value, user.role.value)
        return user.to_public_dict()

    def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        """
        Replaces the digest after checking the current password.

        Raises:
            NotFoundError: If the user does not exist
            AuthenticationError: If current_password is wrong
        """
        user = self.user_repo.find_by_id(user_id)
        if user is None:
            raise NotFoundError('User not found')
        if not self.password_hasher.verify(current_password, user.password_hash):
            raise AuthenticationError('Current password is incorrect')

        user.password_hash = self.password_hasher.hash(new_password)
        user.updated_at = utcnow()
        self.user_repo.save(user)
        logger.info("Password changed for %s", user.id)
