# ==============================================================================
# DEPENDENCY CONTAINER - Service wiring
# ==============================================================================
# Builds repositories and services from a Config and hands them out through
# lazy properties. One container is created per application (create_app) and
# passed around explicitly; there is no module-level global.
#
# ═══════════════════════════════════════════════════════════════════════════════
# STORAGE BACKENDS
# ═══════════════════════════════════════════════════════════════════════════════
#   sqlite → SQLiteUserRepository / SQLiteSweetRepository (one shared database)
#   json   → UserRepository / SweetRepository (<data_dir>/users.json, sweets.json)
#   memory → UserRepository / SweetRepository without files
#
# Services depend on the repository interfaces, so swapping the backend
# only touches this file. Tests can inject their own repositories.
# ==============================================================================

import logging
import threading
from typing import Optional

from sweet_shop.access_control import AccessControl
from sweet_shop.config import Config
from sweet_shop.repositories import (
    ICatalogStore,
    ICredentialStore,
    SQLiteDatabase,
    SQLiteSweetRepository,
    SQLiteUserRepository,
    SweetRepository,
    UserRepository,
)
from sweet_shop.services import AuthService, CatalogService, PasswordHasher, TokenSigner

logger = logging.getLogger(__name__)


class AppContainer:
    """
    Dependency container of the application.

    Usage:
        container = AppContainer(Config.from_env())
        catalog = container.catalog_service
        auth = container.auth_service
    """

    def __init__(
        self,
        config: Config,
        user_repo: Optional[ICredentialStore] = None,
        sweet_repo: Optional[ICatalogStore] = None
    ):
        """
        Args:
            config: Runtime settings (picks the storage backend)
            user_repo: Credential store override
            sweet_repo: Catalog store override
        """
        self.config = config
        # Serializes lazy construction: one instance per dependency
        self._lock = threading.RLock()

        self._database: Optional[SQLiteDatabase] = None
        self._user_repo = user_repo
        self._sweet_repo = sweet_repo

        self._password_hasher: Optional[PasswordHasher] = None
        self._token_signer: Optional[TokenSigner] = None
        self._auth_service: Optional[AuthService] = None
        self._catalog_service: Optional[CatalogService] = None
        self._access_control: Optional[AccessControl] = None

    # =========================================================================
    # REPOSITORIES
    # =========================================================================

    @property
    def database(self) -> SQLiteDatabase:
        """Shared SQLite handle (sqlite backend only)."""
        with self._lock:
            if self._database is None:
                self._database = SQLiteDatabase(self.config.database_path)
                logger.info("SQLite database opened: %s", self.config.database_path)
        return self._database

    @property
    def user_repo(self) -> ICredentialStore:
        with self._lock:
            if self._user_repo is None:
                if self.config.storage == 'sqlite':
                    self._user_repo = SQLiteUserRepository(self.database)
                else:
                    self._user_repo = UserRepository(self._json_data_dir())
        return self._user_repo

    @property
    def sweet_repo(self) -> ICatalogStore:
        with self._lock:
            if self._sweet_repo is None:
                if self.config.storage == 'sqlite':
                    self._sweet_repo = SQLiteSweetRepository(self.database)
                else:
                    self._sweet_repo = SweetRepository(self._json_data_dir())
        return self._sweet_repo

    def _json_data_dir(self) -> Optional[str]:
        return self.config.data_dir if self.config.storage == 'json' else None

    # =========================================================================
    # SECURITY
    # =========================================================================

    @property
    def password_hasher(self) -> PasswordHasher:
        with self._lock:
            if self._password_hasher is None:
                self._password_hasher = PasswordHasher(self.config.password_hash_method)
        return self._password_hasher

    @property
    def token_signer(self) -> TokenSigner:
        with self._lock:
            if self._token_signer is None:
                self._token_signer = TokenSigner(self.config.secret_key, self.config.token_expires_in)
        return self._token_signer

    # =========================================================================
    # SERVICES
    # =========================================================================

    @property
    def auth_service(self) -> AuthService:
        with self._lock:
            if self._auth_service is None:
                self._auth_service = AuthService(
                    self.user_repo,
                    self.password_hasher,
                    self.token_signer
                )
        return self._auth_service

    @property
    def catalog_service(self) -> CatalogService:
        with self._lock:
            if self._catalog_service is None:
                self._catalog_service = CatalogService(self.sweet_repo)
        return self._catalog_service

    @property
    def access_control(self) -> AccessControl:
        with self._lock:
            if self._access_control is None:
                self._access_control = AccessControl(self.auth_service)
        return self._access_control

    # =========================================================================
    # UTILITIES
    # =========================================================================

    def close(self) -> None:
        """Releases the SQLite handle, if one was opened."""
        with self._lock:
            if self._database is not None:
                self._database.close()
                self._database = None
                logger.info("SQLite database closed")
