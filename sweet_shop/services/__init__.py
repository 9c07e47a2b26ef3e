# ==============================================================================
# SERVICE LAYER - Business logic
# ==============================================================================
# This layer holds ALL the business logic of the application.
#
# PRINCIPLES:
# 1. Services orchestrate operations over repositories
# 2. They apply business rules (stock never negative, unique e-mails)
# 3. Routes (controllers) only validate input and call services
# 4. Services do NOT know the storage type (JSON/SQLite)
#
# STRUCTURE:
# ├── security.py        → Password digests and signed tokens
# ├── auth_service.py    → Accounts, login, tokens, roles
# └── catalog_service.py → Sweets, search, purchase and restock
# ==============================================================================

from sweet_shop.services.security import PasswordHasher, TokenSigner
from sweet_shop.services.auth_service import AuthService
from sweet_shop.services.catalog_service import CatalogService

__all__ = [
    'PasswordHasher',
    'TokenSigner',
    'AuthService',
    'CatalogService',
]
