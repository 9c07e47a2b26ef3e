# ==============================================================================
# MODELS LAYER - Data structures of the system
# ==============================================================================
# Dataclasses independent of the persistence backend (JSON files or SQLite).
# ==============================================================================

from .entities import (
    # Users
    User,
    UserRole,
    Identity,
    AuthResult,

    # Catalog
    Sweet,
    SweetCategory,
    SearchFilters,

    # Helpers
    MAX_QUANTITY,
    to_decimal,
    to_money,
    utcnow,
)

__all__ = [
    'User',
    'UserRole',
    'Identity',
    'AuthResult',
    'Sweet',
    'SweetCategory',
    'SearchFilters',
    'MAX_QUANTITY',
    'to_decimal',
    'to_money',
    'utcnow',
]
