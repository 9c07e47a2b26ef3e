# ==============================================================================
# REPOSITORY LAYER - Data access
# ==============================================================================
# All persistence lives behind this layer. Two backends implement the same
# interfaces:
#
# ├── interfaces.py         → Protocols (contracts for any backend)
# ├── schema.py             → Table schemas passed to every store
# ├── base.py               → JSON base classes (BaseRepository, DictRepository)
# ├── user_repository.py    → users.json
# ├── sweet_repository.py   → sweets.json
# └── sqlite_repository.py  → SQLite database (users + sweets tables)
#
# Services depend on the interfaces only; app_container.py picks the backend.
# ==============================================================================

from .interfaces import (
    ConditionalUpdateResult,
    ICatalogStore,
    ICredentialStore,
)
from .schema import Column, TableSchema, SWEETS_SCHEMA, USERS_SCHEMA
from .base import BaseRepository, DictRepository
from .user_repository import UserRepository
from .sweet_repository import SweetRepository
from .sqlite_repository import (
    SQLiteDatabase,
    SQLiteSweetRepository,
    SQLiteUserRepository,
)

__all__ = [
    # Interfaces
    'ConditionalUpdateResult',
    'ICatalogStore',
    'ICredentialStore',

    # Schemas
    'Column',
    'TableSchema',
    'SWEETS_SCHEMA',
    'USERS_SCHEMA',

    # JSON implementations
    'BaseRepository',
    'DictRepository',
    'UserRepository',
    'SweetRepository',

    # SQLite implementations
    'SQLiteDatabase',
    'SQLiteSweetRepository',
    'SQLiteUserRepository',
]
