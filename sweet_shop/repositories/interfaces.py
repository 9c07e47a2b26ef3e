# ==============================================================================
# REPOSITORY INTERFACES
# ==============================================================================
#
# Contracts every store implementation honours. Services depend on these
# protocols, never on a concrete backend:
#
# 1. STORAGE INDEPENDENCE
#    - JSON files (base.py + *_repository.py) or SQLite (sqlite_repository.py)
#    - Switching backends only touches app_container.py
#
# 2. TESTING
#    - Any object with these methods can stand in for a store
#
# ==============================================================================

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Protocol, runtime_checkable

from sweet_shop.models import SearchFilters, Sweet, User


# Predicate over the current record and the changes to apply when it holds
SweetPredicate = Callable[[Sweet], bool]
SweetMutation = Callable[[Sweet], Dict[str, Any]]


@dataclass(frozen=True)
class ConditionalUpdateResult:
    """
    Outcome of ICatalogStore.conditional_update.

    Attributes:
        found: The record existed
        applied: The predicate held and the mutation was committed
        record: Record after the update, or as observed when rejected
    """
    found: bool
    applied: bool
    record: Optional[Sweet] = None


@runtime_checkable
class ICredentialStore(Protocol):
    """Persistence of user records."""

    def find_by_email(self, email: str) -> Optional[User]:
        """Finds a user by normalized e-mail."""
        ...

    def find_by_id(self, user_id: str) -> Optional[User]:
        """Finds a user by id."""
        ...

    def create(self, user: User) -> User:
        """Inserts a user. Raises ConflictError when the e-mail is taken."""
        ...

    def save(self, user: User) -> User:
        """Persists changes to an existing user."""
        ...


@runtime_checkable
class ICatalogStore(Protocol):
    """Persistence of sweet records."""

    def find_by_id(self, sweet_id: str) -> Optional[Sweet]:
        ...

    def find_all(self) -> List[Sweet]:
        """All sweets, most recently created first."""
        ...

    def find_filtered(self, filters: SearchFilters) -> List[Sweet]:
        """Sweets matching every filter, ordered by name ascending."""
        ...

    def create(self, sweet: Sweet) -> Sweet:
        ...

    def update(self, sweet_id: str, changes: Dict[str, Any]) -> Optional[Sweet]:
        """Merges changes onto the record. None when it does not exist."""
        ...

    def delete(self, sweet_id: str) -> bool:
        ...

    def conditional_update(
        self,
        sweet_id: str,
        predicate: SweetPredicate,
        mutation: SweetMutation
    ) -> ConditionalUpdateResult:
        """
        Atomically reads the record, evaluates the predicate and applies the
        mutation only if it holds. No other write to the same record can
        interleave between the read and the write.
        """
        ...

    def count(self) -> int:
        ...

    def clear(self) -> None:
        ...
