# ==============================================================================
# SWEET REPOSITORY (JSON)
# ==============================================================================
# Encapsulates access to sweets.json
# The catalog is stored as a dictionary: {sweet_id: {name, price, quantity, ...}}
# ==============================================================================

from typing import Any, Dict, List, Optional

from sweet_shop.models import SearchFilters, Sweet, utcnow
from sweet_shop.repositories.base import DictRepository
from sweet_shop.repositories.interfaces import (
    ConditionalUpdateResult,
    SweetMutation,
    SweetPredicate,
)
from sweet_shop.repositories.schema import SWEETS_SCHEMA, TableSchema


# Fields that update() and conditional_update() may change
MUTABLE_FIELDS = frozenset([
    'name', 'description', 'category', 'price', 'quantity', 'image_url'
])


def apply_changes(record: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """Merges domain-level changes onto a persisted record."""
    sweet = Sweet.from_dict(record)
    for key, value in changes.items():
        if key not in MUTABLE_FIELDS:
            raise ValueError(f"Field {key!r} cannot be updated")
        setattr(sweet, key, value)
    sweet.updated_at = utcnow()
    return sweet.to_dict()


class SweetRepository(DictRepository):
    """
    Catalog store backed by a JSON file (or memory).

    Data format in sweets.json:
    {
        "9a1b...": {
            "name": "Dark Chocolate Truffle",
            "category": "chocolate",
            "price": "60.00",
            "quantity": 50,
            ...
        }
    }
    """

    def __init__(self, data_dir: Optional[str] = None, schema: TableSchema = SWEETS_SCHEMA):
        super().__init__(schema, data_dir)

    def find_by_id(self, sweet_id: str) -> Optional[Sweet]:
        record = self.get_by_id(sweet_id)
        return Sweet.from_dict(record) if record else None

    def find_all(self) -> List[Sweet]:
        """
        All sweets, most recently created first.
        Ties keep the newest insertion first.
        """
        sweets = [Sweet.from_dict(r) for r in self.get_all().values()]
        ordered = sorted(
            enumerate(sweets),
            key=lambda pair: (pair[1].created_at, pair[0]),
            reverse=True
        )
        return [sweet for _, sweet in ordered]

    def find_filtered(self, filters: SearchFilters) -> List[Sweet]:
        """
        Sweets matching every provided filter, ordered by name.

        Args:
            filters: Conjunctive filters; absent fields do not constrain
        """
        sweets = [Sweet.from_dict(r) for r in self.get_all().values()]
        matching = [s for s in sweets if filters.matches(s)]
        return sorted(matching, key=lambda s: (s.name.casefold(), s.id))

    def create(self, sweet: Sweet) -> Sweet:
        self.insert(sweet.to_dict())
        return sweet

    def update(self, sweet_id: str, changes: Dict[str, Any]) -> Optional[Sweet]:
        record = self.modify(sweet_id, lambda current: apply_changes(current, changes))
        return Sweet.from_dict(record) if record else None

    def conditional_update(
        self,
        sweet_id: str,
        predicate: SweetPredicate,
        mutation: SweetMutation
    ) -> ConditionalUpdateResult:
        """
        Read-check-write under the repository lock.

        Args:
            sweet_id: Record to update
            predicate: Evaluated against the current record
            mutation: Returns the changes to apply when predicate holds
        """
        applied = []

        def modifier(current: Dict[str, Any]) -> Optional[Dict[str, Any]]:
            sweet = Sweet.from_dict(current)
            if not predicate(sweet):
                return None
            applied.append(True)
            return apply_changes(current, mutation(sweet))

        record = self.modify(sweet_id, modifier)
        if record is None:
            return ConditionalUpdateResult(found=False, applied=False)
        return ConditionalUpdateResult(
            found=True,
            applied=bool(applied),
            record=Sweet.from_dict(record)
        )
