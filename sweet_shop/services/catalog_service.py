# ==============================================================================
# CATALOG SERVICE
# ==============================================================================
# Centralizes the business logic for sweets and their stock.
#
# STOCK RULE:
# quantity never goes negative. Purchase and restock never read a quantity
# and write it back in two steps: they hand a predicate and a mutation to
# ICatalogStore.conditional_update, which runs both atomically per record.
# ==============================================================================

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from sweet_shop.errors import (
    InsufficientStockError,
    InvalidArgumentError,
    NotFoundError,
)
from sweet_shop.models import MAX_QUANTITY, SearchFilters, Sweet, SweetCategory, to_money, utcnow
from sweet_shop.performance_logger import profile_function
from sweet_shop.repositories.interfaces import ICatalogStore

logger = logging.getLogger(__name__)


# Fields a caller may change through update()
UPDATABLE_FIELDS = frozenset([
    'name', 'description', 'category', 'price', 'quantity', 'image_url'
])


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class CatalogService:
    """
    Service for catalog and inventory management.

    Responsibilities:
    - CRUD of sweets
    - Conjunctive search
    - Purchase (decrement) and restock (increment) with the stock invariant
    """

    def __init__(self, sweet_repo: ICatalogStore):
        """
        Args:
            sweet_repo: Catalog store (JSON or SQLite)
        """
        self.sweet_repo = sweet_repo

    # =========================================================================
    # CRUD
    # =========================================================================

    def create(self, data: Dict[str, Any]) -> Sweet:
        """
        Creates a sweet from validated input.

        Args:
            data: name, category, price, quantity, description?, image_url?

        Returns:
            The stored sweet
        """
        now = utcnow()
        sweet = Sweet(
            id=str(uuid.uuid4()),
            name=data['name'],
            description=data.get('description'),
            category=SweetCategory(data['category']),
            price=to_money(data['price']),
            quantity=int(data.get('quantity', 0)),
            image_url=data.get('image_url'),
            created_at=now,
            updated_at=now,
        )
        self._check_invariants(sweet.price, sweet.quantity)
        self.sweet_repo.create(sweet)
        logger.info("Sweet created: %s '%s' (qty=%d)", sweet.id, sweet.name, sweet.quantity)
        return sweet

    def find_all(self) -> List[Sweet]:
        """All sweets, most recently created first."""
        return self.sweet_repo.find_all()

    def find_by_id(self, sweet_id: str) -> Optional[Sweet]:
        return self.sweet_repo.find_by_id(sweet_id)

    def update(self, sweet_id: str, partial: Dict[str, Any]) -> Optional[Sweet]:
        """
        Merges the provided fields onto the sweet; others stay untouched.

        Returns:
            Updated sweet, or None if it does not exist
        """
        changes = {k: v for k, v in partial.items() if k in UPDATABLE_FIELDS}
        if 'category' in changes:
            changes['category'] = SweetCategory(changes['category'])
        if 'price' in changes:
            changes['price'] = to_money(changes['price'])
        if 'quantity' in changes:
            changes['quantity'] = int(changes['quantity'])
        self._check_invariants(changes.get('price'), changes.get('quantity'))

        updated = self.sweet_repo.update(sweet_id, changes)
        if updated is not None:
            logger.info("Sweet updated: %s fields=%s", sweet_id, sorted(changes))
        return updated

    def delete(self, sweet_id: str) -> bool:
        """
        Returns:
            True if a record was removed, False if it did not exist
        """
        deleted = self.sweet_repo.delete(sweet_id)
        if deleted:
            logger.info("Sweet deleted: %s", sweet_id)
        return deleted

    def count(self) -> int:
        return self.sweet_repo.count()

    def clear(self) -> None:
        """Removes every sweet (reseeding only)."""
        self.sweet_repo.clear()
        logger.warning("Catalog cleared")

    # =========================================================================
    # SEARCH
    # =========================================================================

    def search(self, filters: Optional[SearchFilters] = None, **criteria: Any) -> List[Sweet]:
        """
        Sweets matching all provided filters, ordered by name.

        Args:
            filters: Prepared filters, or
            **criteria: name, category, min_price, max_price

        Returns:
            Matching sweets (empty when min_price > max_price)
        """
        if filters is None:
            filters = self.build_filters(**criteria)
        return self.sweet_repo.find_filtered(filters)

    @staticmethod
    def build_filters(
        name: Optional[str] = None,
        category: Any = None,
        min_price: Any = None,
        max_price: Any = None
    ) -> SearchFilters:
        """Normalizes raw criteria; empty values mean no constraint."""
        name = name.strip() if isinstance(name, str) else name
        return SearchFilters(
            name=name or None,
            category=SweetCategory(category) if category else None,
            min_price=Decimal(str(min_price)) if min_price is not None else None,
            max_price=Decimal(str(max_price)) if max_price is not None else None,
        )

    # =========================================================================
    # STOCK OPERATIONS
    # =========================================================================

    @profile_function(name='Purchase sweet')
    def purchase(self, sweet_id: str, quantity: int = 1) -> Sweet:
        """
        Decrements stock by quantity if enough units are available.

        Args:
            sweet_id: Sweet to buy
            quantity: Units to buy (1 by default)

        Returns:
            The sweet after the decrement

        Raises:
            NotFoundError: The sweet does not exist
            InvalidArgumentError: quantity is not a positive integer
            InsufficientStockError: Fewer units than requested are available
        """
        if not _is_positive_int(quantity):
            self._require(sweet_id)
            raise InvalidArgumentError('Purchase amount must be positive')

        result = self.sweet_repo.conditional_update(
            sweet_id,
            lambda sweet: sweet.quantity >= quantity,
            lambda sweet: {'quantity': sweet.quantity - quantity}
        )
        if not result.found:
            raise NotFoundError('Sweet not found')
        if not result.applied:
            logger.warning("Purchase rejected for %s: requested %d, available %d",
                           sweet_id, quantity, result.record.quantity)
            raise InsufficientStockError(available=result.record.quantity, requested=quantity)

        logger.info("Purchase: %s -%d (now %d)", sweet_id, quantity, result.record.quantity)
        return result.record

    @profile_function(name='Restock sweet')
    def restock(self, sweet_id: str, quantity: int) -> Sweet:
        """
        Increments stock by quantity.

        Raises:
            NotFoundError: The sweet does not exist
            InvalidArgumentError: quantity is not a positive integer (0 included),
                or the new stock would exceed MAX_QUANTITY
        """
        if not _is_positive_int(quantity):
            self._require(sweet_id)
            raise InvalidArgumentError('Restock amount must be positive')

        result = self.sweet_repo.conditional_update(
            sweet_id,
            lambda sweet: sweet.quantity + quantity <= MAX_QUANTITY,
            lambda sweet: {'quantity': sweet.quantity + quantity}
        )
        if not result.found:
            raise NotFoundError('Sweet not found')
        if not result.applied:
            logger.warning("Restock rejected for %s: %d + %d exceeds the stock limit",
                           sweet_id, result.record.quantity, quantity)
            raise InvalidArgumentError(f'Stock cannot exceed {MAX_QUANTITY}')

        logger.info("Restock: %s +%d (now %d)", sweet_id, quantity, result.record.quantity)
        return result.record

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _check_invariants(price: Optional[Decimal], quantity: Optional[int]) -> None:
        if price is not None and price <= 0:
            raise InvalidArgumentError('Price must be greater than zero')
        if quantity is not None and quantity < 0:
            raise InvalidArgumentError('Quantity cannot be negative')
        if quantity is not None and quantity > MAX_QUANTITY:
            raise InvalidArgumentError(f'Quantity cannot exceed {MAX_QUANTITY}')

    def _require(self, sweet_id: str) -> Sweet:
        sweet = self.sweet_repo.find_by_id(sweet_id)
        if sweet is None:
            raise NotFoundError('Sweet not found')
        return sweet
