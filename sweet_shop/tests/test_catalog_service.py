# -*- coding: utf-8 -*-
"""
CatalogService: CRUD, search and the stock invariant.
"""
from decimal import Decimal

import pytest

from sweet_shop.errors import InsufficientStockError, InvalidArgumentError, NotFoundError
from sweet_shop.models import MAX_QUANTITY, SearchFilters, SweetCategory
from sweet_shop.performance_logger import get_function_stats
from sweet_shop.validators import validate_search


def _create(catalog, **overrides):
    data = {'name': 'Lollipop', 'category': 'candy', 'price': Decimal('1.50'), 'quantity': 10}
    data.update(overrides)
    return catalog.create(data)


# ═══════════════════════════════════════════════════════════════════════════
# CRUD
# ═══════════════════════════════════════════════════════════════════════════

def test_create_assigns_id_and_keeps_input(catalog):
    sweet = _create(catalog, description='Cherry flavour')
    assert sweet.id
    assert sweet.category == SweetCategory.CANDY
    assert sweet.price == Decimal('1.50')
    assert sweet.quantity == 10
    assert catalog.find_by_id(sweet.id) == sweet


def test_find_all_newest_first(catalog):
    first = _create(catalog, name='First')
    second = _create(catalog, name='Second')
    third = _create(catalog, name='Third')
    assert [s.id for s in catalog.find_all()] == [third.id, second.id, first.id]


def test_find_by_id_unknown_returns_none(catalog):
    assert catalog.find_by_id('does-not-exist') is None


def test_update_merges_only_given_fields(catalog):
    sweet = _create(catalog)
    updated = catalog.update(sweet.id, {'price': '2.75'})
    assert updated.price == Decimal('2.75')
    assert updated.name == sweet.name
    assert updated.quantity == sweet.quantity
    assert updated.updated_at >= sweet.updated_at


def test_update_unknown_returns_none(catalog):
    assert catalog.update('missing', {'name': 'x'}) is None


def test_update_rejects_negative_quantity(catalog):
    sweet = _create(catalog)
    with pytest.raises(InvalidArgumentError):
        catalog.update(sweet.id, {'quantity': -1})
    assert catalog.find_by_id(sweet.id).quantity == 10


def test_delete_reports_whether_removed(catalog):
    sweet = _create(catalog)
    assert catalog.delete(sweet.id) is True
    assert catalog.delete(sweet.id) is False
    assert catalog.find_by_id(sweet.id) is None


# ═══════════════════════════════════════════════════════════════════════════
# SEARCH
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def stocked(catalog):
    return {
        'gummy': _create(catalog, name='Gummy Bears', category='candy', price=Decimal('3.00')),
        'mint': _create(catalog, name='Mint Candy', category='candy', price=Decimal('1.00')),
        'truffle': _create(catalog, name='Truffle', category='chocolate', price=Decimal('4.50')),
        'cake': _create(catalog, name='Carrot Cake', category='cake', price=Decimal('12.00')),
    }


def test_search_by_category_is_exact(catalog, stocked):
    result = catalog.search(category='candy')
    assert {s.id for s in result} == {stocked['gummy'].id, stocked['mint'].id}
    assert all(s.category == SweetCategory.CANDY for s in result)


def test_search_price_range_is_inclusive(catalog, stocked):
    result = catalog.search(min_price=Decimal('1'), max_price=Decimal('4.50'))
    assert {s.name for s in result} == {'Gummy Bears', 'Mint Candy', 'Truffle'}

    result = catalog.search(min_price=2, max_price=5)
    assert all(Decimal('2') <= s.price <= Decimal('5') for s in result)
    assert {s.name for s in result} == {'Gummy Bears', 'Truffle'}


def test_search_combines_filters(catalog, stocked):
    result = catalog.search(category='candy', min_price=2, max_price=5)
    assert [s.name for s in result] == ['Gummy Bears']


def test_search_name_is_case_insensitive_substring(catalog, stocked):
    assert [s.name for s in catalog.search(name='CANDY')] == ['Mint Candy']
    assert [s.name for s in catalog.search(name='ca')] == ['Carrot Cake', 'Mint Candy']


def test_search_orders_by_name(catalog, stocked):
    names = [s.name for s in catalog.search()]
    assert names == sorted(names, key=str.casefold)


def test_search_min_above_max_is_empty(catalog, stocked):
    assert catalog.search(SearchFilters(min_price=Decimal('10'), max_price=Decimal('2'))) == []


def test_search_bounds_are_not_rounded(catalog):
    _create(catalog, name='Cheap', price=Decimal('1.99'))
    _create(catalog, name='Even', price=Decimal('5.00'))
    _create(catalog, name='Dear', price=Decimal('5.01'))

    assert [s.name for s in catalog.search(**validate_search({'maxPrice': '5.005'}))] == ['Cheap', 'Even']
    assert [s.name for s in catalog.search(**validate_search({'minPrice': '1.994'}))] == ['Dear', 'Even']


# ═══════════════════════════════════════════════════════════════════════════
# STOCK
# ═══════════════════════════════════════════════════════════════════════════

def test_inventory_scenario(catalog):
    sweet = _create(catalog, quantity=10)

    assert catalog.purchase(sweet.id, 2).quantity == 8

    with pytest.raises(InsufficientStockError) as exc:
        catalog.purchase(sweet.id, 100)
    assert exc.value.available == 8
    assert exc.value.requested == 100
    assert catalog.find_by_id(sweet.id).quantity == 8

    assert catalog.restock(sweet.id, 50).quantity == 58

    with pytest.raises(InvalidArgumentError):
        catalog.restock(sweet.id, -10)
    assert catalog.find_by_id(sweet.id).quantity == 58


def test_purchase_defaults_to_one_unit(catalog):
    sweet = _create(catalog, quantity=3)
    assert catalog.purchase(sweet.id).quantity == 2


def test_purchase_entire_stock_reaches_zero(catalog):
    sweet = _create(catalog, quantity=4)
    result = catalog.purchase(sweet.id, 4)
    assert result.quantity == 0
    assert not result.is_in_stock()
    with pytest.raises(InsufficientStockError):
        catalog.purchase(sweet.id, 1)


@pytest.mark.parametrize('amount', [0, -1, -50, 1.5, True, '2'])
def test_purchase_invalid_amount_leaves_state(catalog, amount):
    sweet = _create(catalog, quantity=5)
    with pytest.raises(InvalidArgumentError):
        catalog.purchase(sweet.id, amount)
    assert catalog.find_by_id(sweet.id).quantity == 5


@pytest.mark.parametrize('amount', [0, -10])
def test_restock_non_positive_rejected(catalog, amount):
    sweet = _create(catalog, quantity=5)
    with pytest.raises(InvalidArgumentError):
        catalog.restock(sweet.id, amount)
    assert catalog.find_by_id(sweet.id).quantity == 5


def test_stock_operations_on_missing_sweet(catalog):
    with pytest.raises(NotFoundError):
        catalog.purchase('missing', 1)
    with pytest.raises(NotFoundError):
        catalog.restock('missing', 1)


def test_missing_sweet_reported_before_invalid_amount(catalog):
    with pytest.raises(NotFoundError):
        catalog.purchase('missing', 0)
    with pytest.raises(NotFoundError):
        catalog.restock('missing', -5)


def test_restock_cannot_overflow_stock(catalog):
    sweet = _create(catalog, quantity=MAX_QUANTITY - 2)
    with pytest.raises(InvalidArgumentError):
        catalog.restock(sweet.id, 5)
    assert catalog.find_by_id(sweet.id).quantity == MAX_QUANTITY - 2

    assert catalog.restock(sweet.id, 2).quantity == MAX_QUANTITY


def test_quantity_above_limit_rejected(catalog):
    with pytest.raises(InvalidArgumentError):
        _create(catalog, quantity=MAX_QUANTITY + 1)
    sweet = _create(catalog)
    with pytest.raises(InvalidArgumentError):
        catalog.update(sweet.id, {'quantity': MAX_QUANTITY + 1})
    assert catalog.find_by_id(sweet.id).quantity == 10


def test_stock_operations_are_profiled(catalog):
    sweet = _create(catalog)
    catalog.purchase(sweet.id, 1)
    catalog.purchase(sweet.id, 1)
    catalog.restock(sweet.id, 5)

    stats = get_function_stats()
    assert stats['Purchase sweet']['calls'] == 2
    assert stats['Restock sweet']['calls'] == 1
    assert stats['Purchase sweet']['avg_ms'] >= 0
