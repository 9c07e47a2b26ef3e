# ==============================================================================
# REQUEST VALIDATORS
# ==============================================================================
# Boundary checks for every request body and query string. Each validator
# collects ALL offending fields and raises a single ValidationError, or
# returns a clean dict with snake_case keys ready for the services.
# ==============================================================================

import re
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

from sweet_shop.errors import ValidationError
from sweet_shop.models import MAX_QUANTITY, SweetCategory, to_decimal, to_money

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

EMAIL_MAX_LENGTH = 100
USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 6
NAME_MAX_LENGTH = 200
MIN_PRICE = Decimal('0.01')
MAX_PRICE = Decimal('99999999.99')

CATEGORY_VALUES = [c.value for c in SweetCategory]
CATEGORY_MESSAGE = f"Category must be one of: {', '.join(CATEGORY_VALUES)}"
QUANTITY_LIMIT_MESSAGE = f'Quantity cannot exceed {MAX_QUANTITY}'


class _Errors:
    """Accumulates field errors; raise_if_any() ends the validation."""

    def __init__(self):
        self.items: List[Dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        self.items.append({'field': field, 'message': message})

    def raise_if_any(self) -> None:
        if self.items:
            raise ValidationError(self.items)


def _require_object(data: Any) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError([{'field': 'body', 'message': 'Request body must be a JSON object'}])
    return data


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_int(value: Any) -> Optional[int]:
    """Integer from an int or a string of digits; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and re.fullmatch(r'\s*[+-]?\d+\s*', value):
        return int(value)
    return None


def _parse_number(value: Any, exact: bool = False) -> Optional[Decimal]:
    """Money amount rounded to cents, or the exact value when exact=True."""
    if _is_blank(value):
        return None
    try:
        return to_decimal(value) if exact else to_money(value)
    except ValueError:
        return None


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value.strip())
    return parsed.scheme in ('http', 'https') and bool(parsed.netloc)


def _clean_email(errors: _Errors, value: Any) -> Optional[str]:
    if not isinstance(value, str) or not EMAIL_RE.match(value.strip()) \
            or len(value.strip()) > EMAIL_MAX_LENGTH:
        errors.add('email', 'Please provide a valid email')
        return None
    return value.strip().lower()


# ==============================================================================
# AUTH
# ==============================================================================

def validate_registration(data: Any) -> Dict[str, str]:
    """
    Returns:
        {'email', 'username', 'password'} with e-mail lower-cased and username trimmed
    """
    data = _require_object(data)
    errors = _Errors()

    email = _clean_email(errors, data.get('email'))

    username = data.get('username')
    if not isinstance(username, str) or \
            not USERNAME_MIN_LENGTH <= len(username.strip()) <= USERNAME_MAX_LENGTH:
        errors.add('username', 'Username must be between 3 and 100 characters')

    password = data.get('password')
    if not isinstance(password, str) or len(password) < PASSWORD_MIN_LENGTH:
        errors.add('password', 'Password must be at least 6 characters long')

    errors.raise_if_any()
    return {'email': email, 'username': username.strip(), 'password': password}


def validate_login(data: Any) -> Dict[str, str]:
    data = _require_object(data)
    errors = _Errors()

    email = _clean_email(errors, data.get('email'))
    password = data.get('password')
    if not isinstance(password, str) or not password:
        errors.add('password', 'Password is required')

    errors.raise_if_any()
    return {'email': email, 'password': password}


def validate_password_change(data: Any) -> Dict[str, str]:
    data = _require_object(data)
    errors = _Errors()

    current = data.get('currentPassword')
    if not isinstance(current, str) or not current:
        errors.add('currentPassword', 'Current password is required')

    new = data.get('newPassword')
    if not isinstance(new, str) or len(new) < PASSWORD_MIN_LENGTH:
        errors.add('newPassword', 'Password must be at least 6 characters long')

    errors.raise_if_any()
    return {'current_password': current, 'new_password': new}


# ==============================================================================
# CATALOG
# ==============================================================================

def _validate_sweet_fields(data: Mapping[str, Any], partial: bool) -> Dict[str, Any]:
    errors = _Errors()
    clean: Dict[str, Any] = {}

    # name
    if 'name' in data or not partial:
        name = data.get('name')
        if _is_blank(name) and not partial:
            errors.add('name', 'Name is required')
        elif not isinstance(name, str) or not 1 <= len(name.strip()) <= NAME_MAX_LENGTH:
            errors.add('name', 'Name must be between 1 and 200 characters')
        else:
            clean['name'] = name.strip()

    # description
    if 'description' in data:
        description = data['description']
        if description is None:
            clean['description'] = None
        elif not isinstance(description, str):
            errors.add('description', 'Description must be a string')
        else:
            clean['description'] = description.strip()

    # category
    if 'category' in data or not partial:
        category = data.get('category')
        if _is_blank(category) and not partial:
            errors.add('category', 'Category is required')
        elif category not in CATEGORY_VALUES:
            errors.add('category', CATEGORY_MESSAGE)
        else:
            clean['category'] = category

    # price
    if 'price' in data or not partial:
        price = _parse_number(data.get('price'))
        if price is None or not MIN_PRICE <= price <= MAX_PRICE:
            errors.add('price', 'Price must be a positive number')
        else:
            clean['price'] = price

    # quantity
    if 'quantity' in data or not partial:
        quantity = _parse_int(data.get('quantity'))
        if quantity is None or quantity < 0:
            errors.add('quantity', 'Quantity must be a non-negative integer')
        elif quantity > MAX_QUANTITY:
            errors.add('quantity', QUANTITY_LIMIT_MESSAGE)
        else:
            clean['quantity'] = quantity

    # imageUrl
    if 'imageUrl' in data:
        image_url = data['imageUrl']
        if image_url is None or (isinstance(image_url, str) and not image_url.strip()):
            clean['image_url'] = None
        elif not _is_http_url(image_url):
            errors.add('imageUrl', 'Image URL must be a valid URL')
        else:
            clean['image_url'] = image_url.strip()

    errors.raise_if_any()
    return clean


def validate_sweet_create(data: Any) -> Dict[str, Any]:
    """
    Returns:
        name, category, price (Decimal), quantity and the optional
        description / image_url
    """
    return _validate_sweet_fields(_require_object(data), partial=False)


def validate_sweet_update(data: Any) -> Dict[str, Any]:
    """Only the fields present in the body are validated and returned."""
    return _validate_sweet_fields(_require_object(data), partial=True)


def validate_search(args: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Validates the search query string.

    Returns:
        name, category, min_price, max_price (None when absent)
    """
    errors = _Errors()
    clean: Dict[str, Any] = {'name': None, 'category': None, 'min_price': None, 'max_price': None}

    name = args.get('name')
    if name is not None and name.strip():
        clean['name'] = name.strip()

    category = args.get('category')
    if category:
        if category not in CATEGORY_VALUES:
            errors.add('category', CATEGORY_MESSAGE)
        else:
            clean['category'] = category

    for param, key, label in (('minPrice', 'min_price', 'Min price'),
                              ('maxPrice', 'max_price', 'Max price')):
        raw = args.get(param)
        if _is_blank(raw):
            continue
        value = _parse_number(raw, exact=True)
        if value is None or value < 0:
            errors.add(param, f'{label} must be a non-negative number')
        else:
            clean[key] = value

    errors.raise_if_any()
    return clean


# ==============================================================================
# STOCK
# ==============================================================================

def _positive_amount(value: Any) -> int:
    quantity = _parse_int(value)
    if quantity is None or quantity < 1:
        raise ValidationError([{'field': 'quantity', 'message': 'Quantity must be a positive integer'}])
    if quantity > MAX_QUANTITY:
        raise ValidationError([{'field': 'quantity', 'message': QUANTITY_LIMIT_MESSAGE}])
    return quantity


def validate_purchase(data: Any) -> int:
    """
    Returns:
        Units to purchase; 1 when the body is empty or omits quantity
    """
    data = _require_object(data if data is not None else {})
    if data.get('quantity') is None:
        return 1
    return _positive_amount(data['quantity'])


def validate_restock(data: Any) -> int:
    return _positive_amount(_require_object(data).get('quantity'))
