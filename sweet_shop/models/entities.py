# ==============================================================================
# DOMAIN ENTITIES - Dataclass definitions
# ==============================================================================
# Plain data records. They carry no persistence metadata and no stock
# mutation logic: the services own the rules, the stores own the storage.
# ==============================================================================

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, Optional


CENTS = Decimal('0.01')

# Largest stock level a sweet may hold (fits a signed 64-bit SQLite INTEGER)
MAX_QUANTITY = 2 ** 63 - 1


# ==============================================================================
# ENUMERATIONS
# ==============================================================================

class UserRole(str, Enum):
    """Roles available in the system."""
    USER = "user"
    ADMIN = "admin"


class SweetCategory(str, Enum):
    """Catalog categories."""
    CHOCOLATE = "chocolate"
    CANDY = "candy"
    COOKIE = "cookie"
    CAKE = "cake"
    PASTRY = "pastry"
    ICE_CREAM = "ice_cream"
    OTHER = "other"


# ==============================================================================
# HELPERS
# ==============================================================================

def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_decimal(value: Any) -> Decimal:
    """
    Converts a number or numeric string to a Decimal, keeping every digit.

    Raises:
        ValueError: If the value is not a finite number
    """
    if isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f"Not a number: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return amount


def to_money(value: Any) -> Decimal:
    """
    Converts a number or numeric string to a two-decimal Decimal.

    Raises:
        ValueError: If the value is not a finite number
    """
    amount = to_decimal(value)
    try:
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"Amount out of range: {value!r}")


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


# ==============================================================================
# USERS
# ==============================================================================

@dataclass
class User:
    """
    Registered account.

    Attributes:
        id: Opaque unique identifier
        email: Unique, lower-cased e-mail address
        username: Display name
        password_hash: One-way digest (never plaintext, never exposed)
        role: Role that gates admin-only operations
    """
    id: str
    email: str
    username: str
    password_hash: str
    role: UserRole = UserRole.USER
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        """Converts to a dictionary for persistence."""
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'password_hash': self.password_hash,
            'role': self.role.value,
            'created_at': self.created_at.isoformat(timespec='microseconds'),
            'updated_at': self.updated_at.isoformat(timespec='microseconds'),
        }

    def to_public_dict(self) -> Dict[str, Any]:
        """Sanitized projection returned to callers (no digest)."""
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'role': self.role.value,
            'createdAt': self.created_at.isoformat(timespec='microseconds'),
            'updatedAt': self.updated_at.isoformat(timespec='microseconds'),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        try:
            role = UserRole(data.get('role', 'user'))
        except ValueError:
            role = UserRole.USER
        return cls(
            id=data['id'],
            email=data['email'],
            username=data.get('username', ''),
            password_hash=data.get('password_hash', ''),
            role=role,
            created_at=parse_timestamp(data['created_at']),
            updated_at=parse_timestamp(data['updated_at']),
        )


@dataclass(frozen=True)
class Identity:
    """Caller identity resolved from a verified token and the live user record."""
    user_id: str
    email: str
    username: str
    role: UserRole

    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> 'Identity':
        return cls(user_id=user.id, email=user.email, username=user.username, role=user.role)


@dataclass
class AuthResult:
    """Outcome of register/login: public user projection plus a fresh token."""
    user: Dict[str, Any]
    token: str

    def to_dict(self) -> Dict[str, Any]:
        return {'user': self.user, 'token': self.token}


# ==============================================================================
# CATALOG
# ==============================================================================

@dataclass
class Sweet:
    """
    Catalog item.

    Attributes:
        id: Opaque unique identifier
        name: 1-200 characters, not unique
        category: One of SweetCategory
        price: Strictly positive, two decimals
        quantity: Units in stock, never negative
    """
    id: str
    name: str
    category: SweetCategory
    price: Decimal
    quantity: int = 0
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def is_in_stock(self) -> bool:
        return self.quantity > 0

    def to_dict(self) -> Dict[str, Any]:
        """Converts to a dictionary for persistence."""
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
            'price': str(self.price),
            'quantity': self.quantity,
            'image_url': self.image_url,
            'created_at': self.created_at.isoformat(timespec='microseconds'),
            'updated_at': self.updated_at.isoformat(timespec='microseconds'),
        }

    def to_public_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'category': self.category.value,
            'price': float(self.price),
            'quantity': self.quantity,
            'imageUrl': self.image_url,
            'inStock': self.is_in_stock(),
            'createdAt': self.created_at.isoformat(timespec='microseconds'),
            'updatedAt': self.updated_at.isoformat(timespec='microseconds'),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Sweet':
        return cls(
            id=data['id'],
            name=data['name'],
            description=data.get('description'),
            category=SweetCategory(data.get('category', SweetCategory.OTHER.value)),
            price=to_money(data['price']),
            quantity=int(data.get('quantity', 0)),
            image_url=data.get('image_url'),
            created_at=parse_timestamp(data['created_at']),
            updated_at=parse_timestamp(data['updated_at']),
        )


@dataclass(frozen=True)
class SearchFilters:
    """
    Conjunctive catalog filters. A None field places no constraint.

    Attributes:
        name: Case-insensitive substring of the sweet name
        category: Exact category
        min_price: Inclusive lower price bound
        max_price: Inclusive upper price bound
    """
    name: Optional[str] = None
    category: Optional[SweetCategory] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None

    def matches(self, sweet: Sweet) -> bool:
        if self.name is not None and self.name.casefold() not in sweet.name.casefold():
            return False
        if self.category is not None and sweet.category != self.category:
            return False
        if self.min_price is not None and sweet.price < self.min_price:
            return False
        if self.max_price is not None and sweet.price > self.max_price:
            return False
        return True
