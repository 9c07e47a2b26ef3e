# ==============================================================================
# TABLE SCHEMAS - Schema as data
# ==============================================================================
# Each store receives the schema of the table it manages in its constructor.
# The JSON backend reads the unique columns from it, the SQLite backend
# renders its DDL from it. Entities stay free of persistence annotations.
# ==============================================================================

from dataclasses import dataclass
from typing import Optional, Tuple


# Logical column types -> SQLite storage types
SQLITE_TYPES = {
    'text': 'TEXT',
    'integer': 'INTEGER',
    'decimal': 'TEXT',
    'timestamp': 'TEXT',
}


@dataclass(frozen=True)
class Column:
    """
    Column description.

    Attributes:
        name: Column name (also the key in JSON records)
        type: Logical type: text, integer, decimal, timestamp
        nullable: Whether NULL/None is accepted
        unique: Uniqueness constraint
        primary_key: Record identifier
        max_length: Upper bound for text columns
        default: SQL default literal
    """
    name: str
    type: str = 'text'
    nullable: bool = False
    unique: bool = False
    primary_key: bool = False
    max_length: Optional[int] = None
    default: Optional[str] = None

    def to_ddl(self) -> str:
        parts = [self.name, SQLITE_TYPES[self.type]]
        if self.primary_key:
            parts.append('PRIMARY KEY')
        if not self.nullable and not self.primary_key:
            parts.append('NOT NULL')
        if self.unique:
            parts.append('UNIQUE')
        if self.default is not None:
            parts.append(f'DEFAULT {self.default}')
        if self.max_length is not None:
            parts.append(f'CHECK (length({self.name}) <= {self.max_length})')
        return ' '.join(parts)


@dataclass(frozen=True)
class TableSchema:
    """A table (SQLite) or collection file (JSON)."""
    name: str
    columns: Tuple[Column, ...]
    checks: Tuple[str, ...] = ()

    @property
    def column_names(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns)

    @property
    def primary_key(self) -> str:
        for column in self.columns:
            if column.primary_key:
                return column.name
        raise ValueError(f"Table {self.name} has no primary key")

    @property
    def unique_columns(self) -> Tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.unique)

    def to_ddl(self) -> str:
        """Renders the CREATE TABLE statement for SQLite."""
        definitions = [c.to_ddl() for c in self.columns]
        definitions.extend(f'CHECK ({check})' for check in self.checks)
        body = ',\n    '.join(definitions)
        return f'CREATE TABLE IF NOT EXISTS {self.name} (\n    {body}\n)'


USERS_SCHEMA = TableSchema(
    name='users',
    columns=(
        Column('id', primary_key=True),
        Column('email', unique=True, max_length=100),
        Column('username', max_length=100),
        Column('password_hash'),
        Column('role', default="'user'"),
        Column('created_at', 'timestamp'),
        Column('updated_at', 'timestamp'),
    ),
    checks=("role IN ('user', 'admin')",),
)

SWEETS_SCHEMA = TableSchema(
    name='sweets',
    columns=(
        Column('id', primary_key=True),
        Column('name', max_length=200),
        Column('description', nullable=True),
        Column('category', default="'other'"),
        Column('price', 'decimal'),
        Column('quantity', 'integer', default='0'),
        Column('image_url', nullable=True),
        Column('created_at', 'timestamp'),
        Column('updated_at', 'timestamp'),
    ),
    checks=('quantity >= 0', 'CAST(price AS REAL) > 0'),
)
