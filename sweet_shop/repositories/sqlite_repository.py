# ==============================================================================
# SQLITE REPOSITORIES
# ==============================================================================
# Same contracts as the JSON repositories (see interfaces.py), backed by a
# single SQLite database. The SQLiteDatabase handle is created once at
# startup by the AppContainer and shared by both repositories.
# ==============================================================================

import os
import sqlite3
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from sweet_shop.errors import ConflictError, NotFoundError
from sweet_shop.models import SearchFilters, Sweet, User, UserRole
from sweet_shop.repositories.interfaces import (
    ConditionalUpdateResult,
    SweetMutation,
    SweetPredicate,
)
from sweet_shop.repositories.schema import (
    SWEETS_SCHEMA,
    USERS_SCHEMA,
    TableSchema,
)
from sweet_shop.repositories.sweet_repository import apply_changes

# Parameter type accepted by sqlite3 (positional tuple or named mapping)
Params = Union[Tuple[Any, ...], Mapping[str, Any]]


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


class SQLiteDatabase:
    """
    Connection handle with an init/teardown lifecycle.

    One connection is shared across request threads; the handle lock
    serializes its use and transaction() takes SQLite's write lock up front
    (BEGIN IMMEDIATE) so a read-check-write sequence cannot interleave with
    another writer.
    """

    def __init__(self, db_path: str, schemas: Iterable[TableSchema] = (USERS_SCHEMA, SWEETS_SCHEMA)):
        self.db_path = db_path
        if db_path != ':memory:':
            os.makedirs(os.path.dirname(os.path.abspath(db_path)), exist_ok=True)
        # isolation_level=None: autocommit, transactions are opened explicitly
        self.conn = sqlite3.connect(
            db_path, timeout=10, check_same_thread=False, isolation_level=None
        )
        self.conn.row_factory = sqlite3.Row
        self.conn.create_function('py_casefold', 1, _casefold, deterministic=True)
        self._lock = threading.RLock()
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.execute("PRAGMA journal_mode=WAL")  # readers do not block the writer
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA busy_timeout=5000")
        for schema in schemas:
            self.conn.execute(schema.to_ddl())

    def execute(self, sql: str, params: Params = ()) -> sqlite3.Cursor:
        with self._lock:
            return self.conn.execute(sql, params)

    def query(self, sql: str, params: Params = ()) -> List[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchall()

    def query_one(self, sql: str, params: Params = ()) -> Optional[sqlite3.Row]:
        with self._lock:
            return self.conn.execute(sql, params).fetchone()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Immediate transaction, committed on success and rolled back on error."""
        with self._lock:
            self.conn.execute('BEGIN IMMEDIATE')
            try:
                yield self.conn
            except BaseException:
                self.conn.execute('ROLLBACK')
                raise
            self.conn.execute('COMMIT')

    def close(self) -> None:
        with self._lock:
            self.conn.close()


class _SQLiteRepository:
    """Shared helpers for repositories bound to one table."""

    def __init__(self, database: SQLiteDatabase, schema: TableSchema):
        self.db = database
        self.schema = schema

    def _insert(self, record: Dict[str, Any]) -> None:
        columns = self.schema.column_names
        placeholders = ', '.join('?' for _ in columns)
        self.db.execute(
            f"INSERT INTO {self.schema.name} ({', '.join(columns)}) VALUES ({placeholders})",
            tuple(record.get(c) for c in columns)
        )

    def _update_row(self, conn: sqlite3.Connection, record: Dict[str, Any]) -> int:
        key = self.schema.primary_key
        columns = [c for c in self.schema.column_names if c != key]
        assignments = ', '.join(f'{c} = ?' for c in columns)
        cursor = conn.execute(
            f"UPDATE {self.schema.name} SET {assignments} WHERE {key} = ?",
            tuple(record.get(c) for c in columns) + (record[key],)
        )
        return cursor.rowcount

    def _select_by_id(self, conn: sqlite3.Connection, record_id: str) -> Optional[sqlite3.Row]:
        return conn.execute(
            f"SELECT * FROM {self.schema.name} WHERE {self.schema.primary_key} = ?",
            (record_id,)
        ).fetchone()

    def count(self) -> int:
        row = self.db.query_one(f"SELECT COUNT(*) AS n FROM {self.schema.name}")
        return row['n']

    def clear(self) -> None:
        self.db.execute(f"DELETE FROM {self.schema.name}")


class SQLiteUserRepository(_SQLiteRepository):
    """Credential store on the users table."""

    def __init__(self, database: SQLiteDatabase, schema: TableSchema = USERS_SCHEMA):
        super().__init__(database, schema)

    def find_by_email(self, email: str) -> Optional[User]:
        row = self.db.query_one(
            "SELECT * FROM users WHERE email = ?", (email.strip().lower(),)
        )
        return User.from_dict(dict(row)) if row else None

    def find_by_id(self, user_id: str) -> Optional[User]:
        row = self.db.query_one("SELECT * FROM users WHERE id = ?", (user_id,))
        return User.from_dict(dict(row)) if row else None

    def create(self, user: User) -> User:
        """
        Raises:
            ConflictError: If the e-mail already exists (UNIQUE constraint)
        """
        try:
            self._insert(user.to_dict())
        except sqlite3.IntegrityError:
            raise ConflictError('User with this email already exists')
        return user

    def save(self, user: User) -> User:
        with self.db.transaction() as conn:
            if not self._update_row(conn, user.to_dict()):
                raise NotFoundError('User not found')
        return user

    def find_by_role(self, role: UserRole) -> List[User]:
        rows = self.db.query("SELECT * FROM users WHERE role = ?", (role.value,))
        return [User.from_dict(dict(row)) for row in rows]


class SQLiteSweetRepository(_SQLiteRepository):
    """Catalog store on the sweets table."""

    def __init__(self, database: SQLiteDatabase, schema: TableSchema = SWEETS_SCHEMA):
        super().__init__(database, schema)

    def find_by_id(self, sweet_id: str) -> Optional[Sweet]:
        row = self.db.query_one("SELECT * FROM sweets WHERE id = ?", (sweet_id,))
        return Sweet.from_dict(dict(row)) if row else None

    def find_all(self) -> List[Sweet]:
        rows = self.db.query("SELECT * FROM sweets ORDER BY created_at DESC, rowid DESC")
        return [Sweet.from_dict(dict(row)) for row in rows]

    def find_filtered(self, filters: SearchFilters) -> List[Sweet]:
        """
        Compiles the filters to a parameterised WHERE clause.
        Absent filters add no condition.
        """
        clauses = []
        params: List[Any] = []
        if filters.name is not None:
            clauses.append("instr(py_casefold(name), ?) > 0")
            params.append(filters.name.casefold())
        if filters.category is not None:
            clauses.append("category = ?")
            params.append(filters.category.value)
        if filters.min_price is not None:
            clauses.append("CAST(price AS REAL) >= ?")
            params.append(float(filters.min_price))
        if filters.max_price is not None:
            clauses.append("CAST(price AS REAL) <= ?")
            params.append(float(filters.max_price))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ''
        rows = self.db.query(
            f"SELECT * FROM sweets {where} ORDER BY py_casefold(name) ASC, id ASC",
            tuple(params)
        )
        return [Sweet.from_dict(dict(row)) for row in rows]

    def create(self, sweet: Sweet) -> Sweet:
        self._insert(sweet.to_dict())
        return sweet

    def update(self, sweet_id: str, changes: Dict[str, Any]) -> Optional[Sweet]:
        with self.db.transaction() as conn:
            row = self._select_by_id(conn, sweet_id)
            if row is None:
                return None
            record = apply_changes(dict(row), changes)
            self._update_row(conn, record)
        return Sweet.from_dict(record)

    def delete(self, sweet_id: str) -> bool:
        cursor = self.db.execute("DELETE FROM sweets WHERE id = ?", (sweet_id,))
        return cursor.rowcount > 0

    def conditional_update(
        self,
        sweet_id: str,
        predicate: SweetPredicate,
        mutation: SweetMutation
    ) -> ConditionalUpdateResult:
        """Select, check and update inside one immediate transaction."""
        with self.db.transaction() as conn:
            row = self._select_by_id(conn, sweet_id)
            if row is None:
                return ConditionalUpdateResult(found=False, applied=False)
            current = dict(row)
            sweet = Sweet.from_dict(current)
            if not predicate(sweet):
                return ConditionalUpdateResult(found=True, applied=False, record=sweet)
            record = apply_changes(current, mutation(sweet))
            self._update_row(conn, record)
        return ConditionalUpdateResult(found=True, applied=True, record=Sweet.from_dict(record))
