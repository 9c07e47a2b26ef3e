# ==============================================================================
# BASE REPOSITORY - Common JSON file access
# ==============================================================================

import copy
import json
import os
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, Optional

from sweet_shop.errors import ConflictError
from sweet_shop.repositories.schema import TableSchema


class BaseRepository(ABC):
    """
    Abstract base class for JSON-backed repositories.

    Records live in `<data_dir>/<table>.json`. When no data directory is
    given the repository keeps its data in memory only, which is what the
    test-suite and the `memory` storage mode use.

    Every read-modify-write happens while holding the repository lock, so
    two writers can never interleave on the same file.
    """

    def __init__(self, schema: TableSchema, data_dir: Optional[str] = None):
        """
        Args:
            schema: Table description (name, unique columns)
            data_dir: Directory holding the JSON file, or None for memory only
        """
        self.schema = schema
        self.file_path = os.path.join(data_dir, f'{schema.name}.json') if data_dir else None
        self._lock = threading.RLock()
        self._memory = self._empty_data()
        self._ensure_file_exists()

    def _ensure_file_exists(self) -> None:
        """Creates the file with empty data if it does not exist."""
        if self.file_path is None:
            return
        os.makedirs(os.path.dirname(self.file_path), exist_ok=True)
        if not os.path.exists(self.file_path):
            self._write_raw(self._empty_data())

    @abstractmethod
    def _empty_data(self) -> Any:
        """Returns the empty data structure for this repository."""
        pass

    def _read_raw(self) -> Any:
        """
        Reads the raw data.

        Returns:
            Parsed JSON (a private copy when running in memory)
        """
        with self._lock:
            if self.file_path is None:
                return copy.deepcopy(self._memory)
            try:
                with open(self.file_path, 'r', encoding='utf-8') as f:
                    return json.load(f)
            except FileNotFoundError:
                return self._empty_data()

    def _write_raw(self, data: Any) -> None:
        """
        Writes the raw data.

        Writes to a temporary file first and replaces the existing file, so a
        crash never leaves a half-written file behind.
        """
        with self._lock:
            if self.file_path is None:
                self._memory = copy.deepcopy(data)
                return
            temp_path = self.file_path + '.tmp'
            try:
                with open(temp_path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(temp_path, self.file_path)
            except Exception:
                if os.path.exists(temp_path):
                    os.remove(temp_path)
                raise

    @contextmanager
    def _transaction(self) -> Iterator[Any]:
        """
        Holds the lock across a read-modify-write cycle.

        The yielded data is written back when the block exits normally.
        """
        with self._lock:
            data = self._read_raw()
            yield data
            self._write_raw(data)


class DictRepository(BaseRepository):
    """
    Repository storing records as a dictionary keyed by primary key.

    Example: sweets.json -> {"<uuid>": {...}, "<uuid>": {...}}
    """

    def _empty_data(self) -> Dict:
        return {}

    def get_all(self) -> Dict[str, Dict[str, Any]]:
        return self._read_raw()

    def get_by_id(self, record_id: str) -> Optional[Dict[str, Any]]:
        return self._read_raw().get(record_id)

    def find_first(self, field: str, value: Any) -> Optional[Dict[str, Any]]:
        """First record whose field equals value."""
        for record in self._read_raw().values():
            if record.get(field) == value:
                return record
        return None

    def insert(self, record: Dict[str, Any]) -> None:
        """
        Inserts a new record enforcing the schema's unique columns.

        Raises:
            ConflictError: If the id or a unique value is already present
        """
        record_id = record[self.schema.primary_key]
        with self._transaction() as data:
            if record_id in data:
                raise ConflictError(f'Duplicate {self.schema.name} id')
            for column in self.schema.unique_columns:
                value = record.get(column)
                if any(existing.get(column) == value for existing in data.values()):
                    raise ConflictError(f'Duplicate value for {self.schema.name}.{column}')
            data[record_id] = record

    def replace(self, record: Dict[str, Any]) -> bool:
        """Overwrites an existing record. False when it does not exist."""
        record_id = record[self.schema.primary_key]
        with self._lock:
            data = self._read_raw()
            if record_id not in data:
                return False
            data[record_id] = record
            self._write_raw(data)
            return True

    def modify(
        self,
        record_id: str,
        modifier: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]]
    ) -> Optional[Dict[str, Any]]:
        """
        Applies modifier to the stored record under the lock.

        The modifier returns the replacement record, or None to leave the
        record untouched.

        Returns:
            The record after modification, the untouched record, or None if
            it does not exist
        """
        with self._lock:
            data = self._read_raw()
            current = data.get(record_id)
            if current is None:
                return None
            replacement = modifier(copy.deepcopy(current))
            if replacement is None:
                return current
            data[record_id] = replacement
            self._write_raw(data)
            return replacement

    def delete(self, record_id: str) -> bool:
        with self._lock:
            data = self._read_raw()
            if data.pop(record_id, None) is None:
                return False
            self._write_raw(data)
            return True

    def count(self) -> int:
        return len(self._read_raw())

    def clear(self) -> None:
        self._write_raw(self._empty_data())
