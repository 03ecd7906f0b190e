"""
Storage Backend Module

Provides the abstract storage interface and the in-memory implementation
used by every banking component. Records are kept as JSON-safe dicts, so
monetary values are stored as Decimal strings and timestamps as ISO strings.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple
from decimal import Decimal
from datetime import datetime
import json
import threading
from dataclasses import dataclass, asdict
from contextlib import contextmanager


@dataclass
class StorageRecord:
    """Base class for all stored records"""
    id: int
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for storage"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = str(value)
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'StorageRecord':
        """Create instance from dictionary"""
        data = dict(data)
        if 'created_at' in data and isinstance(data['created_at'], str):
            data['created_at'] = datetime.fromisoformat(data['created_at'])
        if 'updated_at' in data and isinstance(data['updated_at'], str):
            data['updated_at'] = datetime.fromisoformat(data['updated_at'])

        return cls(**data)


class StorageInterface(ABC):
    """Abstract interface for storage backends"""

    @abstractmethod
    def save(self, table: str, record_id: int, data: Dict[str, Any]) -> None:
        """Save a record to storage"""
        pass

    @abstractmethod
    def load(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Load a record from storage"""
        pass

    @abstractmethod
    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table in insertion order"""
        pass

    @abstractmethod
    def delete(self, table: str, record_id: int) -> bool:
        """Delete a record from storage"""
        pass

    @abstractmethod
    def exists(self, table: str, record_id: int) -> bool:
        """Check if a record exists"""
        pass

    @abstractmethod
    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters"""
        pass

    @abstractmethod
    def count(self, table: str) -> int:
        """Count records in table"""
        pass

    @abstractmethod
    def next_id(self, table: str) -> int:
        """Allocate the next id of a table's sequence"""
        pass

    @abstractmethod
    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close storage connection"""
        pass

    def begin_transaction(self) -> None:
        """Start a transaction (default no-op)"""
        pass

    def commit(self) -> None:
        """Commit current transaction (default no-op)"""
        pass

    def rollback(self) -> None:
        """Rollback current transaction (default no-op)"""
        pass

    @contextmanager
    def atomic(self):
        """Context manager for atomic operations"""
        self.begin_transaction()
        try:
            yield
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()


class InMemoryStorage(StorageInterface):
    """
    In-memory storage with serialized transactions.

    A transaction holds the storage lock from begin to commit/rollback, so
    validate-then-mutate sequences run as one critical section across
    threads. Writes made inside a transaction are recorded in an undo
    journal and reverted on rollback. Nested transactions join the
    outermost one.
    """

    def __init__(self):
        self._data: Dict[str, Dict[int, Dict[str, Any]]] = {}
        self._sequences: Dict[str, int] = {}
        self._lock = threading.RLock()
        self._depth = 0
        self._journal: List[Tuple[str, str, Any, Any]] = []

    def _ensure_table(self, table: str) -> None:
        """Ensure table exists"""
        if table not in self._data:
            self._data[table] = {}

    def _remember(self, kind: str, table: str, key: Any, previous: Any) -> None:
        """Record the previous state of a slot while a transaction is open"""
        if self._depth:
            self._journal.append((kind, table, key, previous))

    def save(self, table: str, record_id: int, data: Dict[str, Any]) -> None:
        """Save a record to memory"""
        with self._lock:
            self._ensure_table(table)
            self._remember("record", table, record_id, self._data[table].get(record_id))
            # Deep copy to prevent external mutation
            self._data[table][record_id] = json.loads(json.dumps(data, default=str))

    def load(self, table: str, record_id: int) -> Optional[Dict[str, Any]]:
        """Load a record from memory"""
        with self._lock:
            self._ensure_table(table)
            record = self._data[table].get(record_id)
            if record:
                return json.loads(json.dumps(record))
            return None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        """Load all records from a table"""
        with self._lock:
            self._ensure_table(table)
            return [json.loads(json.dumps(record)) for record in self._data[table].values()]

    def delete(self, table: str, record_id: int) -> bool:
        """Delete a record from memory"""
        with self._lock:
            self._ensure_table(table)
            if record_id in self._data[table]:
                self._remember("record", table, record_id, self._data[table][record_id])
                del self._data[table][record_id]
                return True
            return False

    def exists(self, table: str, record_id: int) -> bool:
        """Check if a record exists"""
        with self._lock:
            self._ensure_table(table)
            return record_id in self._data[table]

    def find(self, table: str, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Find records matching filters"""
        with self._lock:
            self._ensure_table(table)
            results = []
            for record in self._data[table].values():
                match = True
                for key, value in filters.items():
                    if key not in record or record[key] != value:
                        match = False
                        break
                if match:
                    results.append(json.loads(json.dumps(record)))
            return results

    def count(self, table: str) -> int:
        """Count records in table"""
        with self._lock:
            self._ensure_table(table)
            return len(self._data[table])

    def next_id(self, table: str) -> int:
        """Allocate the next id, starting at 1"""
        with self._lock:
            current = self._sequences.get(table, 0)
            self._remember("sequence", table, None, current)
            self._sequences[table] = current + 1
            return current + 1

    def clear_table(self, table: str) -> None:
        """Clear all records from a table"""
        with self._lock:
            self._remember("table", table, None, self._data.get(table, {}))
            self._data[table] = {}

    def close(self) -> None:
        """Close storage (no-op for in-memory)"""
        pass

    def begin_transaction(self) -> None:
        """Acquire the storage lock and open (or join) a transaction"""
        self._lock.acquire()
        self._depth += 1

    def commit(self) -> None:
        """Close the transaction, keeping its writes"""
        try:
            self._depth -= 1
            if self._depth == 0:
                self._journal = []
        finally:
            self._lock.release()

    def rollback(self) -> None:
        """Close the transaction, reverting every write made inside it"""
        try:
            self._depth -= 1
            if self._depth == 0:
                self._undo()
        finally:
            self._lock.release()

    def _undo(self) -> None:
        journal, self._journal = self._journal, []
        for kind, table, key, previous in reversed(journal):
            if kind == "sequence":
                self._sequences[table] = previous
            elif kind == "table":
                self._data[table] = previous
            elif previous is None:
                self._data[table].pop(key, None)
            else:
                self._data[table][key] = previous

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0
