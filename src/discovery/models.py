"""
Data model for table discovery.

Everything here is transient: created and consumed within a single
describe_database() call.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, Optional, Tuple


class TableKind(str, Enum):
    """Table types requested from the metadata listing."""
    TABLE = "TABLE"
    VIEW = "VIEW"
    FOREIGN_TABLE = "FOREIGN TABLE"
    MATERIALIZED_VIEW = "MATERIALIZED VIEW"
    EXTERNAL_TABLE = "EXTERNAL TABLE"


DEFAULT_TABLE_KINDS: FrozenSet[TableKind] = frozenset(TableKind)


class EnumerationStrategy(str, Enum):
    """How a connector discovers tables."""
    # List schemas, then tables per non-excluded schema
    SCHEMA_FIRST = "schema_first"
    # List every table once, drop excluded schemas client-side
    SCAN_THEN_FILTER = "scan_then_filter"


@dataclass(frozen=True)
class DatabaseRef:
    """Identifies the database a connection pool should connect to."""
    url: str
    catalog: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def coerce(cls, database) -> 'DatabaseRef':
        if isinstance(database, cls):
            return database
        if isinstance(database, str):
            return cls(url=database)
        raise TypeError(f"Expected DatabaseRef or URL string, got {type(database).__name__}")

    def __str__(self) -> str:
        return self.name or self.url.split('@')[-1]


@dataclass(frozen=True)
class TableCandidate:
    """A table or view returned by the metadata listing, not yet access-checked."""
    name: str
    schema: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class InventoryTable:
    name: str
    schema: Optional[str] = None
    description: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: TableCandidate) -> 'InventoryTable':
        remarks = candidate.remarks
        return cls(
            name=candidate.name,
            schema=candidate.schema,
            description=remarks if remarks and remarks.strip() else None,
        )

    @property
    def key(self) -> Tuple[Optional[str], str]:
        return (self.schema, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema,
            "description": self.description,
        }


@dataclass(frozen=True)
class DatabaseInventory:
    """
    Deduplicated set of readable tables.

    No two entries share (schema, name); callers build it through
    describe_database(), which enforces that.
    """
    tables: FrozenSet[InventoryTable] = frozenset()
    _by_key: Dict[Tuple[Optional[str], str], InventoryTable] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        object.__setattr__(self, '_by_key', {table.key: table for table in self.tables})

    def __len__(self) -> int:
        return len(self.tables)

    def __iter__(self) -> Iterator[InventoryTable]:
        return iter(self.tables)

    def get(self, schema: Optional[str], name: str) -> Optional[InventoryTable]:
        return self._by_key.get((schema, name))

    def schemas(self) -> FrozenSet[Optional[str]]:
        return frozenset(table.schema for table in self.tables)

    def to_dict(self) -> Dict[str, Any]:
        ordered = sorted(self.tables, key=lambda t: (t.schema or '', t.name))
        return {"tables": [table.to_dict() for table in ordered]}
