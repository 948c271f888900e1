from typing import AbstractSet, Iterable, Iterator, Optional


def syncable_schemas(
    schemas: Iterable[Optional[str]],
    excluded: Optional[AbstractSet[str]],
) -> Iterator[Optional[str]]:
    """Lazily drop excluded schemas, keeping source order."""
    excluded = excluded or frozenset()
    return (schema for schema in schemas if schema not in excluded)
