"""EntityStore Errors - Error Taxonomy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, List, Optional


class EntityStoreError(Exception):
    """Base class for all entitystore errors."""


class NoSuchEntityError(EntityStoreError, KeyError):
    """Entity does not exist in the backing store.

    Attributes:
        key: Key that was not found
    """

    def __init__(self, key: Any = None):
        self.key = key
        message = "entitystore: no such entity"
        if key is not None:
            message = f"{message}: {key}"
        super().__init__(message)

    def __str__(self) -> str:
        return self.args[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NoSuchEntityError):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash((NoSuchEntityError, self.key))


class MultiError(EntityStoreError):
    """Positional errors for a batch operation.

    ``errors[i]`` is the error for the i-th key of the call, or None when
    that position succeeded.

    Attributes:
        errors: Per-position errors
    """

    def __init__(self, errors: Iterable[Optional[BaseException]]):
        self.errors: List[Optional[BaseException]] = list(errors)
        failed = sum(1 for e in self.errors if e is not None)
        first = next((e for e in self.errors if e is not None), None)
        if first is None:
            message = "(0 errors)"
        elif failed == 1:
            message = str(first)
        else:
            message = f"{first} (and {failed - 1} other errors)"
        super().__init__(message)

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[Optional[BaseException]]:
        return iter(self.errors)

    def __getitem__(self, index: int) -> Optional[BaseException]:
        return self.errors[index]

    @property
    def only_not_found(self) -> bool:
        """True if every failed position is a not-found error."""
        return all(e is None or isinstance(e, NoSuchEntityError) for e in self.errors)


class CodecError(EntityStoreError):
    """Entity could not be converted to or from a property list."""


class CachestoreError(EntityStoreError):
    """Cache backend failure. Always treated as non-fatal by the entity store."""


class CacheSizeExceededError(CachestoreError):
    """One or more cache values exceeded the configured size limit.

    Attributes:
        keys: Keys whose serialized value was too large
        limit: Size limit in bytes
    """

    def __init__(self, keys: Iterable[Any] = (), limit: Optional[int] = None):
        self.keys = list(keys)
        self.limit = limit
        super().__init__(f"cachestore: cache size over ({len(self.keys)} entries, limit={limit})")


class InvalidCursorError(EntityStoreError, ValueError):
    """Cursor string could not be decoded."""


class AggregationResultMissingError(EntityStoreError):
    """Aggregation response did not contain the requested alias.

    Attributes:
        alias: Missing aggregation alias
    """

    def __init__(self, alias: str):
        self.alias = alias
        super().__init__(f"entitystore: no aggregation result for {alias!r}")


def is_problem(err: Optional[BaseException]) -> bool:
    """Check whether an error indicates a real problem.

    Not-found errors, and multi errors that contain only not-found
    errors, are an expected outcome and are not problems.

    Args:
        err: Error to check

    Returns:
        True if err is something other than not-found
    """
    if err is None or isinstance(err, NoSuchEntityError):
        return False
    if isinstance(err, MultiError):
        return not err.only_not_found
    return True


__all__ = [
    "EntityStoreError",
    "NoSuchEntityError",
    "MultiError",
    "CodecError",
    "CachestoreError",
    "CacheSizeExceededError",
    "InvalidCursorError",
    "AggregationResultMissingError",
    "is_problem",
]
