"""EntityStore Batch Result - Positional Batch Outcomes.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

from entitystore_core.errors import MultiError, is_problem
from entitystore_core.model.key import Key


@dataclass
class BatchItem:
    """Outcome for one key of a batch read.

    Attributes:
        key: Requested key
        entity: Loaded entity, None when the position failed
        error: Error for this position, None on success
    """

    key: Key
    entity: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchResult:
    """Batch read result aligned with the requested keys.

    Example:
        result = store.fetch_many(keys, Account)
        for item in result:
            if item.ok:
                use(item.entity)
        result.raise_for_errors()
    """

    def __init__(self, items: List[BatchItem]):
        self.items = items

    @property
    def keys(self) -> List[Key]:
        return [item.key for item in self.items]

    @property
    def entities(self) -> List[Any]:
        """Entities by position, None where the position failed."""
        return [item.entity for item in self.items]

    @property
    def errors(self) -> List[Optional[BaseException]]:
        """Errors by position, None where the position succeeded."""
        return [item.error for item in self.items]

    @property
    def ok(self) -> bool:
        """True if every position succeeded."""
        return all(item.ok for item in self.items)

    @property
    def has_problem(self) -> bool:
        """True if any position failed with something other than not-found."""
        return any(is_problem(item.error) for item in self.items)

    def found(self) -> List[Any]:
        """Get the successfully loaded entities in key order."""
        return [item.entity for item in self.items if item.ok]

    def failed_keys(self) -> List[Key]:
        """Get keys whose position failed."""
        return [item.key for item in self.items if not item.ok]

    def raise_for_errors(self) -> None:
        """Raise MultiError if any position failed."""
        if not self.ok:
            raise MultiError(self.errors)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[BatchItem]:
        return iter(self.items)

    def __getitem__(self, index: int) -> BatchItem:
        return self.items[index]

    def __repr__(self) -> str:
        failed = len(self.failed_keys())
        return f"BatchResult(items={len(self.items)}, failed={failed})"


__all__ = ["BatchItem", "BatchResult"]
