"""EntityStore Config - Entity Store Configuration.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

DEFAULT_DATABASE_ID = "(default)"


@dataclass
class StoreConfig:
    """Entity store configuration.

    Attributes:
        project_id: Cloud project id
        database_id: Database id, empty for the default database
        client_options: Extra keyword arguments for the datastore client
        cachestore: Cachestore, None disables caching
        logger: Logger, None for the module logger
        timeout: Per-call deadline in seconds for backing store calls
    """

    project_id: Optional[str] = None
    database_id: str = ""
    client_options: Dict[str, Any] = field(default_factory=dict)
    cachestore: Optional[Any] = None  # Cachestore
    logger: Optional[logging.Logger] = None
    timeout: Optional[float] = None

    @property
    def uses_default_database(self) -> bool:
        return self.database_id in ("", DEFAULT_DATABASE_ID)


__all__ = ["StoreConfig", "DEFAULT_DATABASE_ID"]
