"""Application layer: DTOs, interfaces, cache services, use cases.

Depends only on domain and protocol definitions (DIP). Infrastructure
implements the cache protocol and output-cache hook. Services are imported
from app.application.services (not re-exported here: the cache
infrastructure imports the DTOs during its own initialization).
"""

from app.application.dtos import CacheOperationResult
from app.application.interfaces import IEntitySource, IOutputCache

__all__ = [
    "CacheOperationResult",
    "IEntitySource",
    "IOutputCache",
]
