"""Interface definitions for the collaborators of the query cache.

The cache services depend only on these abstract base classes.  Concrete
adapters are injected at construction time, so unit tests can pass mocks and
the database driver can be swapped without touching the caching logic.

CONCRETE PROVIDER MAP:
    Interface             →  Concrete implementations (in querycache/providers/)
    ─────────────────────────────────────────────────────────────────────
    IQueryExecutor        →  MongoQueryExecutor
    ICollectionResolver   →  MongoCollectionResolver, MemoryCollectionResolver
    ICollectionHandle     →  MongoCollectionHandle, MemoryCollectionHandle
"""

from querycache.interfaces.collection_resolver import ICollectionHandle, ICollectionResolver
from querycache.interfaces.query_executor import IQueryExecutor

__all__ = [
    "ICollectionHandle",
    "ICollectionResolver",
    "IQueryExecutor",
]
