"""In-process collection store.

MemoryCollectionResolver keeps collections in a dict, which is fast but not
shared across processes.  Use it in tests and local experiments; production
code resolves collections through the MongoDB provider.
"""

from querycache.providers.memory.memory_store import MemoryCollectionHandle, MemoryCollectionResolver

__all__ = ["MemoryCollectionHandle", "MemoryCollectionResolver"]
