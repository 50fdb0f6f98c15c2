from colosseum.storage.base import DebateStore, StorageError

__all__ = ["DebateStore", "StorageError"]
