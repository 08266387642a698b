"""Lock store implementations for workspace mode persistence."""

from dotrepo.store.base import LockStore
from dotrepo.store.local import LocalLockStore

__all__ = ["LocalLockStore", "LockStore"]
