"""Lock store interface.

The lock record is read once when a workspace session opens and written
when a mode transition starts and when it completes.  There is no file
locking: two transitions racing on the same workspace are not supported.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from dotrepo.models.lock import LockFile


@runtime_checkable
class LockStore(Protocol):
    """Async protocol for reading and writing the workspace lock record."""

    async def read(self) -> LockFile | None:
        """Read the lock.  Returns ``None`` if there is none yet."""
        ...

    async def write(self, lock: LockFile) -> None:
        """Persist the lock, replacing any previous record."""
        ...
