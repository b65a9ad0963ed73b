"""Connection protocols - what a pipeline needs from the database driver."""

from contextlib import AbstractAsyncContextManager
from typing import Any, Mapping, Protocol, Sequence, runtime_checkable


@runtime_checkable
class ResultLike(Protocol):
    """Raw query outcome consumed by the result guard."""

    @property
    def rows(self) -> Sequence[Mapping[str, Any]]:
        """Rows returned by the statement."""
        ...

    @property
    def row_count(self) -> int:
        """Number of rows returned or affected."""
        ...


@runtime_checkable
class TransactionalConnection(Protocol):
    """A live connection able to run one transaction at a time."""

    async def begin(self) -> None:
        """Open a transaction."""
        ...

    async def savepoint(self, name: str) -> None:
        """Mark a named rollback point inside the open transaction."""
        ...

    async def rollback(self, name: str) -> None:
        """Revert the open transaction to the named rollback point."""
        ...

    async def commit(self) -> None:
        """Commit the open transaction."""
        ...

    async def query(self, text: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a statement and return its raw result."""
        ...


@runtime_checkable
class ConnectionSource(Protocol):
    """Hands out a dedicated connection per pipeline invocation."""

    def connect(self) -> AbstractAsyncContextManager[TransactionalConnection]:
        """Acquire a connection for the duration of the context."""
        ...
