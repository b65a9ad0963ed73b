"""Transaction lifecycle controller.

A ``Transaction`` wraps one live connection and walks it through
``idle -> active -> (committed | rolled_back)``. Connection failures
propagate unchanged and leave the state where it was, so after any call
returns ``is_active`` reflects what the handle believes about the
connection.
"""

from contextvars import ContextVar
from enum import Enum
from typing import Any, Mapping

from savepipe.domain.errors import TransactionStateError
from savepipe.domain.protocols import TransactionalConnection
from savepipe.infrastructure.telemetry import get_logger

logger = get_logger(__name__)

# Transaction owned by the pipeline run executing in the current task
current_transaction_var: ContextVar["Transaction | None"] = ContextVar(
    "current_transaction", default=None
)


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class Transaction:
    """Lifecycle controller for a single transaction on one connection."""

    def __init__(self, connection: TransactionalConnection):
        self.connection = connection
        self.state = TransactionState.IDLE
        self.points: list[str] = []

    @property
    def is_active(self) -> bool:
        return self.state is TransactionState.ACTIVE

    def _require(self, state: TransactionState, operation: str) -> None:
        if self.state is not state:
            raise TransactionStateError(
                message=f"Cannot {operation} a transaction that is {self.state.value}",
                operation=operation,
                state=self.state.value,
            )

    async def begin(self) -> None:
        """Open the transaction."""
        self._require(TransactionState.IDLE, "begin")
        await self.connection.begin()
        self.state = TransactionState.ACTIVE
        logger.debug("Transaction started")

    async def mark_point(self, name: str) -> None:
        """Mark (or move) a named rollback point."""
        self._require(TransactionState.ACTIVE, "mark_point")
        await self.connection.savepoint(name)
        if name in self.points:
            self.points.remove(name)
        self.points.append(name)

    async def rollback_to_point(self, name: str) -> None:
        """Revert to a rollback point; the handle is finished afterwards."""
        self._require(TransactionState.ACTIVE, "rollback_to_point")
        await self.connection.rollback(name)
        self.state = TransactionState.ROLLED_BACK
        logger.debug("Transaction rolled back", extra={"savepoint": name})

    async def commit(self) -> None:
        """Commit; the handle is finished afterwards."""
        self._require(TransactionState.ACTIVE, "commit")
        await self.connection.commit()
        self.state = TransactionState.COMMITTED
        logger.debug("Transaction committed")

    async def query(self, text: str, params: Mapping[str, Any] | None = None) -> Any:
        """Run a statement inside the open transaction."""
        self._require(TransactionState.ACTIVE, "query")
        return await self.connection.query(text, params)
