"""Database infrastructure - connection resource and transaction lifecycle."""

from savepipe.infrastructure.database.connection import (
    SqlAlchemyConnection,
    SqlAlchemyConnectionSource,
    acquire,
    close_db,
    get_resource,
    init,
    init_db,
)
from savepipe.infrastructure.database.transaction import (
    Transaction,
    TransactionState,
    current_transaction_var,
)

__all__ = [
    "SqlAlchemyConnection",
    "SqlAlchemyConnectionSource",
    "Transaction",
    "TransactionState",
    "acquire",
    "close_db",
    "current_transaction_var",
    "get_resource",
    "init",
    "init_db",
]
