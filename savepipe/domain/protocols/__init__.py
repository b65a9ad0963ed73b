"""Domain protocols - abstract interfaces for infrastructure implementations."""

from savepipe.domain.protocols.connection import (
    ConnectionSource,
    ResultLike,
    TransactionalConnection,
)

__all__ = [
    "ConnectionSource",
    "ResultLike",
    "TransactionalConnection",
]
