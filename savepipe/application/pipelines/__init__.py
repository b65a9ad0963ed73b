"""Transactional step pipelines."""

from savepipe.application.pipelines.builder import TransactionMethod, build
from savepipe.application.pipelines.context import StepContext
from savepipe.application.pipelines.steps import (
    Deferred,
    current_transaction,
    deferred,
    query_step,
)

__all__ = [
    "Deferred",
    "StepContext",
    "TransactionMethod",
    "build",
    "current_transaction",
    "deferred",
    "query_step",
]
