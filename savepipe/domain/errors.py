"""Typed error hierarchy for savepipe.

All package errors inherit from AppError and provide:
- code: Machine-readable error code
- message: Human-readable description
- details: Additional context as dict
- retryable: Whether the operation can be retried

Errors raised by steps or by the underlying connection are never wrapped;
they reach the caller exactly as they were raised.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error with full context."""

    code: str = "APP_ERROR"
    message: str = "An unexpected error occurred"
    details: dict[str, Any] = field(default_factory=dict)
    retryable: bool = False
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __post_init__(self) -> None:
        super().__init__(str(self))

    def to_dict(self) -> dict[str, Any]:
        """Serialize error for logging."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat(),
        }


# --- Configuration Errors ---


@dataclass
class ConfigurationError(AppError):
    """Package is misconfigured."""

    code: str = "CONFIGURATION_ERROR"
    retryable: bool = False


@dataclass
class NotInitializedError(ConfigurationError):
    """A pipeline ran before a connection resource was installed."""

    code: str = "NOT_INITIALIZED"
    message: str = "No connection resource installed; call savepipe.init() first"


# --- Validation Errors ---


@dataclass
class ValidationError(AppError):
    """Caller-supplied definition is invalid."""

    code: str = "VALIDATION_ERROR"
    retryable: bool = False


@dataclass
class GuardConfigurationError(ValidationError):
    """Unknown result guard shape."""

    code: str = "GUARD_CONFIGURATION_ERROR"
    guard_type: str = ""


@dataclass
class StepDefinitionError(ValidationError):
    """An argument to the pipeline builder is not a step, a step list or a generator."""

    code: str = "STEP_DEFINITION_ERROR"


# --- Not Found Errors ---


@dataclass
class NotFoundError(AppError):
    """Resource not found."""

    code: str = "NOT_FOUND"
    retryable: bool = False


@dataclass
class ConditionNotFoundError(NotFoundError):
    """Condition name was never registered."""

    code: str = "CONDITION_NOT_FOUND"
    name: str = ""


# --- Database Errors ---


@dataclass
class DatabaseError(AppError):
    """Database operation failed."""

    code: str = "DATABASE_ERROR"
    operation: str = ""


@dataclass
class TransactionError(DatabaseError):
    """Database transaction failed."""

    code: str = "DB_TRANSACTION_ERROR"
    retryable: bool = True


@dataclass
class TransactionStateError(TransactionError):
    """Operation attempted from a state that does not allow it."""

    code: str = "DB_TRANSACTION_STATE"
    retryable: bool = False
    state: str = ""
