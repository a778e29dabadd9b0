"""
Structured error types for relbridge.

Every failure that crosses the handler boundary is a ``ServiceFault``.
Subclasses name the stage that failed (session acquisition, introspection,
binding, execution, ...) and carry a category, a retryable flag, structured
context and the chained driver exception.

Manifesto:
    - **One family:** Callers catch ``ServiceFault`` and nothing else
    - **Typed stages:** The subclass says where the operation broke
    - **Rich context:** Table, column and position travel with the error
    - **Error chaining:** Driver exceptions are preserved as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                        ServiceFault                          │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  SessionError        IntrospectionError   StatementError     │
        │  (DATABASE, retry)   (DATABASE)           (DATABASE)         │
        │                                                              │
        │  BindError           DecodeError          ConfigError        │
        │  (VALIDATION)        (PARSE)              (CONFIG)           │
        │                                                              │
        │  MissingKeyError     UnknownTableError    UnknownProperty    │
        │  (VALIDATION)        (VALIDATION)         Error (VALIDATION) │
        │                                                              │
        │  TransactionError ── TransactionLostError                    │
        │  (TRANSACTION)                                               │
        └─────────────────────────────────────────────────────────────┘

Examples:
    >>> try:
    ...     raise ValueError("bad digits")
    ... except ValueError as e:
    ...     error = BindError("Cannot bind 'x1' to INTEGER", cause=e)
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> error.with_context(table="USERS", column="id").context.table
    'USERS'

Guardrails:
    ❌ DON'T: Let driver exceptions escape the handler
    ✅ DO: Wrap them in the matching ServiceFault subclass with cause=

    ❌ DON'T: Retry inside the adapter
    ✅ DO: Surface ``retryable`` and let the protocol layer decide

Tags:
    error-handling, exception-hierarchy, error-context, relbridge

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    DATABASE = "DATABASE"        # Session, introspection, execution
    VALIDATION = "VALIDATION"    # Caller-supplied values or identifiers
    PARSE = "PARSE"              # Stored values the codec cannot read
    CONFIG = "CONFIG"            # Adapter selection, drivers, settings
    TRANSACTION = "TRANSACTION"  # Transactional session lifecycle
    INTERNAL = "INTERNAL"        # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to a fault.

    Attributes:
        table: Table the operation targeted
        column: Column involved, if any
        position: 1-based parameter position, for binding failures
        operation: Handler operation name (``insert``, ``update``, ...)
        metadata: Additional key-value pairs
    """

    table: str | None = None
    column: str | None = None
    position: int | None = None
    operation: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["table", "column", "position", "operation"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ServiceFault(Exception):
    """
    Base exception for every relbridge failure.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override both per instance.

    Examples:
        >>> fault = ServiceFault("Something went wrong")
        >>> fault.retryable
        False
        >>> fault.to_dict()["error_type"]
        'ServiceFault'
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ServiceFault:
        """
        Add context to this fault (fluent API).

        Usage:
            raise StatementError("Insert failed", cause=e).with_context(
                table="USERS", operation="insert"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert fault to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# DATASOURCE ERRORS
# =============================================================================


class SessionError(ServiceFault):
    """A session could not be acquired from the datasource."""

    default_category = ErrorCategory.DATABASE
    default_retryable = True


class IntrospectionError(ServiceFault):
    """A catalog metadata query failed; no partial catalog is kept."""

    default_category = ErrorCategory.DATABASE


class StatementError(ServiceFault):
    """A synthesized statement failed to execute, or could not be built."""

    default_category = ErrorCategory.DATABASE


# =============================================================================
# VALUE ERRORS
# =============================================================================


class BindError(ServiceFault):
    """Canonical text could not be converted for a statement parameter."""

    default_category = ErrorCategory.VALIDATION


class DecodeError(ServiceFault):
    """A value read from the datasource has no canonical text form."""

    default_category = ErrorCategory.PARSE


# =============================================================================
# REQUEST ERRORS
# =============================================================================


class MissingKeyError(ServiceFault):
    """The table has no primary key, or the entry lacks a key value."""

    default_category = ErrorCategory.VALIDATION


class UnknownTableError(ServiceFault):
    """The requested table is not in the catalog."""

    default_category = ErrorCategory.VALIDATION


class UnknownPropertyError(ServiceFault):
    """The entry names a column the table does not have."""

    default_category = ErrorCategory.VALIDATION


# =============================================================================
# TRANSACTION ERRORS
# =============================================================================


class TransactionError(ServiceFault):
    """Transactional session misuse: double open, close without open."""

    default_category = ErrorCategory.TRANSACTION


class TransactionLostError(TransactionError):
    """A transactional call found no bound session."""


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(ServiceFault):
    """Unknown adapter, missing driver or invalid settings."""

    default_category = ErrorCategory.CONFIG


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ServiceFault",
    "SessionError",
    "IntrospectionError",
    "StatementError",
    "BindError",
    "DecodeError",
    "MissingKeyError",
    "UnknownTableError",
    "UnknownPropertyError",
    "TransactionError",
    "TransactionLostError",
    "ConfigError",
]
