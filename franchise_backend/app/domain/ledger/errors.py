"""
Ledger error taxonomy.

Raised by the balance mutator, statement builder and reconciliation.
These errors carry no HTTP semantics; the API layer maps them to
responses in `core.exceptions`.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for ledger errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class LedgerEntityNotFoundError(LedgerError):
    """The referenced ledger entity (or one of its owners) does not exist."""

    def __init__(self, entity: str, entity_id: Any = None):
        message = f"{entity} not found"
        if entity_id is not None:
            message = f"{entity} {entity_id} not found"
        super().__init__(message, details={"entity": entity, "id": str(entity_id)})
        self.entity = entity
        self.entity_id = entity_id


class InvalidDeltaError(LedgerError):
    """Malformed delta or metadata. Rejected before touching the store."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else {})
        self.field = field


class InsufficientBalanceError(LedgerError):
    """An inventory exit would drive the stock below zero."""

    def __init__(self, current_balance: int, requested: int):
        super().__init__(
            "Insufficient stock for exit",
            details={"current_balance": current_balance, "requested": requested},
        )
        self.current_balance = current_balance
        self.requested = requested


class TransactionFailureError(LedgerError):
    """
    The store could not commit (lock conflict, connectivity, constraint).

    Nothing was committed by this call, but callers that lost the
    connection mid-commit must treat the outcome as unknown.
    """

    def __init__(self, message: str = "Ledger transaction failed", cause: Optional[BaseException] = None):
        details = {"cause": type(cause).__name__} if cause is not None else {}
        super().__init__(message, details=details)
