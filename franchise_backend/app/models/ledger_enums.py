"""
Ledger enumerations.
"""

import enum


class Currency(str, enum.Enum):
    """Currency of a monetary ledger entity."""
    VES = "VES"
    USD = "USD"
    EUR = "EUR"


class BankMovementType(str, enum.Enum):
    """Bank movement type enumeration."""
    TRANSFER = "Transfer"
    MOBILE_PAYMENT = "Mobile Payment"
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    CHECK = "Check"
    CARD = "Card"


class InventoryMovementType(str, enum.Enum):
    """Inventory movement direction."""
    ENTRY = "ENTRY"  # Units received into the franchise stock
    EXIT = "EXIT"  # Units leaving the franchise stock


class LedgerKind(str, enum.Enum):
    """Balance-bearing entity families."""
    BANK_ACCOUNT = "BANK_ACCOUNT"
    PETTY_CASH = "PETTY_CASH"
    INVENTORY = "INVENTORY"
