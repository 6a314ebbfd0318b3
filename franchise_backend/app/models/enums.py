"""
User roles enumeration.

Defines the role types for the franchise administration system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        SUPERUSER: Organization-wide access to every franchise
        COMMITTEE: Committee member (no ledger access)
        VISIT_REGISTRAR: Records visits (no ledger access)
        COORDINATOR: Manages the ledgers of a single franchise
    """
    SUPERUSER = "SUPERUSER"
    COMMITTEE = "COMMITTEE"
    VISIT_REGISTRAR = "VISIT_REGISTRAR"
    COORDINATOR = "COORDINATOR"
