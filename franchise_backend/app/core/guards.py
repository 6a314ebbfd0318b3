"""
Security guards for role-based and franchise-based access control.

`require_role` gates endpoints by role; `scope_for` turns the caller into a
FranchiseScope that every ledger handler consults before touching an entity.
"""

from dataclasses import dataclass
from typing import List, Optional
from fastapi import Depends, HTTPException, status
from franchise_backend.app.models.enums import UserRole
from franchise_backend.app.core.dependencies import get_current_user
from franchise_backend.app.core.exceptions import InsufficientPermissionsError
from franchise_backend.app.domain.ledger.filters import MovementFilter

# Roles allowed to read or mutate ledgers at all
LEDGER_ROLES = [UserRole.SUPERUSER, UserRole.COORDINATOR]


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/admin/ledger/{kind}/reconcile")
        async def reconcile(current_user: dict = Depends(require_role([UserRole.SUPERUSER]))):
            ...

    Raises:
        HTTPException 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: dict = Depends(get_current_user)) -> dict:
        user_role_str = current_user.get("role")

        if not user_role_str:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Role information missing from token"
            )

        try:
            user_role = UserRole(user_role_str)
        except ValueError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid role in token"
            )

        if user_role not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )

        return current_user

    return role_checker


@dataclass(frozen=True)
class FranchiseScope:
    """
    Franchises a caller may act on.

    `franchise_id=None` means unrestricted.
    """
    franchise_id: Optional[int] = None

    @property
    def is_unrestricted(self) -> bool:
        return self.franchise_id is None

    def allows(self, franchise_id: int) -> bool:
        return self.is_unrestricted or self.franchise_id == franchise_id

    def enforce(self, franchise_id: int, resource: str = "resource") -> None:
        """
        Raise 403 when the resource belongs to another franchise.

        Usage:
            scope = scope_for(current_user)
            scope.enforce(account.franchise_id, "bank account")
        """
        if not self.allows(franchise_id):
            raise InsufficientPermissionsError(
                message=f"Access denied. This {resource} belongs to another franchise.",
                details={"franchise_id": franchise_id},
            )

    def narrow(self, movement_filter: MovementFilter) -> MovementFilter:
        """Restrict a movement filter to this scope."""
        if self.is_unrestricted:
            return movement_filter
        return movement_filter.restricted_to(self.franchise_id)


def scope_for(current_user: dict) -> FranchiseScope:
    """
    Resolve the franchise scope of an authenticated user.

    SUPERUSER: unrestricted
    COORDINATOR: own franchise only
    Other roles: no ledger access

    Raises:
        InsufficientPermissionsError if the role has no ledger access or a
        coordinator has no franchise assigned
    """
    role = current_user.get("role")

    if role == UserRole.SUPERUSER.value:
        return FranchiseScope()

    if role == UserRole.COORDINATOR.value:
        franchise_id = current_user.get("franchise_id")
        if franchise_id is None:
            raise InsufficientPermissionsError("Coordinator has no franchise assigned")
        return FranchiseScope(franchise_id=franchise_id)

    raise InsufficientPermissionsError("Ledger access requires a superuser or coordinator role")

