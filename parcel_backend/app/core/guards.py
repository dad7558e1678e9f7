"""
Security guards for role-based and ownership-based access control.

Provides dependencies for protecting endpoints. Guards raise, so a rejected
request never falls through to the handler body.
"""

from typing import List
from fastapi import Depends
from parcel_backend.app.core.exceptions import InsufficientPermissionsError
from parcel_backend.app.core.dependencies import get_current_user
from parcel_backend.app.core.identity import VerifiedIdentity
from parcel_backend.app.models.enums import UserRole
from parcel_backend.app.models.user import User


def require_role(allowed_roles: List[UserRole]):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.patch("/riders/{rider_id}/status")
        async def update_status(admin: User = Depends(require_role([UserRole.ADMIN]))):
            ...

    Args:
        allowed_roles: List of UserRole enums that are allowed to access the endpoint

    Returns:
        FastAPI dependency function that validates the stored user role

    Raises:
        InsufficientPermissionsError 403 if user role is not in allowed_roles
    """
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed_roles:
            raise InsufficientPermissionsError(
                f"Access denied. Required role: {', '.join([r.value for r in allowed_roles])}"
            )
        return current_user

    return role_checker


require_admin = require_role([UserRole.ADMIN])


class OwnershipGuard:
    """
    Ownership guard binding a resource owner email to the verified identity.

    Usage:
        ownership_guard = OwnershipGuard()

        @router.get("/payments")
        async def list_payments(
            email: str,
            identity: VerifiedIdentity = Depends(get_current_identity),
        ):
            ownership_guard.enforce(email, identity, "payments")
            ...
    """

    def enforce(
        self,
        resource_owner_email: str,
        identity: VerifiedIdentity,
        resource_name: str = "resource"
    ):
        """
        Enforce ownership validation, raise 403 if access denied.

        Emails are compared exactly as stored (case-sensitive).
        """
        if identity.email != resource_owner_email:
            raise InsufficientPermissionsError(
                f"Access denied. You do not have permission to access this {resource_name}."
            )
