"""API dependencies for authentication and role checks."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.security import decode_actor_token
from app.database import get_db
from app.models.user import User

# Security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    claims = decode_actor_token(credentials.credentials)
    result = await db.execute(select(User).where(User.id == claims.user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")
    if not user.is_active:
        raise AuthenticationError("User account is deactivated")
    # A role change invalidates tokens issued under the old role
    if user.role != claims.role:
        raise AuthenticationError("Token role no longer matches the user")

    return user


class RoleChecker:
    """Allow only users whose role is in ``roles``."""

    def __init__(self, *roles: str):
        self.roles = roles

    async def __call__(
        self,
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in self.roles:
            raise AuthorizationError("Insufficient permissions")
        return current_user


require_staff = RoleChecker("staff")
require_staff_or_admin = RoleChecker("staff", "admin")
require_admin = RoleChecker("admin")

CurrentUser = Annotated[User, Depends(get_current_user)]
StaffUser = Annotated[User, Depends(require_staff)]
StaffOrAdminUser = Annotated[User, Depends(require_staff_or_admin)]
AdminUser = Annotated[User, Depends(require_admin)]
DbSession = Annotated[AsyncSession, Depends(get_db)]
