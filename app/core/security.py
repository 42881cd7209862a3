"""Bearer tokens naming the actor behind a room operation.

Tokens are issued elsewhere (the seed script, tests); the API only decodes
them. The claims are the user id and the role it had at issue time.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt

from app.config import settings
from app.core.exceptions import AuthenticationError
from app.models.user import USER_ROLES

ACTOR_TOKEN_TYPE = "actor"


@dataclass(frozen=True)
class ActorClaims:
    user_id: UUID
    role: str


def issue_actor_token(user_id: UUID, role: str, expires_delta: timedelta | None = None) -> str:
    """Sign a token for ``user_id`` acting as ``role``."""
    if role not in USER_ROLES:
        raise ValueError(f"Unknown role: {role!r}")
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(user_id), "role": role, "type": ACTOR_TOKEN_TYPE, "exp": expire}
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_actor_token(token: str) -> ActorClaims:
    """Verify the signature and expiry and return the actor claims.

    Raises:
        AuthenticationError: bad signature, expired, wrong token type, or
            a subject/role that does not name a user
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError(f"Token validation failed: {e}")

    if payload.get("type") != ACTOR_TOKEN_TYPE:
        raise AuthenticationError("Invalid token type")
    role = payload.get("role")
    if role not in USER_ROLES:
        raise AuthenticationError("Invalid token payload")
    try:
        user_id = UUID(payload.get("sub") or "")
    except ValueError:
        raise AuthenticationError("Invalid token payload")
    return ActorClaims(user_id=user_id, role=role)
