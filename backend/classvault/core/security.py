"""Bearer token validation for the identity provider.

Tokens are issued elsewhere (the identity/session provider); this module only
validates them and exposes the caller's identity and role to route handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from classvault.core.config import settings
from classvault.core.logging import bind_request_context, get_logger
from classvault.db.models.enums import ResourceClass, UserRole

logger = get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

_CLASS_TAGS = frozenset(c.value for c in ResourceClass)


@dataclass(frozen=True)
class CurrentUser:
    """Identity of the caller as asserted by a validated token."""

    user_id: str
    role: UserRole
    email: str | None = None
    class_name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def visible_classes(self) -> set[str] | None:
        """Class tags this user may see, or None for unrestricted access."""
        if self.is_admin:
            return None
        if self.class_name in _CLASS_TAGS and self.class_name != ResourceClass.GENERAL.value:
            return {self.class_name, ResourceClass.GENERAL.value}
        return {ResourceClass.GENERAL.value}


def create_access_token(
    user_id: str,
    role: UserRole,
    email: str | None = None,
    class_name: str | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """Issue a signed token carrying the claims this service understands."""
    expire = datetime.now(timezone.utc) + (
        expires_in or timedelta(minutes=settings.jwt_expire_minutes)
    )
    claims: dict[str, object] = {"sub": user_id, "role": role.value, "exp": expire}
    if email:
        claims["email"] = email
    if class_name:
        claims["class"] = class_name
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> CurrentUser | None:
    """Validate a token and return the identity it carries.

    Returns:
        CurrentUser, or None if the token is invalid, expired or malformed.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug("token_rejected", error=str(e))
        return None

    user_id = payload.get("sub")
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        return None
    if not user_id:
        return None

    class_name = payload.get("class")
    if class_name is not None:
        try:
            class_name = ResourceClass(str(class_name)).value
        except ValueError:
            # Unknown class tags fall back to GENERAL-only visibility
            logger.info("token_class_ignored", user_id=str(user_id), class_claim=class_name)
            class_name = None

    return CurrentUser(
        user_id=str(user_id),
        role=role,
        email=payload.get("email"),
        class_name=class_name,
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """Dependency resolving the caller from the Authorization header."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")

    user = decode_access_token(credentials.credentials)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    bind_request_context(user_id=user.user_id, role=user.role.value)
    return user


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Dependency allowing only administrators through."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Forbidden")
    return user
