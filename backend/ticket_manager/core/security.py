"""
Bearer-token authentication.

The identity provider issues JWTs; this module only validates them and
exposes the claims as an `Identity`. Mapping an identity onto a local user
row (auto-provisioning) happens in `services.user_service`.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from ticket_manager.core.config import get_settings
from ticket_manager.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by the token."""

    sub: str
    email: Optional[str] = None
    name: Optional[str] = None
    roles: tuple[str, ...] = field(default_factory=tuple)

    @property
    def claims_admin(self) -> bool:
        return "admin" in self.roles


def create_access_token(
    sub: str,
    email: Optional[str] = None,
    name: Optional[str] = None,
    roles: Optional[list[str]] = None,
    expires_minutes: int = 60,
) -> str:
    """Mint a token in the shape the identity provider issues (used by tests and scripts)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": sub,
        "email": email,
        "name": name,
        "roles": roles or [],
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    if settings.AUTH_AUDIENCE:
        payload["aud"] = settings.AUTH_AUDIENCE
    if settings.AUTH_ISSUER:
        payload["iss"] = settings.AUTH_ISSUER
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Identity:
    options = {"verify_aud": settings.AUTH_AUDIENCE is not None}
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.AUTH_AUDIENCE,
            issuer=settings.AUTH_ISSUER,
            options=options,
        )
    except JWTError as e:
        logger.warning("token_rejected", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = payload.get("sub")
    if not sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return Identity(
        sub=sub,
        email=payload.get("email"),
        name=payload.get("name"),
        roles=tuple(payload.get("roles") or ()),
    )


def get_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return decode_token(credentials.credentials)
