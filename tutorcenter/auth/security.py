from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import jwt

from tutorcenter.core.config import settings


def create_access_token(
    user_id: UUID,
    role: str,
    *,
    name: Optional[str] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """
    Issue a bearer token for a staff member. Production tokens come from the center's login
    service with the same claims; this is used by tooling and tests.
    """
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes

    claims: Dict[str, Any] = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if name:
        claims["name"] = name
    return jwt.encode(claims, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Verify signature and expiry. Raises jose.JWTError on any failure."""
    return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
