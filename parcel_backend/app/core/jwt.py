"""
Signed identity tokens (HS256 by default, key and algorithm from settings).
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from parcel_backend.app.core.config import settings


def issue_identity_token(email: str, expires_delta: Optional[timedelta] = None, **claims: Any) -> str:
    """Sign a token for `email`; used by local tooling and tests in place of the provider."""
    lifetime = expires_delta or timedelta(minutes=settings.identity_token_expire_minutes)
    payload = {"sub": email, "email": email, **claims, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, settings.identity_secret_key, algorithm=settings.identity_algorithm)


def decode_identity_token(token: str) -> Optional[Dict[str, Any]]:
    """Claims of a token with a valid signature and expiry, else None."""
    try:
        return jwt.decode(token, settings.identity_secret_key, algorithms=[settings.identity_algorithm])
    except JWTError:
        return None
