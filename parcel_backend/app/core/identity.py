"""
Identity verification.

The identity provider issues signed ID tokens to clients; the verifier turns
a bearer token into a verified identity (the subject's email).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from parcel_backend.app.core.jwt import decode_identity_token


class IdentityVerificationError(Exception):
    """Raised when a token is malformed, expired, badly signed or lacks an email."""


@dataclass(frozen=True)
class VerifiedIdentity:
    """Identity bound to the current request."""
    email: str
    claims: Dict[str, Any] = field(default_factory=dict)


class IdentityVerifier:
    """Interface of the identity provider client."""

    async def verify(self, token: str) -> VerifiedIdentity:
        raise NotImplementedError


class JwtIdentityVerifier(IdentityVerifier):
    """
    Verifies ID tokens locally with the configured key and algorithm.

    The token must carry an `email` claim; `sub` is accepted as a fallback
    when it looks like an address.
    """

    async def verify(self, token: str) -> VerifiedIdentity:
        payload = decode_identity_token(token)
        if payload is None:
            raise IdentityVerificationError("Invalid or expired token")

        email: Optional[str] = payload.get("email")
        if not email:
            subject = payload.get("sub")
            if isinstance(subject, str) and "@" in subject:
                email = subject
        if not email:
            raise IdentityVerificationError("Token carries no email claim")

        return VerifiedIdentity(email=email, claims=payload)


_default_verifier = JwtIdentityVerifier()


def get_identity_verifier() -> IdentityVerifier:
    """
    FastAPI dependency returning the identity verifier.

    Tests and alternative providers override this dependency.
    """
    return _default_verifier
