"""Signed bearer tokens asserting ``{userId, role}`` for a limited time."""

from datetime import timedelta
from django.conf import settings
from django.utils import timezone
from jose import JWTError, jwt

from registry.exceptions import AuthenticationError


def create_access_token(account, expires_delta: timedelta = None) -> str:
    """Create a signed access token for an account."""
    issued_at = timezone.now()
    expire = issued_at + (expires_delta or timedelta(hours=settings.JWT_EXPIRATION_HOURS))
    claims = {
        "userId": account.pk,
        "role": account.role,
        "iat": int(issued_at.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Verify a token's signature and expiry and return its claims.

    Raises:
        AuthenticationError: the token is malformed, tampered with or expired
    """
    try:
        claims = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Invalid token") from e

    if "userId" not in claims or "role" not in claims:
        raise AuthenticationError("Invalid token")
    return claims
