"""
JWT token utilities.

Tokens are issued elsewhere; this service only validates them. The
encoder is kept for tooling and tests that need a signed token.
"""

from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from franchise_backend.app.core.config import settings
from franchise_backend.app.core.timeutils import utcnow


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token.

    Example payload:
        {
            "sub": "coordinator.valencia",
            "user_id": 12,
            "role": "COORDINATOR",
            "franchise_id": 3,
            "exp": 1234567890
        }
    """
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """
    Decode and validate a JWT access token.

    Returns:
        Decoded payload if the signature and expiry are valid, None otherwise
    """
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
