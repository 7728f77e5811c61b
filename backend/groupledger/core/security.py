"""
Bearer token helpers for the acting-member context.

Tokens are issued by the auth collaborator; this service only verifies them
and reads the member id out of the `user_id` claim.
"""
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from groupledger.core.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        return None


def member_id_from_token(token: str) -> Optional[int]:
    """Return the acting member id carried by a token, or None if invalid."""
    payload = decode_access_token(token)
    if not payload:
        return None
    user_id = payload.get("user_id")
    try:
        return int(user_id)
    except (TypeError, ValueError):
        return None
