# Fichier: lexify/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Any, Union

from jose import jwt

from lexify.core.config import settings

ALGORITHM = "HS256"


def create_access_token(subject: Union[str, Any], expires_delta: timedelta | None = None) -> str:
    """Sign a JWT whose ``sub`` claim identifies the user."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    """Return the token claims; raises ``jose.JWTError`` subclasses on failure."""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
