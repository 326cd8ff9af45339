import logging
import re
from typing import Optional
from urllib.parse import unquote

from fastapi import Depends, HTTPException, Request, WebSocket, status
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session

from lexify.core import security
from lexify.db.session import get_db
from lexify.models.user.user_model import User
from lexify.services.notification_service import Notifier
from lexify.services.quiz_generator import QuizGenerator, build_quiz_generator

log = logging.getLogger(__name__)

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_user_from_websocket",
    "get_quiz_generator",
    "get_notifier",
]


def _normalize_token_value(raw_token: Optional[str]) -> Optional[str]:
    """Return a clean JWT string from a header, cookie or query value.

    Accepts quoted values, percent-encoded cookies (``Bearer%20...``) and a
    case-insensitive ``Bearer`` prefix.
    """

    if raw_token is None:
        return None

    token = unquote(raw_token.strip().strip('"').strip("'"))
    if not token:
        return None

    match = re.match(r"^(bearer|token)[\s,:]+(.+)$", token, flags=re.IGNORECASE)
    if match:
        token = match.group(2)

    token = token.strip()
    return token or None


def _decode_user_from_token(token: Optional[str], db: Session) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
    )

    token = _normalize_token_value(token)
    if not token:
        log.warning("Authentication failed: no token provided.")
        raise credentials_exception

    try:
        payload = security.decode_access_token(token)
        user_id_str = payload.get("sub")
        if user_id_str is None:
            log.warning("Authentication failed: token has no 'sub'.")
            raise credentials_exception
        user_id = int(user_id_str)
    except ExpiredSignatureError:
        log.warning("Authentication failed: token expired.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="token_expired")
    except (JWTError, ValueError, TypeError):
        log.warning("Authentication failed: invalid or malformed token.")
        raise credentials_exception

    user = db.get(User, user_id)
    if user is None:
        log.warning("Authentication failed: user %s not found.", user_id)
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="inactive_user")

    return user


def _authenticate(candidates, db: Session) -> User:
    last_unauthorized_error: HTTPException | None = None

    for candidate in candidates:
        token = _normalize_token_value(candidate)
        if not token:
            continue
        try:
            return _decode_user_from_token(token, db)
        except HTTPException as exc:
            if exc.status_code != status.HTTP_401_UNAUTHORIZED:
                raise
            last_unauthorized_error = exc

    if last_unauthorized_error is not None:
        raise last_unauthorized_error

    return _decode_user_from_token(None, db)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    return _authenticate(
        (
            request.headers.get("Authorization"),
            request.cookies.get("access_token"),
            request.headers.get("X-Access-Token"),
            request.query_params.get("access_token"),
        ),
        db,
    )


def get_current_user_from_websocket(websocket: WebSocket, db: Session) -> User:
    """Authenticate a WebSocket handshake with the same token sources as HTTP."""

    return _authenticate(
        (
            websocket.headers.get("Authorization"),
            websocket.cookies.get("access_token"),
            websocket.headers.get("X-Access-Token"),
            websocket.query_params.get("access_token"),
            websocket.query_params.get("token"),
        ),
        db,
    )


def get_quiz_generator() -> QuizGenerator:
    return build_quiz_generator()


def get_notifier(db: Session = Depends(get_db)) -> Notifier:
    return Notifier(db)
