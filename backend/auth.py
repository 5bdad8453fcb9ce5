# auth.py
import logging
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import Settings, get_settings

logger = logging.getLogger("examgen.auth")

bearer = HTTPBearer(auto_error=False)


def create_token(user_id: str, settings: Optional[Settings] = None) -> str:
    settings = settings or get_settings()
    return jwt.encode({"sub": user_id}, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def require_user(
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    settings: Settings = Depends(get_settings),
) -> str:
    if creds is None or creds.scheme.lower() != "bearer":
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication failed")
    if not settings.jwt_secret:
        logger.error("JWT_SECRET is not configured; rejecting request")
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication failed")
    try:
        payload = jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning("JWT decode failed: %s", e)
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication failed")
    uid = payload.get("sub") or payload.get("user_id")
    if not uid:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Authentication failed")
    return uid
