import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, HTTPException
from jose import JWTError, jwt

from marketplace.config import get_jwt_audience, get_jwt_secret

logger = logging.getLogger(__name__)


@dataclass
class CurrentUser:
    id: str


def _unauthorized():
    return HTTPException(status_code=401, detail="Unauthorized")


def decode_access_token(token: str) -> dict:
    secret = get_jwt_secret()
    if not secret:
        logger.error("SUPABASE_JWT_SECRET is not configured; rejecting token")
        raise _unauthorized()
    try:
        return jwt.decode(token, secret, algorithms=["HS256"], audience=get_jwt_audience())
    except JWTError:
        raise _unauthorized()


def get_current_user(authorization: Optional[str] = Header(None)) -> CurrentUser:
    if not authorization:
        raise _unauthorized()
    try:
        scheme, token = authorization.split()
    except ValueError:
        raise _unauthorized()
    if scheme.lower() != "bearer":
        raise _unauthorized()

    claims = decode_access_token(token)
    user_id = claims.get("sub")
    if not user_id:
        raise _unauthorized()
    return CurrentUser(id=str(user_id))
