from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from werkzeug.security import check_password_hash, generate_password_hash

from errors import AuthError
from settings import JWT_ALGORITHM, JWT_SECRET_KEY, TOKEN_EXPIRATION_HOURS


bearer_scheme = HTTPBearer(auto_error=False)


# ----------------------------
# Passwords
# ----------------------------

def hash_password(password: str) -> str:
    # werkzeug salts every hash, two calls never give the same string
    return generate_password_hash(password)


def verify_password(password: str, stored: str) -> bool:
    if not stored:
        return False
    return check_password_hash(stored, password)


# ----------------------------
# Tokens
# ----------------------------

def create_token(user_id: int, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    token_data = {
        "id": user_id,
        "iat": now,
        "exp": now + timedelta(hours=TOKEN_EXPIRATION_HOURS),
    }
    return jwt.encode(token_data, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> int:
    """Return the user id carried by ``token`` or raise AuthError."""
    if not token:
        raise AuthError("Token not provided")
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthError("Invalid token")

    user_id = payload.get("id")
    if not isinstance(user_id, int):
        raise AuthError("Invalid token")
    return user_id


def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> int:
    if credentials is None:
        raise AuthError("Token not provided")
    return decode_token(credentials.credentials)
