from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import Request

from core.config import logger, JWT_SECRET, JWT_ISSUER, JWT_EXPIRES_HOURS
from core.errors import Unauthorized
from models.user import Role


@dataclass(frozen=True)
class AuthUser:
    """Caller identity decoded from the bearer token"""
    id: str
    role: Role
    email: Optional[str] = None


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_access_token(user_id: str, role: str, email: Optional[str] = None) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=JWT_EXPIRES_HOURS)).timestamp()),
        "iss": JWT_ISSUER,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def _token_from_request(request: Request) -> Optional[str]:
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    if not auth_header:
        return None
    # Accept both "Bearer <token>" and a bare token
    if auth_header.lower().startswith("bearer "):
        return auth_header.split(" ", 1)[1].strip() or None
    return auth_header.strip() or None


def decode_access_token(token: str) -> AuthUser:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=["HS256"], issuer=JWT_ISSUER)
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except jwt.InvalidTokenError as ex:
        logger.warning(f"Token verification failed: {ex}")
        raise Unauthorized("Invalid token")

    uid = payload.get("sub")
    try:
        role = Role(payload.get("role"))
    except ValueError:
        raise Unauthorized("Invalid token")
    if not uid:
        raise Unauthorized("Invalid token")
    return AuthUser(id=uid, role=role, email=payload.get("email"))


def get_current_user(request: Request) -> AuthUser:
    """FastAPI dependency: resolve the caller once per request or fail with 401"""
    token = _token_from_request(request)
    if not token:
        raise Unauthorized("No token provided, authorization denied")
    return decode_access_token(token)
