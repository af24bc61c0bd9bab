"""
Access control.

Passwords are hashed with bcrypt through passlib. Bearer tokens are JWTs
carrying ``user_id``, ``email`` and ``role``. Routes compose two
dependencies: ``get_claims`` verifies the token, ``require_admin`` adds the
role check on top of it.
"""
from datetime import timedelta
from typing import Optional

from fastapi import Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from config import Settings, get_settings
from database import utcnow
from errors import Forbidden, Unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class Claims(BaseModel):
    user_id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def hash_password(p: str) -> str:
    return pwd_context.hash(p)


def verify_password(p: str, h: str) -> bool:
    try:
        return pwd_context.verify(p, h)
    except ValueError:
        # malformed or unknown hash format
        return False


def create_token(user: dict, settings: Settings) -> str:
    exp = utcnow() + timedelta(minutes=settings.jwt_expire_minutes)
    payload = {
        "user_id": user["user_id"],
        "email": user["email"],
        "role": user.get("role", "customer"),
        "exp": exp,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def decode_token(token: str, settings: Settings) -> Claims:
    try:
        data = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
        return Claims(**data)
    except (JWTError, ValidationError):
        raise Unauthorized("Invalid or expired token")


def get_claims(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> Claims:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise Unauthorized("Missing Bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise Unauthorized("Missing Bearer token")
    return decode_token(token, settings)


def require_admin(claims: Claims = Depends(get_claims)) -> Claims:
    if not claims.is_admin:
        raise Forbidden("Admin privileges required")
    return claims
