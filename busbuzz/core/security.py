# File: busbuzz/core/security.py
from dataclasses import dataclass
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Iterable, Optional
import time, jwt
from sqlalchemy.orm import Session
from passlib.hash import bcrypt_sha256
from busbuzz.core.config import settings
from busbuzz.core.errors import Forbidden, Unauthenticated
from busbuzz.db.session import get_db
from busbuzz.models.user import User, UserRole

ALGO = "HS256"
bearer = HTTPBearer(auto_error=False)
_hasher = bcrypt_sha256.using(rounds=settings.bcrypt_rounds)


@dataclass(frozen=True)
class Principal:
    user_id: int
    role: str
    name: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin.value


def hash_password(raw: str) -> str:
    return _hasher.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    try:
        return _hasher.verify(raw, hashed)
    except (ValueError, TypeError):
        return False

def make_token(user_id: int, role: str, ttl: Optional[int] = None) -> str:
    now = int(time.time())
    ttl = ttl if ttl is not None else settings.access_token_ttl_seconds
    payload = {"sub": str(user_id), "role": role, "iat": now, "exp": now + ttl}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except jwt.PyJWTError:
        raise Unauthenticated("Invalid token")

def authenticate(token: Optional[str], db: Session) -> Principal:
    """Resolve a bearer token to the caller; the user must still exist."""
    if not token:
        raise Unauthenticated("Not authenticated")
    payload = decode_token(token)
    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthenticated("Invalid token payload")
    user = db.get(User, user_id)
    if not user:
        raise Unauthenticated("Invalid token")
    return Principal(user_id=user.id, role=user.role.value, name=user.name)

def authorize(required_roles: Iterable[str], actual_role: str) -> None:
    # exact allow-list match, no role hierarchy
    allowed = [r.value if isinstance(r, UserRole) else r for r in required_roles]
    if allowed and actual_role not in allowed:
        raise Forbidden("Access denied. Insufficient privileges.")

def get_current_principal(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
                          db: Session = Depends(get_db)) -> Principal:
    return authenticate(creds.credentials if creds else None, db)

def require_role(*roles):
    def _dep(principal: Principal = Depends(get_current_principal)) -> Principal:
        authorize(roles, principal.role)
        return principal
    return _dep
