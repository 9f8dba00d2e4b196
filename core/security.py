# core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from core.config import settings
from core.database import get_storage
from core.errors import Unauthenticated
from core.storage import Storage
from models.models import User


# ========================================
# 🔑 JWT / APP CONFIG
# ========================================
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = settings.ALGORITHM or "HS256"
ACCESS_TOKEN_EXPIRE_DAYS = settings.ACCESS_TOKEN_EXPIRE_DAYS

bearer_scheme = HTTPBearer(auto_error=False)


# ========================================
# 🔐 Password Hashing (Argon2)
# ========================================
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash password using Argon2."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password using Argon2."""
    return pwd_context.verify(plain_password, hashed_password)


# ========================================
# 🔑 Token Helpers
# ========================================
def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(days=ACCESS_TOKEN_EXPIRE_DAYS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def create_token_for_user(user: User, expires_delta: Optional[timedelta] = None) -> str:
    return create_access_token({"sub": user.id}, expires_delta)


def decode_token(token: str) -> dict:
    """Decode JWT and return payload."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthenticated("Token expired")
    except JWTError:
        raise Unauthenticated("Invalid token")


def resolve_token(token: Optional[str], storage: Storage) -> User:
    """
    Resolve a bearer token to a live, active user.
    A token whose user was deactivated or removed is invalid.
    """
    if not token:
        raise Unauthenticated("Access token required")

    payload = decode_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthenticated("Invalid token payload")

    user = storage.get(User, user_id)
    if not user or not user.is_active:
        raise Unauthenticated("User not found or inactive")
    return user


# ========================================
# 👤 Authentication dependency
# ========================================
def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    storage: Storage = Depends(get_storage),
) -> User:
    """Extract user from the Authorization header and load the full record."""
    token = credentials.credentials if credentials else None
    return resolve_token(token, storage)
