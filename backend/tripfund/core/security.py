"""
Security utilities for JWT authentication and password hashing.
"""
from datetime import datetime, timedelta
from typing import Optional
import hashlib
import bcrypt
from jose import JWTError, jwt
from tripfund.core.config import settings


def _pre_hash_password(password: str) -> bytes:
    """
    SHA256 the password first so bcrypt's 72-byte input limit never
    truncates long passwords.
    """
    return hashlib.sha256(password.encode('utf-8')).digest()


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    return bcrypt.checkpw(_pre_hash_password(plain_password), hashed_password.encode('utf-8'))


def get_password_hash(password: str) -> str:
    """Hash a password for storage."""
    hashed = bcrypt.hashpw(_pre_hash_password(password), bcrypt.gensalt())
    return hashed.decode('utf-8')


def create_access_token(subject: str, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for a user."""
    expire = datetime.utcnow() + (expires_delta or timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS))
    payload = {"sub": subject, "user_id": user_id, "exp": expire}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token; None when invalid or expired."""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
