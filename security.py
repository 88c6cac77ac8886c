"""
Credentials

Password hashing (passlib/bcrypt) and session tokens (JWT) for buyers and sellers,
plus the FastAPI dependency that guards mutating endpoints.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel

from config import get_settings
from errors import Unauthorized

# Bearer scheme; missing header is reported by get_current_subject, not FastAPI
security = HTTPBearer(auto_error=False)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


class TokenSubject(BaseModel):
    """Identity extracted from a session token"""
    id: str
    role: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, digest: str) -> bool:
    try:
        return pwd_context.verify(password, digest)
    except ValueError:
        # malformed or unknown hash format
        return False


def issue_token(subject_id: str, role: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": str(subject_id),
        "role": role,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.token_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> TokenSubject:
    """
    Decode and validate a session token.

    Raises:
        Unauthorized: token is malformed, badly signed, expired, or lacks an identity
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        if "expired" in str(e).lower():
            raise Unauthorized("Token has expired")
        raise Unauthorized("Invalid token")

    subject_id = payload.get("id")
    role = payload.get("role")
    if not subject_id or not role:
        raise Unauthorized("Invalid token payload")

    return TokenSubject(id=subject_id, role=role)


async def get_current_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> TokenSubject:
    """
    Dependency that resolves the caller from the bearer token.

    Usage:
        @app.post("/checkout/{user_id}")
        def checkout(user_id: str, subject: TokenSubject = Depends(get_current_subject)):
            ...
    """
    if not credentials:
        raise Unauthorized("Authentication required")
    return verify_token(credentials.credentials)
