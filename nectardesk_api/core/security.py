"""
Security utilities: password hashing, JWT tokens and API keys
"""
from typing import Optional, Dict, Any, Tuple
from datetime import datetime, timedelta
import hashlib
import hmac
import logging
import secrets
from jose import jwt, JWTError
from passlib.context import CryptContext

from .config import settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "ca_"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__default_rounds=settings.password_hash_rounds
)


def hash_password(password: str) -> str:
    """Hash a plain password"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against its hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        logger.warning("Stored password hash could not be identified")
        return False


def create_access_token(
    user_id: str,
    email: str,
    organization_id: Optional[str],
    role: str,
    is_master_admin: bool = False,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed access token for a user"""
    now = datetime.utcnow()
    expire = now + (expires_delta or timedelta(hours=settings.jwt_expiry_hours))
    to_encode = {
        "sub": str(user_id),
        "email": email,
        "organization_id": str(organization_id) if organization_id else None,
        "role": role,
        "is_master_admin": bool(is_master_admin),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """Decode and verify an access token"""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise AuthenticationError("Invalid or expired token")

    if not payload.get("sub"):
        raise AuthenticationError("Invalid token payload")
    return payload


def hash_secret(value: str) -> str:
    """One-way hash for API key secrets and reset tokens"""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def secrets_match(value: str, expected_hash: Optional[str]) -> bool:
    if not expected_hash:
        return False
    return hmac.compare_digest(hash_secret(value), expected_hash)


def generate_api_key() -> Tuple[str, str]:
    """Generate a (prefix, secret) pair; the full key is prefix_secret"""
    prefix = f"{API_KEY_PREFIX}{secrets.token_hex(4)}"
    secret = secrets.token_hex(32)
    return prefix, secret


def split_api_key(raw_key: str) -> Tuple[str, str]:
    """Split a prefix_secret API key into its parts"""
    if not raw_key or not raw_key.startswith(API_KEY_PREFIX):
        raise AuthenticationError("Invalid API key format")
    prefix, sep, secret = raw_key.rpartition("_")
    if not sep or not secret or prefix == API_KEY_PREFIX.rstrip("_"):
        raise AuthenticationError("Invalid API key format")
    return prefix, secret


def generate_reset_token() -> str:
    return secrets.token_hex(32)
