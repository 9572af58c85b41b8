"""Management password hashing and the bearer tokens that carry requester claims.

A token is the :class:`RequesterClaims` payload plus ``exp``, signed with
``jwt_secret``. Verification hands back claims, never a raw payload, so the
API layer has a single "valid or not" answer.
"""

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from guest_portal.config import get_settings
from guest_portal.core.authorization import RequesterClaims

logger = logging.getLogger(__name__)

# bcrypt ignores everything past 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    """Hash a management user's password for ``mgmt_users.password_hash``."""
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a login password; a malformed stored hash never matches."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def create_access_token(claims: RequesterClaims) -> str:
    """Issue a signed token for a logged-in management user.

    Args:
        claims: Identity, role and departments of the user

    Returns:
        Encoded JWT expiring ``jwt_expire_minutes`` from now
    """
    settings = get_settings()
    payload = claims.to_token_payload()
    payload["exp"] = datetime.now(timezone.utc) + timedelta(minutes=settings.jwt_expire_minutes)
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> RequesterClaims | None:
    """Decode a bearer token back into requester claims.

    Returns:
        Claims, or None if the token is expired, forged or lacks claims
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.info(f"Auth: Token rejected: {e}")
        return None

    try:
        return RequesterClaims.from_token_payload(payload)
    except ValueError as e:
        logger.warning(f"Auth: {e}")
        return None
