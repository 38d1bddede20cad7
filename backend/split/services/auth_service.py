"""Authentication helpers: bcrypt passwords, hashed API keys and one-time tokens."""

import hashlib
import secrets
from datetime import datetime, timezone

import bcrypt
from sqlalchemy import delete, or_
from sqlalchemy.orm import Session

from split.models.auth_token import AuthToken

API_KEY_PREFIXES = {"live": "split_live_", "test": "split_test_"}


def hash_password(password: str) -> str:
    """Hash a plaintext password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Check a plaintext password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def sha256_hex(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_api_key(key_type: str = "live") -> tuple[str, str, str]:
    """Return (plaintext key, display prefix, sha256 hash).

    Only the hash is stored; the plaintext is shown to the user once.
    """
    prefix = API_KEY_PREFIXES[key_type]
    key = prefix + secrets.token_hex(24)
    return key, key[: len(prefix) + 6], sha256_hex(key)


def looks_like_api_key(value: str) -> bool:
    return any(value.startswith(prefix) for prefix in API_KEY_PREFIXES.values())


def generate_token() -> tuple[str, str]:
    """Return (plaintext token, sha256 hash) for email/password-reset links."""
    token = secrets.token_urlsafe(32)
    return token, sha256_hex(token)


def purge_expired_tokens(db: Session, now: datetime | None = None) -> int:
    """Delete auth tokens that are expired or already used."""
    now = now or datetime.now(timezone.utc)
    result = db.execute(
        delete(AuthToken)
        .where(or_(AuthToken.expires_at < now, AuthToken.used_at.is_not(None)))
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
