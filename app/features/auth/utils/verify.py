import secrets
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the naive DateTime expiry columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_expired(expires_at: datetime) -> bool:
    return utcnow() >= expires_at


def generate_verification_code() -> str:
    """Generate a 6-digit numeric code for email verification"""
    return "".join(str(secrets.randbelow(10)) for _ in range(6))


def generate_session_token() -> str:
    return secrets.token_urlsafe(32)
