from app.features.auth.utils.security import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    issue_tokens,
)
from app.features.auth.utils.verify import generate_session_token, generate_verification_code

__all__ = [
    "create_access_token",
    "create_refresh_token",
    "decode_access_token",
    "decode_refresh_token",
    "issue_tokens",
    "generate_session_token",
    "generate_verification_code",
]
