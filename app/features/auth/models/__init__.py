from app.features.auth.models.pending_user import PendingUser
from app.features.auth.models.user import User
from app.features.auth.models.verification import TokenType, VerificationSession, VerificationToken

__all__ = [
    "User",
    "PendingUser",
    "TokenType",
    "VerificationToken",
    "VerificationSession",
]
