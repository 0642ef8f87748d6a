import enum

from sqlalchemy import Boolean, Column, DateTime, Enum, String

from app.platform.db.base import BaseModel


class TokenType(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class VerificationToken(BaseModel):
    __tablename__ = "verification_tokens"

    token = Column(String(6), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    type = Column(Enum(TokenType), nullable=False, default=TokenType.EMAIL_VERIFICATION)
    expires_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<VerificationToken(email={self.email}, type={self.type}, expires_at={self.expires_at})>"


class VerificationSession(BaseModel):
    __tablename__ = "verification_sessions"

    session_token = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    used = Column(Boolean, default=False, nullable=False)

    def __repr__(self):
        return f"<VerificationSession(email={self.email}, used={self.used}, expires_at={self.expires_at})>"
