from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from app.features.auth.models.verification import TokenType, VerificationSession, VerificationToken
from app.features.auth.utils.verify import is_expired, utcnow


class VerificationRepository:
    """Verification codes and the sessions they unlock.

    Lookups expire lazily: an expired row is deleted and reported as missing.
    Methods flush; callers own the commit.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    # ── tokens ──────────────────────────────────

    async def create_token(
        self, email: str, code: str, token_type: TokenType, ttl: timedelta
    ) -> VerificationToken:
        token = VerificationToken(
            email=email,
            token=code,
            type=token_type,
            expires_at=utcnow() + ttl,
        )
        self.db.add(token)
        await self.db.flush()
        return token

    async def token_exists(self, code: str) -> bool:
        result = await self.db.execute(
            select(VerificationToken.id).where(VerificationToken.token == code)
        )
        return result.first() is not None

    async def get_token(self, code: str) -> Optional[VerificationToken]:
        result = await self.db.execute(
            select(VerificationToken).where(VerificationToken.token == code)
        )
        token = result.scalar_one_or_none()
        if token is None:
            return None
        if is_expired(token.expires_at):
            await self.delete_token(code)
            return None
        return token

    async def delete_token(self, code: str) -> int:
        result = await self.db.execute(
            delete(VerificationToken).where(VerificationToken.token == code)
        )
        return result.rowcount or 0

    async def delete_all_for_email(self, email: str) -> int:
        result = await self.db.execute(
            delete(VerificationToken).where(VerificationToken.email == email)
        )
        return result.rowcount or 0

    # ── sessions ────────────────────────────────

    async def create_session(
        self, email: str, session_token: str, ttl: timedelta
    ) -> VerificationSession:
        session = VerificationSession(
            email=email,
            session_token=session_token,
            expires_at=utcnow() + ttl,
            used=False,
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def get_session(self, session_token: str) -> Optional[VerificationSession]:
        result = await self.db.execute(
            select(VerificationSession).where(VerificationSession.session_token == session_token)
        )
        session = result.scalar_one_or_none()
        if session is None or session.used:
            return None
        if is_expired(session.expires_at):
            await self.db.execute(
                delete(VerificationSession).where(VerificationSession.id == session.id)
            )
            return None
        return session

    async def mark_session_used(self, session_token: str) -> bool:
        """Consume a session. Only one caller can ever get True for a token."""
        result = await self.db.execute(
            update(VerificationSession)
            .where(
                VerificationSession.session_token == session_token,
                VerificationSession.used.is_(False),
                VerificationSession.expires_at > utcnow(),
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1


def purge_expired_verifications(db: Session) -> int:
    """Delete expired codes and spent sessions. Used by the periodic sweep."""
    now = utcnow()
    tokens = db.execute(delete(VerificationToken).where(VerificationToken.expires_at <= now))
    sessions = db.execute(
        delete(VerificationSession).where(
            or_(VerificationSession.expires_at <= now, VerificationSession.used.is_(True))
        )
    )
    db.commit()
    return (tokens.rowcount or 0) + (sessions.rowcount or 0)
