from datetime import timedelta
from typing import Callable, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.pending_user import PendingUser
from app.features.auth.models.user import User
from app.features.auth.models.verification import TokenType, VerificationSession
from app.features.auth.repositories.identity_repo import IdentityRepository
from app.features.auth.repositories.verification_repo import VerificationRepository
from app.features.auth.services.email_service import send_verification_code
from app.features.auth.utils.verify import (
    generate_session_token,
    generate_verification_code,
    utcnow,
)
from app.platform.config import settings
from app.platform.exceptions import (
    InternalError,
    InvalidOrExpiredToken,
    InvalidSession,
    PendingUserNotFound,
    RateLimitExceeded,
    UsernameTaken,
)
from app.platform.logger import get_logger
from app.platform.utils.rate_limit import RateLimiter, rate_limiter

logger = get_logger(__name__)

GENERIC_SIGNUP_MESSAGE = (
    "If your email is valid, you'll receive a verification code shortly. "
    "Please check your inbox."
)

CODE_GENERATION_ATTEMPTS = 10


class SignupService:
    """Four-step email signup.

    signup-email -> verify-email -> complete-profile -> complete-account.
    Nothing is kept between calls: progress lives in the pending user, the
    verification code and the verification session, all keyed by email.
    From step three on, identity is always taken from the session, never
    from the request body.
    """

    def __init__(
        self,
        db: AsyncSession,
        limiter: RateLimiter = rate_limiter,
        email_sender: Callable[[str, str], bool] = send_verification_code,
    ):
        self.db = db
        self.identities = IdentityRepository(db)
        self.verifications = VerificationRepository(db)
        self.limiter = limiter
        self.email_sender = email_sender

    async def initiate_signup(self, email: str) -> str:
        email = email.strip().lower()

        decision = self.limiter.check_signup_rate_limit(email)
        if not decision.allowed:
            logger.warning(f"Signup rate limited - email: {email}, retry_after: {decision.retry_after}")
            raise RateLimitExceeded(
                retry_after=decision.retry_after,
                message="Too many signup attempts. Please try again later.",
            )
        self.limiter.record_signup_attempt(email)

        try:
            existing = await self.identities.get_user_by_email(email)
            if existing is not None:
                logger.info(f"Signup requested for registered email: {email}")
                return GENERIC_SIGNUP_MESSAGE

            await self.verifications.delete_all_for_email(email)
            await self.identities.replace_pending_user(email)

            code = await self._unused_code()
            await self.verifications.create_token(
                email,
                code,
                TokenType.EMAIL_VERIFICATION,
                timedelta(hours=settings.VERIFICATION_TOKEN_TTL_HOURS),
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Signup for {email} failed in storage: {e}")
            return GENERIC_SIGNUP_MESSAGE

        sent = await run_in_threadpool(self.email_sender, email, code)
        if not sent:
            logger.error(f"Verification code dispatch failed - email: {email}")

        return GENERIC_SIGNUP_MESSAGE

    async def verify_email(self, email: str, code: str) -> tuple[VerificationSession, PendingUser]:
        email = email.strip().lower()

        decision = self.limiter.check_verify_rate_limit(email)
        if not decision.allowed:
            logger.warning(f"Verification locked - email: {email}, retry_after: {decision.retry_after}")
            raise RateLimitExceeded(
                retry_after=decision.retry_after,
                locked=decision.locked,
                message="Too many failed verification attempts. Please try again later.",
            )

        token = await self.verifications.get_token(code)
        if (
            token is None
            or token.type != TokenType.EMAIL_VERIFICATION
            or token.email != email
            or token.expires_at <= utcnow()
        ):
            # commits a lazy expiry deletion, if any
            await self.db.commit()
            self.limiter.record_verify_attempt(email, success=False)
            raise InvalidOrExpiredToken()

        pending = await self.identities.get_pending_user(token.email)
        if pending is None:
            self.limiter.record_verify_attempt(email, success=False)
            raise PendingUserNotFound()

        await self.identities.mark_pending_verified(pending)
        session = await self.verifications.create_session(
            token.email,
            generate_session_token(),
            timedelta(minutes=settings.VERIFICATION_SESSION_TTL_MINUTES),
        )
        await self.verifications.delete_token(code)
        await self.db.commit()

        self.limiter.record_verify_attempt(email, success=True)
        logger.info(f"Email verified: {email}")
        return session, pending

    async def complete_profile(self, first_name: str, last_name: str, session_token: str) -> PendingUser:
        session = await self.verifications.get_session(session_token)
        if session is None:
            await self.db.commit()
            raise InvalidSession()

        pending = await self.identities.get_pending_user(session.email)
        if pending is None or not pending.is_verified:
            raise InvalidSession()
        if pending.profile_complete:
            raise InvalidSession()

        await self.identities.update_pending_profile(pending, first_name, last_name)
        await self.db.commit()
        return pending

    async def complete_account(
        self,
        username: str,
        session_token: str,
        display_name: Optional[str] = None,
        bio: Optional[str] = None,
        location: Optional[str] = None,
        gender: Optional[str] = None,
    ) -> User:
        username = username.strip().lower()

        session = await self.verifications.get_session(session_token)
        if session is None:
            await self.db.commit()
            raise InvalidSession()
        email = session.email

        pending = await self.identities.get_pending_user(email)
        if pending is None or not pending.is_verified or not pending.profile_complete:
            raise InvalidSession()

        if await self.identities.get_user_by_email(email) is not None:
            logger.warning(f"Account completion replay for existing email: {email}")
            raise InvalidSession()

        if await self.identities.get_user_by_username(username) is not None:
            raise UsernameTaken()

        try:
            user = await self.identities.create_user(
                email=pending.email,
                username=username,
                first_name=pending.first_name,
                last_name=pending.last_name,
                display_name=display_name or f"{pending.first_name} {pending.last_name}".strip(),
                bio=bio,
                location=location,
                gender=gender,
                is_verified=True,
            )
            if not await self.verifications.mark_session_used(session_token):
                await self.db.rollback()
                raise InvalidSession()
            await self.identities.delete_pending_user(email)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            if await self.identities.get_user_by_username(username) is not None:
                raise UsernameTaken()
            raise InvalidSession()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Account creation for {email} failed: {e}")
            raise InternalError("Failed to complete account setup")

        logger.info(f"Account created - user: {user.id}, username: {user.username}")
        return user

    async def _unused_code(self) -> str:
        for _ in range(CODE_GENERATION_ATTEMPTS):
            code = generate_verification_code()
            if not await self.verifications.token_exists(code):
                return code
        raise SQLAlchemyError("Could not allocate a unique verification code")
