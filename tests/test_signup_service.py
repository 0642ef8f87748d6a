from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.features.auth.models import User, VerificationSession
from app.features.auth.repositories.verification_repo import VerificationRepository
from app.features.auth.services.signup_service import GENERIC_SIGNUP_MESSAGE, SignupService
from app.platform.exceptions import InternalError, InvalidSession, RateLimitExceeded, UsernameTaken


@pytest.fixture
def service(db, limiter, outbox):
    return SignupService(db, limiter=limiter, email_sender=outbox)


async def profiled(service, outbox, email="ada@example.com"):
    assert await service.initiate_signup(email) == GENERIC_SIGNUP_MESSAGE
    session, _ = await service.verify_email(email, outbox.last_code(email))
    await service.complete_profile("Ada", "Lovelace", session.session_token)
    return session.session_token


@pytest.mark.asyncio
async def test_rate_limited_signup_raises(service, outbox):
    await service.initiate_signup("ada@example.com")

    with pytest.raises(RateLimitExceeded) as exc_info:
        await service.initiate_signup("ada@example.com")

    assert exc_info.value.retry_after == 60
    assert exc_info.value.locked is False


@pytest.mark.asyncio
async def test_session_is_consumed_once(db):
    repo = VerificationRepository(db)
    await repo.create_session("ada@example.com", "tok", timedelta(minutes=30))
    await db.commit()

    assert await repo.mark_session_used("tok") is True
    assert await repo.mark_session_used("tok") is False
    await db.commit()
    db.expunge_all()
    assert await repo.get_session("tok") is None


@pytest.mark.asyncio
async def test_expired_session_cannot_be_consumed(db):
    repo = VerificationRepository(db)
    await repo.create_session("ada@example.com", "tok", timedelta(seconds=-1))
    await db.commit()

    assert await repo.mark_session_used("tok") is False


@pytest.mark.asyncio
async def test_losing_the_session_race_creates_nothing(service, outbox, db, mocker):
    token = await profiled(service, outbox)
    mocker.patch.object(service.verifications, "mark_session_used", return_value=False)

    with pytest.raises(InvalidSession):
        await service.complete_account("ada", token)

    assert await db.scalar(select(func.count()).select_from(User)) == 0


@pytest.mark.asyncio
async def test_username_race_maps_to_username_taken(service, outbox, db, mocker):
    db.add(User(email="other@example.com", username="ada", is_verified=True))
    await db.commit()

    token = await profiled(service, outbox)
    real_lookup = service.identities.get_user_by_username
    # the pre-check misses the concurrent insert; the unique constraint catches it
    mocker.patch.object(
        service.identities,
        "get_user_by_username",
        side_effect=[None, await real_lookup("ada")],
    )

    with pytest.raises(UsernameTaken):
        await service.complete_account("ada", token)


@pytest.mark.asyncio
async def test_store_failure_during_account_creation(service, outbox, mocker):
    token = await profiled(service, outbox)
    mocker.patch.object(
        service.identities,
        "create_user",
        side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
    )

    with pytest.raises(InternalError):
        await service.complete_account("ada", token)


@pytest.mark.asyncio
async def test_store_failure_during_signup_still_answers_generically(service, outbox, mocker):
    mocker.patch.object(
        service.identities,
        "replace_pending_user",
        side_effect=OperationalError("INSERT", {}, Exception("database is locked")),
    )

    assert await service.initiate_signup("ada@example.com") == GENERIC_SIGNUP_MESSAGE
    assert outbox.sent == []


@pytest.mark.asyncio
async def test_display_name_defaults_to_full_name(service, outbox):
    token = await profiled(service, outbox)

    user = await service.complete_account("ada", token)

    assert user.display_name == "Ada Lovelace"
    assert user.is_verified is True


@pytest.mark.asyncio
async def test_explicit_display_name_is_kept(service, outbox):
    token = await profiled(service, outbox)

    user = await service.complete_account("ada", token, display_name="Countess")

    assert user.display_name == "Countess"


@pytest.mark.asyncio
async def test_existing_user_for_email_blocks_completion(service, outbox, db):
    token = await profiled(service, outbox)
    db.add(User(email="ada@example.com", username="ada_original", is_verified=True))
    await db.commit()

    with pytest.raises(InvalidSession):
        await service.complete_account("ada", token)

    assert await db.scalar(select(func.count()).select_from(User)) == 1
    db.expunge_all()
    stored = await db.scalar(
        select(VerificationSession).where(VerificationSession.session_token == token)
    )
    assert stored.used is False
