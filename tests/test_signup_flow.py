from datetime import timedelta

import pytest
from sqlalchemy import delete, func, select, update

from app.features.auth.models import PendingUser, TokenType, User, VerificationSession, VerificationToken
from app.features.auth.repositories.verification_repo import VerificationRepository
from app.features.auth.services.signup_service import GENERIC_SIGNUP_MESSAGE
from app.features.auth.utils.verify import utcnow

AUTH = "/api/v1/auth"


async def start_signup(client, outbox, email):
    res = await client.post(f"{AUTH}/signup-email", json={"email": email})
    assert res.status_code == 200, res.text
    return outbox.last_code(email)


async def verify(client, email, code):
    return await client.post(f"{AUTH}/verify-email", json={"email": email, "token": code})


async def verified_session(client, outbox, email):
    code = await start_signup(client, outbox, email)
    res = await verify(client, email, code)
    assert res.status_code == 200, res.text
    return res.json()["data"]["verificationSession"]


async def profiled_session(client, outbox, email, first="Ada", last="Lovelace"):
    session = await verified_session(client, outbox, email)
    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": first, "lastName": last, "verificationSession": session},
    )
    assert res.status_code == 200, res.text
    return session


def other_code(code: str) -> str:
    return f"{(int(code) + 1) % 1_000_000:06d}"


@pytest.mark.asyncio
async def test_full_signup_flow(client, outbox):
    res = await client.post(f"{AUTH}/signup-email", json={"email": "Ada@Example.com"})
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "success"
    assert body["message"] == GENERIC_SIGNUP_MESSAGE

    assert len(outbox.sent) == 1
    email, code = outbox.sent[0]
    assert email == "ada@example.com"
    assert len(code) == 6 and code.isdigit()

    res = await verify(client, "ada@example.com", code)
    assert res.status_code == 200
    data = res.json()["data"]
    session = data["verificationSession"]
    assert session
    assert data["pendingUser"] == {"firstName": None, "lastName": None}

    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": " Ada ", "lastName": "Lovelace", "verificationSession": session},
    )
    assert res.status_code == 200
    assert res.json()["data"] == {"firstName": "Ada", "lastName": "Lovelace"}

    res = await client.post(
        f"{AUTH}/complete-account",
        json={"username": "Ada_L", "verificationSession": session, "bio": "Analyst"},
    )
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["user"]["email"] == "ada@example.com"
    assert data["user"]["username"] == "ada_l"
    assert data["user"]["displayName"] == "Ada Lovelace"
    assert data["tokenType"] == "bearer"

    res = await client.get(
        f"{AUTH}/user", headers={"Authorization": f"Bearer {data['accessToken']}"}
    )
    assert res.status_code == 200
    user = res.json()["data"]
    assert user["firstName"] == "Ada"
    assert user["bio"] == "Analyst"
    assert user["isVerified"] is True


@pytest.mark.asyncio
async def test_account_creation_clears_signup_state(client, outbox, db):
    session = await profiled_session(client, outbox, "ada@example.com")
    res = await client.post(
        f"{AUTH}/complete-account", json={"username": "ada", "verificationSession": session}
    )
    assert res.status_code == 201

    assert await db.scalar(select(PendingUser).where(PendingUser.email == "ada@example.com")) is None
    assert await db.scalar(select(VerificationToken).where(VerificationToken.email == "ada@example.com")) is None
    stored = await db.scalar(
        select(VerificationSession).where(VerificationSession.session_token == session)
    )
    assert stored.used is True


@pytest.mark.asyncio
async def test_verification_code_is_single_use(client, outbox):
    code = await start_signup(client, outbox, "ada@example.com")

    assert (await verify(client, "ada@example.com", code)).status_code == 200

    res = await verify(client, "ada@example.com", code)
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid or expired verification token"


@pytest.mark.asyncio
async def test_expired_code_is_rejected(client, outbox, db):
    code = await start_signup(client, outbox, "ada@example.com")
    await db.execute(
        update(VerificationToken)
        .where(VerificationToken.token == code)
        .values(expires_at=utcnow() - timedelta(seconds=1))
    )
    await db.commit()

    res = await verify(client, "ada@example.com", code)
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid or expired verification token"

    # expired codes are removed on lookup
    db.expunge_all()
    assert await db.scalar(select(VerificationToken).where(VerificationToken.token == code)) is None


@pytest.mark.asyncio
async def test_code_is_bound_to_its_email(client, outbox):
    code = await start_signup(client, outbox, "ada@example.com")

    res = await verify(client, "eve@example.com", code)
    assert res.status_code == 400

    assert (await verify(client, "ada@example.com", code)).status_code == 200


@pytest.mark.asyncio
async def test_new_signup_supersedes_previous_code(client, outbox, clock):
    first = await start_signup(client, outbox, "ada@example.com")
    clock.advance(61)
    second = await start_signup(client, outbox, "ada@example.com")

    if first != second:
        assert (await verify(client, "ada@example.com", first)).status_code == 400
    assert (await verify(client, "ada@example.com", second)).status_code == 200


@pytest.mark.asyncio
async def test_verify_without_pending_user(client, outbox, db):
    code = await start_signup(client, outbox, "ada@example.com")
    await db.execute(delete(PendingUser).where(PendingUser.email == "ada@example.com"))
    await db.commit()

    res = await verify(client, "ada@example.com", code)
    assert res.status_code == 400
    assert res.json()["message"] == "Pending user not found"


@pytest.mark.asyncio
async def test_malformed_code_is_rejected_before_lookup(client, outbox):
    await start_signup(client, outbox, "ada@example.com")

    res = await verify(client, "ada@example.com", "12ab56")
    assert res.status_code == 422
    assert res.json()["status"] == "error"


@pytest.mark.asyncio
async def test_invalid_email_is_rejected(client, outbox):
    res = await client.post(f"{AUTH}/signup-email", json={"email": "not-an-email"})
    assert res.status_code == 422
    assert outbox.sent == []


@pytest.mark.asyncio
async def test_signup_does_not_reveal_registered_emails(client, outbox, clock, signup):
    await signup("ada@example.com", "ada")
    sent_before = len(outbox.sent)
    clock.advance(61)

    registered = await client.post(f"{AUTH}/signup-email", json={"email": "ada@example.com"})
    unknown = await client.post(f"{AUTH}/signup-email", json={"email": "new@example.com"})

    assert registered.status_code == unknown.status_code == 200
    assert registered.json() == unknown.json()
    # only the unknown address receives a code
    assert [to for to, _ in outbox.sent[sent_before:]] == ["new@example.com"]


@pytest.mark.asyncio
async def test_signup_succeeds_when_delivery_fails(client, outbox):
    outbox.succeed = False

    res = await client.post(f"{AUTH}/signup-email", json={"email": "ada@example.com"})
    assert res.status_code == 200
    assert res.json()["message"] == GENERIC_SIGNUP_MESSAGE


@pytest.mark.asyncio
async def test_signup_cooldown(client, outbox, clock):
    await start_signup(client, outbox, "ada@example.com")

    res = await client.post(f"{AUTH}/signup-email", json={"email": "ada@example.com"})
    assert res.status_code == 429
    assert res.headers["Retry-After"] == "60"
    assert res.json()["data"]["retryAfter"] == 60
    assert len(outbox.sent) == 1

    clock.advance(61)
    await start_signup(client, outbox, "ada@example.com")


@pytest.mark.asyncio
async def test_signup_attempts_capped_per_window(client, outbox, clock):
    for _ in range(5):
        await start_signup(client, outbox, "ada@example.com")
        clock.advance(61)

    res = await client.post(f"{AUTH}/signup-email", json={"email": "ada@example.com"})
    assert res.status_code == 429
    assert len(outbox.sent) == 5


@pytest.mark.asyncio
async def test_verify_lockout_after_repeated_failures(client, outbox):
    code = await start_signup(client, outbox, "ada@example.com")
    wrong = other_code(code)

    for _ in range(5):
        res = await verify(client, "ada@example.com", wrong)
        assert res.status_code == 400

    res = await verify(client, "ada@example.com", code)
    assert res.status_code == 429
    body = res.json()
    assert body["data"]["locked"] is True
    assert body["data"]["retryAfter"] == 900
    assert res.headers["Retry-After"] == "900"


@pytest.mark.asyncio
async def test_verify_lockout_lifts(client, outbox, clock):
    code = await start_signup(client, outbox, "ada@example.com")
    for _ in range(5):
        await verify(client, "ada@example.com", other_code(code))

    clock.advance(901)
    assert (await verify(client, "ada@example.com", code)).status_code == 200


@pytest.mark.asyncio
async def test_complete_profile_with_unknown_session(client):
    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": "Ada", "lastName": "Lovelace", "verificationSession": "nope"},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid session"


@pytest.mark.asyncio
async def test_complete_profile_only_once(client, outbox):
    session = await profiled_session(client, outbox, "ada@example.com")

    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": "Eve", "lastName": "Moneypenny", "verificationSession": session},
    )
    assert res.status_code == 400


@pytest.mark.asyncio
async def test_blank_names_are_rejected(client, outbox):
    session = await verified_session(client, outbox, "ada@example.com")

    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": "   ", "lastName": "Lovelace", "verificationSession": session},
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_expired_session_is_rejected(client, outbox, db):
    session = await verified_session(client, outbox, "ada@example.com")
    await db.execute(
        update(VerificationSession)
        .where(VerificationSession.session_token == session)
        .values(expires_at=utcnow() - timedelta(seconds=1))
    )
    await db.commit()

    res = await client.post(
        f"{AUTH}/complete-profile",
        json={"firstName": "Ada", "lastName": "Lovelace", "verificationSession": session},
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid session"


@pytest.mark.asyncio
async def test_complete_account_requires_profile(client, outbox):
    session = await verified_session(client, outbox, "ada@example.com")

    res = await client.post(
        f"{AUTH}/complete-account", json={"username": "ada", "verificationSession": session}
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid session"


@pytest.mark.asyncio
async def test_session_is_single_use(client, outbox):
    session = await profiled_session(client, outbox, "ada@example.com")

    first = await client.post(
        f"{AUTH}/complete-account", json={"username": "ada", "verificationSession": session}
    )
    assert first.status_code == 201

    second = await client.post(
        f"{AUTH}/complete-account", json={"username": "ada2", "verificationSession": session}
    )
    assert second.status_code == 400
    assert second.json()["message"] == "Invalid session"


@pytest.mark.asyncio
async def test_username_taken_keeps_session_usable(client, outbox, signup, db):
    await signup("ada@example.com", "ada")
    session = await profiled_session(client, outbox, "eve@example.com", "Eve", "Smith")

    res = await client.post(
        f"{AUTH}/complete-account", json={"username": "ADA", "verificationSession": session}
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Username is already taken"

    res = await client.post(
        f"{AUTH}/complete-account", json={"username": "eve", "verificationSession": session}
    )
    assert res.status_code == 201

    users = (await db.execute(select(User.username).order_by(User.username))).scalars().all()
    assert users == ["ada", "eve"]


@pytest.mark.asyncio
@pytest.mark.parametrize("username", ["ab", "has space", "émile", "x" * 31, "dash-name"])
async def test_invalid_usernames(client, outbox, username):
    session = await profiled_session(client, outbox, "ada@example.com")

    res = await client.post(
        f"{AUTH}/complete-account", json={"username": username, "verificationSession": session}
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_refresh_issues_new_access_token(client, signup):
    account = await signup("ada@example.com", "ada")

    res = await client.post(f"{AUTH}/refresh", json={"refreshToken": account["refreshToken"]})
    assert res.status_code == 200
    access = res.json()["data"]["accessToken"]

    res = await client.get(f"{AUTH}/user", headers={"Authorization": f"Bearer {access}"})
    assert res.status_code == 200
    assert res.json()["data"]["username"] == "ada"


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(client, signup):
    account = await signup("ada@example.com", "ada")

    res = await client.post(f"{AUTH}/refresh", json={"refreshToken": account["accessToken"]})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_protected_route_requires_token(client):
    res = await client.get(f"{AUTH}/user")
    assert res.status_code == 401
    assert res.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_password_reset_code_cannot_verify_email(client, outbox, db, limiter):
    signup_code = await start_signup(client, outbox, "ada@example.com")
    reset_code = other_code(signup_code)
    await VerificationRepository(db).create_token(
        "ada@example.com", reset_code, TokenType.PASSWORD_RESET, timedelta(hours=1)
    )
    await db.commit()

    res = await verify(client, "ada@example.com", reset_code)
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid or expired verification token"

    assert await db.scalar(select(func.count()).select_from(VerificationSession)) == 0

    # the rejected code counted as the first of five failures
    for _ in range(4):
        limiter.record_verify_attempt("ada@example.com", success=False)
    assert limiter.check_verify_rate_limit("ada@example.com").locked
