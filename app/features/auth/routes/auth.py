from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.auth.models.user import User
from app.features.auth.repositories.identity_repo import IdentityRepository
from app.features.auth.schemas.signup import (
    CompleteAccountRequest,
    CompleteAccountResponse,
    CompleteProfileRequest,
    CompleteProfileResponse,
    CreatedUserOut,
    PendingUserOut,
    RefreshTokenRequest,
    SignupEmailRequest,
    UserResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from app.features.auth.services.email_service import send_verification_code
from app.features.auth.services.signup_service import SignupService
from app.features.auth.utils.security import (
    create_access_token,
    decode_access_token,
    decode_refresh_token,
    issue_tokens,
)
from app.platform.db.session import get_db
from app.platform.exceptions import AuthenticationError
from app.platform.response import api_response
from app.platform.utils.rate_limit import RateLimiter, get_rate_limiter

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)


def get_email_sender():
    return send_verification_code


def get_signup_service(
    db: AsyncSession = Depends(get_db),
    limiter: RateLimiter = Depends(get_rate_limiter),
    email_sender=Depends(get_email_sender),
) -> SignupService:
    return SignupService(db, limiter=limiter, email_sender=email_sender)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user.
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    try:
        payload = decode_access_token(credentials.credentials)
    except ValueError as e:
        raise AuthenticationError(str(e))

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError()

    user = await IdentityRepository(db).get_user(user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


@router.post(
    "/signup-email",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Start email signup",
    description="Send a 6-digit verification code to the given email address",
)
async def signup_email(
    request: SignupEmailRequest,
    service: SignupService = Depends(get_signup_service),
):
    """
    Start a signup. The response never reveals whether the email is
    already registered.
    """
    message = await service.initiate_signup(request.email)
    return api_response(message=message, status_code=status.HTTP_200_OK)


@router.post(
    "/verify-email",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Verify email with code",
    description="Exchange the emailed 6-digit code for a short-lived verification session",
)
async def verify_email(
    request: VerifyEmailRequest,
    service: SignupService = Depends(get_signup_service),
):
    session, pending = await service.verify_email(request.email, request.token)
    return api_response(
        message="Email verified successfully",
        data=VerifyEmailResponse(
            verification_session=session.session_token,
            pending_user=PendingUserOut(
                first_name=pending.first_name,
                last_name=pending.last_name,
            ),
        ),
    )


@router.post(
    "/complete-profile",
    response_model=dict,
    status_code=status.HTTP_200_OK,
    summary="Set first and last name",
)
async def complete_profile(
    request: CompleteProfileRequest,
    service: SignupService = Depends(get_signup_service),
):
    await service.complete_profile(
        request.first_name, request.last_name, request.verification_session
    )
    return api_response(
        message="Profile completed successfully",
        data=CompleteProfileResponse(first_name=request.first_name, last_name=request.last_name),
    )


@router.post(
    "/complete-account",
    response_model=dict,
    status_code=status.HTTP_201_CREATED,
    summary="Choose a username and create the account",
)
async def complete_account(
    request: CompleteAccountRequest,
    service: SignupService = Depends(get_signup_service),
):
    user = await service.complete_account(
        username=request.username,
        session_token=request.verification_session,
        display_name=request.display_name,
        bio=request.bio,
        location=request.location,
        gender=request.gender,
    )
    tokens = issue_tokens(user)
    return api_response(
        message="Account created successfully",
        status_code=status.HTTP_201_CREATED,
        data=CompleteAccountResponse(
            user=CreatedUserOut.model_validate(user),
            **tokens,
        ),
    )


@router.post("/refresh", response_model=dict, summary="Refresh access token")
async def refresh_access_token(request: RefreshTokenRequest, db: AsyncSession = Depends(get_db)):
    try:
        payload = decode_refresh_token(request.refresh_token)
    except ValueError as e:
        raise AuthenticationError(str(e))

    user = await IdentityRepository(db).get_user(payload.get("sub", ""))
    if user is None:
        raise AuthenticationError("User not found")

    access_token = create_access_token({"sub": str(user.id), "email": user.email})
    return api_response(
        message="Token refreshed successfully",
        data={"accessToken": access_token, "tokenType": "bearer"},
    )


@router.get("/user", response_model=dict, summary="Get the authenticated user")
async def get_auth_user(current_user: User = Depends(get_current_user)):
    return api_response(
        message="User retrieved successfully",
        data=UserResponse.model_validate(current_user),
    )
