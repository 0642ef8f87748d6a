from app.features.auth.schemas.signup import (
    CompleteAccountRequest,
    CompleteAccountResponse,
    CompleteProfileRequest,
    CompleteProfileResponse,
    CreatedUserOut,
    PendingUserOut,
    PublicUserResponse,
    RefreshTokenRequest,
    SignupEmailRequest,
    UserResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)

__all__ = [
    "SignupEmailRequest",
    "VerifyEmailRequest",
    "VerifyEmailResponse",
    "PendingUserOut",
    "CompleteProfileRequest",
    "CompleteProfileResponse",
    "CompleteAccountRequest",
    "CompleteAccountResponse",
    "CreatedUserOut",
    "RefreshTokenRequest",
    "UserResponse",
    "PublicUserResponse",
]
