import re
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.platform.schemas import CamelModel

USERNAME_PATTERN = re.compile(r"^[a-z0-9_.]+$")


class SignupEmailRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class VerifyEmailRequest(CamelModel):
    email: EmailStr
    token: str = Field(..., description="6-digit verification code")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        v = v.strip()
        if not re.fullmatch(r"\d{6}", v):
            raise ValueError("Verification code must be exactly 6 digits")
        return v


class CompleteProfileRequest(CamelModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    verification_session: str = Field(..., min_length=1, max_length=64)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v


class CompleteAccountRequest(CamelModel):
    username: str = Field(..., description="3-30 characters: letters, numbers, underscores, dots")
    display_name: Optional[str] = Field(None, max_length=200)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=255)
    gender: Optional[str] = Field(None, max_length=50)
    verification_session: str = Field(..., min_length=1, max_length=64)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate and normalize username."""
        v = v.strip().lower()
        if len(v) < 3 or len(v) > 30:
            raise ValueError("Username must be between 3 and 30 characters long")
        if not USERNAME_PATTERN.match(v):
            raise ValueError("Username can only contain letters, numbers, underscores, and dots")
        return v


class RefreshTokenRequest(CamelModel):
    refresh_token: str


class PendingUserOut(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class VerifyEmailResponse(CamelModel):
    verification_session: str
    pending_user: PendingUserOut


class CompleteProfileResponse(CamelModel):
    first_name: str
    last_name: str


class CreatedUserOut(CamelModel):
    id: str
    email: str
    username: str
    display_name: Optional[str] = None


class CompleteAccountResponse(CamelModel):
    user: CreatedUserOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserResponse(CamelModel):
    id: str
    email: str
    username: str
    display_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
    gender: Optional[str] = None
    is_verified: bool


class PublicUserResponse(CamelModel):
    id: str
    username: str
    display_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    bio: Optional[str] = None
    location: Optional[str] = None
