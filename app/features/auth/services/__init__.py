from app.features.auth.services.email_service import send_verification_code
from app.features.auth.services.signup_service import GENERIC_SIGNUP_MESSAGE, SignupService

__all__ = ["SignupService", "GENERIC_SIGNUP_MESSAGE", "send_verification_code"]
