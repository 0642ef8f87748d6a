from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.services.email import EmailDeliveryError, env, send_email

logger = get_logger(__name__)


def send_verification_code(to_email: str, code: str) -> bool:
    """Deliver a signup verification code.

    Without a configured provider the delivery is simulated: the code is
    logged and reported as sent, so the flow works in development and tests.
    """
    if not settings.email_provider_configured:
        logger.info(f"[SIMULATED EMAIL] To: {to_email} - verification code: {code}")
        return True

    template = env.get_template("verification_code.html")
    html_content = template.render(
        app_name=settings.APP_NAME,
        code=code,
        expiration_hours=settings.VERIFICATION_TOKEN_TTL_HOURS,
    )
    text_content = (
        f"Welcome to {settings.APP_NAME}! Your verification code is: {code}. "
        "Enter this code in the app to verify your email address."
    )

    try:
        send_email(to_email, f"Your {settings.APP_NAME} verification code", html_content, text_content)
    except EmailDeliveryError as e:
        logger.error(f"Verification email to {to_email} failed: {e}")
        return False
    return True
