"""Forgot/reset password: a hashed, one-hour reset grant stored on the user row."""
import logging
import re
from datetime import datetime, timedelta, timezone

from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.user import User
from app.schemas.auth import is_valid_email
from app.services import notifications
from app.services.audit_log import create_log, CATEGORY_STATUS_CHANGE
from app.services.auth import generate_reset_token, get_password_hash, hash_reset_token
from app.services.errors import DeliveryError, Forbidden, InvalidOrExpiredToken, ValidationError
from app.services.registration import normalize_email

log = logging.getLogger("uvicorn.error")

RESET_TOKEN_EXPIRE_HOURS = 1
PASSWORD_MIN_LENGTH = 8
PASSWORD_SPECIAL_CHARS = "@$!%*?&"
PASSWORD_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")

# Same body whether or not the account exists
RESET_REQUESTED_MESSAGE = "If an account with that email exists, we have sent a password reset link."


def validate_password_strength(password: str) -> None:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not PASSWORD_RE.match(password):
        raise ValidationError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )


def build_reset_url(token: str) -> str:
    base = get_settings().frontend_url.strip().rstrip("/")
    return f"{base}/reset-password?token={token}"


def _clear_grant(user: User) -> None:
    user.reset_password_token = None
    user.reset_password_expires = None


def request_password_reset(db: Session, email) -> dict:
    """Issue a reset grant and email the link. Unknown emails get the same answer as known ones."""
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("Email is required")
    email = normalize_email(email)
    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    response = {"message": RESET_REQUESTED_MESSAGE, "email": email}

    user = db.query(User).filter(User.email == email).first()
    if not user:
        log.info("[Auth] Password reset requested for unknown email %s", email)
        return response
    if not user.is_active:
        log.info("[Auth] Password reset refused for deactivated account %s", email)
        raise Forbidden()

    token = generate_reset_token()
    user.reset_password_token = hash_reset_token(token)
    user.reset_password_expires = datetime.now(timezone.utc) + timedelta(hours=RESET_TOKEN_EXPIRE_HOURS)
    db.commit()

    try:
        sent = notifications.send_password_reset_email(user.email, user.name, build_reset_url(token))
    except Exception:
        log.exception("[Auth] Password reset email raised for %s", email)
        sent = False
    if not sent:
        _clear_grant(user)
        db.commit()
        log.warning("[Auth] Password reset email not sent to %s; grant cleared", email)
        raise DeliveryError("Failed to send reset email. Please try again later.")

    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Password reset requested",
        f"Password reset link sent to {user.email}.",
        actor_user_id=user.id,
        actor_email=user.email,
    )
    db.commit()
    log.info("[Auth] Password reset email sent to %s", email)
    return response


def redeem_password_reset(db: Session, token, password) -> User:
    """Set a new password from a live reset grant. No session is issued."""
    if not isinstance(token, str) or not token or not isinstance(password, str) or not password:
        raise ValidationError("Token and password are required")
    validate_password_strength(password)

    user = (
        db.query(User)
        .filter(
            User.reset_password_token == hash_reset_token(token.strip()),
            User.reset_password_expires > datetime.now(timezone.utc),
        )
        .first()
    )
    if not user:
        log.info("[Auth] Invalid or expired reset token presented")
        raise InvalidOrExpiredToken()
    if not user.is_active:
        raise Forbidden()

    user.hashed_password = get_password_hash(password)
    _clear_grant(user)
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Password reset completed",
        f"Password for {user.email} was reset with an emailed link.",
        actor_user_id=user.id,
        actor_email=user.email,
    )
    db.commit()
    db.refresh(user)
    log.info("[Auth] Password reset successful for %s", user.email)
    return user
