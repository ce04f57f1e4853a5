"""OTP-gated signup: pending registration -> verified account.

States: none -> pending -> promoted. A pending record may be re-issued (resend),
and it disappears on promotion, after too many wrong codes, or once it expires.
"""
import logging
import math
from datetime import datetime, timedelta, timezone

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.pending_registration import PendingRegistration, MAX_OTP_ATTEMPTS
from app.models.user import User, UserRole
from app.schemas.auth import (
    CompanyRegistration,
    RecruiterRegistration,
    is_personal_email,
    is_valid_email,
    is_valid_phone,
    registration_adapter,
)
from app.services import notifications
from app.services.audit_log import create_log, CATEGORY_FAILED_ATTEMPT, CATEGORY_STATUS_CHANGE
from app.services.auth import create_access_token, generate_otp, get_password_hash, hash_otp, verify_otp_hash
from app.services.errors import (
    Conflict,
    DeliveryError,
    InvalidCode,
    InvalidOrExpiredToken,
    NotFound,
    RateLimited,
    TooManyAttempts,
    ValidationError,
)

log = logging.getLogger("uvicorn.error")

OTP_EXPIRE_MINUTES = 10
OTP_EXPIRES_IN_SECONDS = OTP_EXPIRE_MINUTES * 60
RESEND_INTERVAL_SECONDS = 60


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_email(value) -> str:
    return _text(value).lower()


def build_registration(payload: dict):
    """Validate a raw signup body and return one member of the registration union."""
    name = _text(payload.get("name"))
    email = normalize_email(payload.get("email"))
    password = payload.get("password") if isinstance(payload.get("password"), str) else ""
    phone = _text(payload.get("phone"))
    role = _text(payload.get("role"))

    if not (name and email and password and phone and role):
        raise ValidationError("All fields are required")
    if role not in UserRole._value2member_map_:
        raise ValidationError("Invalid role")
    if not is_valid_phone(phone):
        raise ValidationError("Please provide a valid phone number with country code")

    fields = {"name": name, "email": email, "password": password, "phone": phone, "role": role}
    if role == UserRole.COMPANY:
        company_name = _text(payload.get("companyName"))
        company_size = _text(payload.get("companySize"))
        designation = _text(payload.get("designation"))
        if not (company_name and company_size and designation):
            raise ValidationError(
                "Company name, company size, and designation are required for company registration"
            )
        if is_personal_email(email):
            raise ValidationError(
                "Company email required. Personal email domains (gmail.com, yahoo.com, etc.) "
                "are not allowed for company registration."
            )
        fields.update(company_name=company_name, company_size=company_size, designation=designation)
    elif role == UserRole.RECRUITER:
        firm = payload.get("recruitmentFirmName")
        # An empty value means "not provided"; only whitespace-only names are refused
        if firm:
            if not _text(firm):
                raise ValidationError("Recruitment firm name cannot be empty if provided")
            fields["recruitment_firm_name"] = _text(firm)

    if not is_valid_email(email):
        raise ValidationError("Invalid email format")

    try:
        return registration_adapter.validate_python(fields)
    except PydanticValidationError as e:
        raise ValidationError(e.errors()[0].get("msg", "Invalid registration data")) from e


def _drop_expired(db: Session, email: str, now: datetime) -> None:
    # Expired records must not be re-armed or verified before the sweep gets to them
    expired = (
        db.query(PendingRegistration)
        .filter(PendingRegistration.email == email, PendingRegistration.expires_at <= now)
        .delete(synchronize_session=False)
    )
    if expired:
        db.commit()


def _send_otp(email: str, name: str, otp: str) -> bool:
    try:
        return notifications.send_otp_email(email, name, otp)
    except Exception:
        log.exception("[Auth] OTP email raised for %s", email)
        return False


def request_registration(db: Session, payload: dict) -> dict:
    """Store a pending registration and email its OTP. Nothing is kept if the email cannot be sent."""
    registration = build_registration(payload)
    email = registration.email

    if db.query(User).filter(User.email == email).first():
        log.info("[Auth] Registration refused, account exists: %s", email)
        raise Conflict()

    now = _now()
    existing = db.query(PendingRegistration).filter(PendingRegistration.email == email).first()
    if existing:
        live = not existing.verified and _as_utc(existing.expires_at) > now
        if live and (now - _as_utc(existing.created_at)).total_seconds() < RESEND_INTERVAL_SECONDS:
            raise RateLimited()
        db.delete(existing)
        db.flush()

    otp = generate_otp()
    stored = registration.model_copy(update={"password": get_password_hash(registration.password)})
    pending = PendingRegistration(
        email=email,
        otp_hash=hash_otp(otp),
        user_data=stored.model_dump(mode="json"),
        expires_at=now + timedelta(minutes=OTP_EXPIRE_MINUTES),
        verified=False,
        attempts=0,
        created_at=now,
    )
    db.add(pending)
    try:
        db.commit()
    except IntegrityError:
        # Another request for this email inserted first
        db.rollback()
        raise RateLimited()
    db.refresh(pending)

    if not _send_otp(email, registration.name, otp):
        db.delete(pending)
        db.commit()
        log.warning("[Auth] OTP email not sent to %s; pending registration removed", email)
        raise DeliveryError()

    log.info("[Auth] OTP sent for pending registration %s (role=%s)", email, registration.role)
    return {
        "message": "Verification code sent to your email address",
        "email": email,
        "expiresIn": OTP_EXPIRES_IN_SECONDS,
    }


def resend_otp(db: Session, email) -> dict:
    """Issue a fresh code for an existing pending registration (at most once a minute).

    A failed send is reported but the new code stays issued.
    """
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    now = _now()
    _drop_expired(db, email, now)

    pending = (
        db.query(PendingRegistration)
        .filter(
            PendingRegistration.email == email,
            PendingRegistration.verified.is_(False),
            PendingRegistration.expires_at > now,
        )
        .first()
    )
    if not pending:
        raise NotFound("No pending verification found. Please start registration again.")

    elapsed = (now - _as_utc(pending.created_at)).total_seconds()
    if elapsed < RESEND_INTERVAL_SECONDS:
        wait = math.ceil(RESEND_INTERVAL_SECONDS - elapsed)
        raise RateLimited(f"Please wait {wait} seconds before requesting another code", retry_after=wait)

    otp = generate_otp()
    pending.otp_hash = hash_otp(otp)
    pending.expires_at = now + timedelta(minutes=OTP_EXPIRE_MINUTES)
    pending.attempts = 0
    pending.created_at = now
    db.commit()

    name = (pending.user_data or {}).get("name") or ""
    if not _send_otp(email, name, otp):
        log.warning("[Auth] Resent OTP for %s could not be emailed", email)
        raise DeliveryError()

    log.info("[Auth] OTP resent for %s", email)
    return {
        "message": "New verification code sent to your email address",
        "email": email,
        "expiresIn": OTP_EXPIRES_IN_SECONDS,
    }


def _promote(db: Session, pending: PendingRegistration, now: datetime) -> User:
    """Create the User from the stored registration and drop the pending record, in one commit."""
    registration = registration_adapter.validate_python(pending.user_data)
    user = User(
        name=registration.name,
        email=registration.email,
        hashed_password=registration.password,
        phone=registration.phone,
        role=UserRole(registration.role),
        is_primary=True,
        is_active=True,
        email_verified=True,
        email_verified_at=now,
    )
    if isinstance(registration, CompanyRegistration):
        user.company_name = registration.company_name
        user.company_size = registration.company_size
        user.designation = registration.designation
    elif isinstance(registration, RecruiterRegistration):
        user.recruitment_firm_name = registration.recruitment_firm_name

    db.add(user)
    pending.verified = True
    db.flush()
    db.delete(pending)
    create_log(
        db,
        CATEGORY_STATUS_CHANGE,
        "Account created",
        f"Account {user.email} created after email verification.",
        actor_user_id=user.id,
        actor_email=user.email,
        meta={"role": user.role},
    )
    db.commit()
    db.refresh(user)
    return user


def verify_otp(
    db: Session,
    email,
    otp,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[User, str]:
    """Check the code for a pending registration; on success return the new user and a session token."""
    email = normalize_email(email)
    code = _text(otp)
    if not email or not code:
        raise ValidationError("Email and OTP are required")

    now = _now()
    _drop_expired(db, email, now)

    pending = (
        db.query(PendingRegistration)
        .filter(
            PendingRegistration.email == email,
            PendingRegistration.verified.is_(False),
            PendingRegistration.expires_at > now,
        )
        .first()
    )
    if not pending:
        raise InvalidOrExpiredToken("Invalid or expired verification code")

    if pending.attempts >= MAX_OTP_ATTEMPTS:
        db.delete(pending)
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Email verification locked",
            f"Maximum verification attempts reached for {email}; pending registration removed.",
            actor_email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            meta={"reason": "max_attempts"},
        )
        db.commit()
        log.warning("[Auth] Max OTP attempts reached for %s", email)
        raise TooManyAttempts()

    if not verify_otp_hash(code, pending.otp_hash):
        db.query(PendingRegistration).filter(PendingRegistration.id == pending.id).update(
            {PendingRegistration.attempts: PendingRegistration.attempts + 1},
            synchronize_session=False,
        )
        remaining = MAX_OTP_ATTEMPTS - (pending.attempts + 1)
        create_log(
            db,
            CATEGORY_FAILED_ATTEMPT,
            "Email verification failed",
            f"Wrong verification code for {email}.",
            actor_email=email,
            ip_address=ip_address,
            user_agent=user_agent,
            meta={"reason": "invalid_code", "remaining_attempts": remaining},
        )
        db.commit()
        log.info("[Auth] Invalid OTP for %s, remaining attempts: %d", email, remaining)
        raise InvalidCode(f"Invalid verification code. {remaining} attempts remaining.")

    if db.query(User).filter(User.email == email).first():
        db.delete(pending)
        db.commit()
        raise Conflict()

    try:
        user = _promote(db, pending, now)
    except IntegrityError:
        db.rollback()
        raise Conflict()

    log.info("[Auth] Registered and verified %s (role=%s)", user.email, user.role.value)
    token = create_access_token(user.id, user.email, user.role)
    return user, token


def welcome_sender_for(role: UserRole):
    """Welcome email function for a newly verified account of this role."""
    if role == UserRole.RECRUITER:
        return notifications.send_recruiter_welcome_email
    return notifications.send_welcome_email
